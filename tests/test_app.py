import copy
from datetime import datetime

import pygame
import pytest

from paintboard.app import PaintBoardApp
from paintboard.app import build_state
from paintboard.board.drawing import PointerPhase
from paintboard.board.strokes import BlurStyle
from paintboard.board.strokes import MoveTo
from paintboard.config import DEFAULT_CONFIG
from paintboard.ui.common import Slider


def _config(**paint):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["paint"].update(paint)
    return config


def _bare_app(tmp_path, commit="end"):
    app = PaintBoardApp.__new__(PaintBoardApp)
    app.state = build_state(_config(commit=commit))
    app.canvas_rect = pygame.Rect(100, 20, 64, 48)
    app.paintings_dir = tmp_path
    app.background = 0xFFFFFFFF
    app.name_format = "%Y%m%d_%H%M%S"
    app.status = ""
    app.status_until = 0.0
    app.needs_redraw = False
    return app


def test_build_state_uses_configured_brush():
    state = build_state(_config(brush_width=12, brush_color=[10, 20, 30], commit="next_start"))
    assert state.brush.width == 12
    assert state.brush.color == (10, 20, 30)
    assert state.commit == "next_start"


def test_build_state_falls_back_on_invalid_values():
    state = build_state(_config(brush_width="wide", brush_color="teal", touch_tolerance=-1, commit="never"))
    assert state.brush.width == 20.0
    assert state.brush.color == 0xFF888888
    assert state.recorder.tolerance == 4.0
    assert state.commit == "end"


def test_build_state_rejects_digit_string_color():
    state = build_state(_config(brush_color="123"))
    assert state.brush.color == 0xFF888888


def test_save_commits_pending_stroke_in_next_start_mode(tmp_path):
    app = _bare_app(tmp_path, commit="next_start")
    app.state.handle_pointer(PointerPhase.DOWN, 5, 5)
    app.state.handle_pointer(PointerPhase.UP, 40, 5)

    path, saved = app.save()

    assert saved
    assert len(app.state.strokes) == 1
    assert app.status.startswith("Saved")
    assert app.needs_redraw
    assert path.startswith(str(tmp_path))


def test_undo_removes_just_finished_stroke_in_next_start_mode(tmp_path):
    app = _bare_app(tmp_path, commit="next_start")
    app.state.handle_pointer(PointerPhase.DOWN, 5, 5)
    app.state.handle_pointer(PointerPhase.UP, 40, 5)

    app.undo()

    assert app.state.strokes == []
    app.state.handle_pointer(PointerPhase.DOWN, 1, 1)
    assert app.state.strokes == []


def test_save_reports_failure_in_status(monkeypatch, tmp_path):
    app = _bare_app(tmp_path)
    monkeypatch.setattr("paintboard.board.export.datetime", _FixedDatetime)

    def _raise(*_args, **_kwargs):
        raise OSError("read-only")

    monkeypatch.setattr(pygame.image, "save", _raise)
    path, saved = app.save()

    assert not saved
    assert path.endswith("Paint20260206_101112.png")
    assert app.status == "Could not save the drawing"


class _FixedDatetime:
    @staticmethod
    def now():
        return datetime(2026, 2, 6, 10, 11, 12)


class _StubFont:
    @staticmethod
    def get_height():
        return 18


def _routing_app(tmp_path):
    app = _bare_app(tmp_path)
    app.screen_rect = pygame.Rect(0, 0, 600, 600)
    app.controls_rect = pygame.Rect(16, 16, 200, 568)
    app.canvas_rect = pygame.Rect(232, 16, 352, 568)
    app.font = _StubFont()
    app.palette = [(0, 0, 0), (255, 0, 0)]
    app.palette_buttons = []
    app.blur_buttons = []
    app.action_buttons = {}
    app.width_slider = Slider(pygame.Rect(0, 0, 1, 1), 1.0, 60.0, 20.0)
    app.pointer_down = False
    app.dragging_slider = False
    app._build_ui()
    return app


def _mouse(kind, pos, **extra):
    if kind == pygame.MOUSEMOTION:
        return pygame.event.Event(kind, pos=pos, rel=(0, 0), buttons=(1, 0, 0), **extra)
    return pygame.event.Event(kind, pos=pos, button=1, **extra)


def _drag(app, *points):
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONDOWN, points[0]))
    for pos in points[1:-1]:
        app._handle_pointer(_mouse(pygame.MOUSEMOTION, pos))
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONUP, points[-1]))


def _key(key, mod=0):
    return pygame.event.Event(pygame.KEYDOWN, key=key, mod=mod)


def test_canvas_drag_records_stroke_in_canvas_coordinates(tmp_path):
    app = _routing_app(tmp_path)
    _drag(app, (300, 100), (340, 120), (360, 140))

    assert len(app.state.strokes) == 1
    assert app.state.strokes[0].commands[0] == MoveTo(68.0, 84.0)
    assert app.needs_redraw
    assert not app.pointer_down


def test_slider_drag_sets_width_without_drawing(tmp_path):
    app = _routing_app(tmp_path)
    slider = app.width_slider.rect

    app._handle_pointer(_mouse(pygame.MOUSEBUTTONDOWN, slider.center))
    assert app.dragging_slider
    app._handle_pointer(_mouse(pygame.MOUSEMOTION, (slider.right, slider.centery)))
    # Released over the canvas.
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONUP, (400, 200)))

    assert app.state.brush.width == 60.0
    assert app.width_slider.value == 60.0
    assert not app.dragging_slider
    assert app.state.strokes == []
    assert not app.state.recorder.drawing
    assert app.state.recorder.path.is_empty


def test_touch_emulated_mouse_events_are_ignored(tmp_path):
    app = _routing_app(tmp_path)
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONDOWN, (300, 100), touch=True))
    app._handle_pointer(_mouse(pygame.MOUSEMOTION, (340, 120), touch=True))
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONUP, (360, 140), touch=True))

    assert not app.pointer_down
    assert not app.state.recorder.drawing
    assert app.state.strokes == []


def test_finger_drag_records_stroke(tmp_path):
    if getattr(pygame, "FINGERDOWN", None) is None:
        pytest.skip("finger events unavailable")
    app = _routing_app(tmp_path)

    def finger(kind, x, y):
        return pygame.event.Event(kind, x=x, y=y, dx=0.0, dy=0.0, finger_id=0, touch_id=0)

    app._handle_pointer(finger(pygame.FINGERDOWN, 0.5, 0.25))
    app._handle_pointer(finger(pygame.FINGERMOTION, 0.6, 0.25))
    app._handle_pointer(finger(pygame.FINGERUP, 0.7, 0.25))

    assert len(app.state.strokes) == 1
    assert app.state.strokes[0].commands[0] == MoveTo(68.0, 134.0)


def test_palette_and_blur_buttons_update_brush(tmp_path):
    app = _routing_app(tmp_path)
    red_swatch = app.palette_buttons[1].rect
    normal_button = next(button for button, style in app.blur_buttons if style is BlurStyle.NORMAL)

    app._handle_pointer(_mouse(pygame.MOUSEBUTTONDOWN, red_swatch.center))
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONUP, red_swatch.center))
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONDOWN, normal_button.rect.center))
    app._handle_pointer(_mouse(pygame.MOUSEBUTTONUP, normal_button.rect.center))

    assert app.state.brush.color == (255, 0, 0)
    assert app.state.brush.blur.style is BlurStyle.NORMAL
    assert app.state.strokes == []


def test_ctrl_z_undoes_last_stroke(tmp_path):
    app = _routing_app(tmp_path)
    _drag(app, (300, 100), (340, 120), (360, 140))
    _drag(app, (300, 200), (340, 220), (360, 240))

    assert app._handle_key(_key(pygame.K_z, pygame.KMOD_LCTRL))
    assert len(app.state.strokes) == 1
    assert app.state.strokes[0].commands[0] == MoveTo(68.0, 84.0)


def test_plain_z_does_not_undo(tmp_path):
    app = _routing_app(tmp_path)
    _drag(app, (300, 100), (340, 120), (360, 140))

    assert app._handle_key(_key(pygame.K_z))
    assert len(app.state.strokes) == 1


def test_delete_clears_all_strokes(tmp_path):
    app = _routing_app(tmp_path)
    _drag(app, (300, 100), (340, 120), (360, 140))
    _drag(app, (300, 200), (340, 220), (360, 240))

    assert app._handle_key(_key(pygame.K_DELETE))
    assert app.state.strokes == []


def test_ctrl_s_saves_into_paintings_dir(tmp_path):
    app = _routing_app(tmp_path)
    _drag(app, (300, 100), (340, 120), (360, 140))

    assert app._handle_key(_key(pygame.K_s, pygame.KMOD_LCTRL))
    saved = list(tmp_path.iterdir())
    assert len(saved) == 1
    assert saved[0].name.startswith("Paint")
    assert app.status.startswith("Saved")


def test_escape_stops_the_loop(tmp_path):
    app = _routing_app(tmp_path)
    assert app._handle_key(_key(pygame.K_ESCAPE)) is False
