from datetime import datetime
from pathlib import Path

import pygame
import pytest

from paintboard.board.drawing import DrawingState
from paintboard.board.export import paint_file_name
from paintboard.board.export import save_drawing
from paintboard.board.export import save_surface_atomic
from paintboard.board.strokes import Brush

FIXED = datetime(2026, 2, 6, 10, 11, 12)


def _state_with_stroke():
    state = DrawingState(Brush(width=6, color=(0, 0, 0)))
    state.begin_stroke(5, 16)
    state.finish_stroke(40, 16)
    return state


def test_paint_file_name_uses_prefix_and_timestamp():
    assert paint_file_name(FIXED) == "Paint20260206_101112.png"
    assert paint_file_name(FIXED, "%d.%m.%Y-%H:%M") == "Paint06.02.2026-10:11.png"


def test_save_drawing_writes_png(tmp_path):
    path, saved = save_drawing(_state_with_stroke(), (48, 32), tmp_path, now=FIXED)

    assert saved
    assert path == str(tmp_path / "Paint20260206_101112.png")
    image = pygame.image.load(path)
    assert image.get_size() == (48, 32)
    assert tuple(image.get_at((20, 16)))[:3] == (0, 0, 0)
    assert tuple(image.get_at((20, 2)))[:3] == (255, 255, 255)
    assert [p.name for p in tmp_path.iterdir()] == ["Paint20260206_101112.png"]


def test_save_drawing_reports_failure_for_missing_directory(tmp_path):
    missing = tmp_path / "nope"
    path, saved = save_drawing(_state_with_stroke(), (48, 32), missing, now=FIXED)

    assert not saved
    assert path == str(missing / "Paint20260206_101112.png")


def test_save_drawing_swallows_encoder_errors(monkeypatch, tmp_path):
    def _raise(*_args, **_kwargs):
        raise pygame.error("encoder failed")

    monkeypatch.setattr(pygame.image, "save", _raise)
    path, saved = save_drawing(_state_with_stroke(), (48, 32), tmp_path, now=FIXED)

    assert not saved
    assert Path(path).parent == tmp_path
    assert list(tmp_path.iterdir()) == []


def test_save_surface_atomic_removes_temp_file_on_failure(monkeypatch, tmp_path):
    def _raise(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("paintboard.board.export.os.replace", _raise)
    surface = pygame.Surface((4, 4))
    with pytest.raises(OSError):
        save_surface_atomic(surface, tmp_path / "Paint1.png")
    assert list(tmp_path.iterdir()) == []
