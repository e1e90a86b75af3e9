from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import pygame

from paintboard.board.drawing import DrawingState, PointerPhase
from paintboard.board.export import save_drawing
from paintboard.board.strokes import BlurStyle, Brush, to_rgba
from paintboard.config import coerce_commit_mode, coerce_float, load_config
from paintboard.logging_setup import setup_logging
from paintboard.paths import ensure_directories, get_data_root
from paintboard.ui.common import (
    Button,
    Slider,
    create_window,
    pointer_event_pos,
    pointer_phase,
)

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

STATUS_SECONDS = 3.0
BLUR_CHOICES: List[Tuple[str, Optional[BlurStyle]]] = [
    ("None", None),
    ("Normal", BlurStyle.NORMAL),
    ("Solid", BlurStyle.SOLID),
    ("Outer", BlurStyle.OUTER),
    ("Inner", BlurStyle.INNER),
]


def _coerce_color(value: object, default: int) -> Any:
    try:
        to_rgba(value)
    except ValueError:
        return default
    return tuple(value) if isinstance(value, list) else value


def build_state(config: Dict[str, Any]) -> DrawingState:
    paint = config.get("paint", {})
    brush = Brush(
        width=coerce_float(paint.get("brush_width"), 20.0),
        color=_coerce_color(paint.get("brush_color"), 0xFF888888),
    )
    return DrawingState(
        brush,
        tolerance=coerce_float(paint.get("touch_tolerance"), 4.0),
        commit=coerce_commit_mode(paint.get("commit")),
    )


class PaintBoardApp:
    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = config or load_config()
        paint = self.config.get("paint", {})
        self.data_root = get_data_root(self.config)
        self.paintings_dir = ensure_directories(self.data_root)["paintings"]
        self.name_format = str(paint.get("file_name_format", "%Y%m%d_%H%M%S"))
        self.background = _coerce_color(paint.get("background"), 0xFFFFFFFF)

        window = self.config.get("window", {})
        size = (int(window.get("width", 1280)), int(window.get("height", 800)))
        self.screen, self.screen_rect = create_window(size, fullscreen=bool(window.get("fullscreen", False)))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("sans", 18)

        self.state = build_state(self.config)
        self.palette: List[Color] = []
        for color in paint.get("palette", []):
            try:
                self.palette.append(to_rgba(color)[:3])
            except ValueError:
                logger.warning("Skipping invalid palette color %r", color)

        self.margin = 16
        self.panel_width = 200
        self.menu_bg = (238, 234, 226)
        self.controls_rect = pygame.Rect(
            self.margin,
            self.margin,
            self.panel_width,
            self.screen_rect.height - 2 * self.margin,
        )
        self.canvas_rect = pygame.Rect(
            self.controls_rect.right + self.margin,
            self.margin,
            self.screen_rect.width - self.panel_width - 3 * self.margin,
            self.screen_rect.height - 2 * self.margin,
        )
        self.canvas_surface = pygame.Surface(self.canvas_rect.size)

        min_width = coerce_float(paint.get("min_width"), 1.0)
        max_width = max(min_width + 1, coerce_float(paint.get("max_width"), 60.0))
        self.palette_buttons: List[Button] = []
        self.blur_buttons: List[Tuple[Button, Optional[BlurStyle]]] = []
        self.action_buttons: Dict[str, Button] = {}
        self.width_slider = Slider(pygame.Rect(0, 0, 1, 1), min_width, max_width, self.state.brush.width)
        self._build_ui()

        self.pointer_down = False
        self.dragging_slider = False
        self.status = ""
        self.status_until = 0.0
        self.needs_redraw = True

    def _build_ui(self) -> None:
        pad = 10
        gap = 8
        left = self.controls_rect.left + pad
        top = self.controls_rect.top + pad
        inner_w = self.controls_rect.width - pad * 2

        swatch = (inner_w - gap * 3) // 4
        for idx, color in enumerate(self.palette):
            row = idx // 4
            col = idx % 4
            rect = pygame.Rect(left + col * (swatch + gap), top + row * (swatch + gap), swatch, swatch)
            self.palette_buttons.append(Button(rect=rect, fill=color, border_width=1))
        rows = (len(self.palette) + 3) // 4
        y = top + rows * (swatch + gap) + gap

        self.width_slider.rect = pygame.Rect(left, y, inner_w, 28)
        y += 28 + gap * 2

        button_h = self.font.get_height() + 12
        for label, style in BLUR_CHOICES:
            rect = pygame.Rect(left, y, inner_w, button_h)
            self.blur_buttons.append((Button(rect=rect, label=label, fill=(245, 245, 245)), style))
            y += button_h + gap

        bottom = self.controls_rect.bottom - pad
        for key in ("save", "clear", "undo"):
            bottom -= button_h
            rect = pygame.Rect(left, bottom, inner_w, button_h)
            self.action_buttons[key] = Button(rect=rect, label=key.capitalize(), fill=(245, 245, 245))
            bottom -= gap

    def _local(self, pos: Tuple[int, int]) -> Tuple[int, int]:
        return (pos[0] - self.canvas_rect.left, pos[1] - self.canvas_rect.top)

    def _set_status(self, message: str) -> None:
        self.status = message
        self.status_until = time.monotonic() + STATUS_SECONDS
        self.needs_redraw = True

    def undo(self) -> None:
        if self.state.commit == "next_start":
            self.state.commit_pending()
        self.state.undo()
        self.needs_redraw = True

    def clear(self) -> None:
        self.state.clear()
        self.needs_redraw = True

    def save(self) -> Tuple[str, bool]:
        if self.state.commit == "next_start":
            self.state.commit_pending()
        path, saved = save_drawing(
            self.state,
            self.canvas_rect.size,
            self.paintings_dir,
            self.background,
            name_format=self.name_format,
        )
        self._set_status(f"Saved {path}" if saved else "Could not save the drawing")
        return path, saved

    def _handle_controls_down(self, pos: Tuple[int, int]) -> None:
        for idx, button in enumerate(self.palette_buttons):
            if button.hit(pos):
                self.state.set_brush_color(self.palette[idx])
                return
        if self.width_slider.hit(pos):
            self.dragging_slider = True
            self._set_width(self.width_slider.value_at(pos))
            return
        for button, style in self.blur_buttons:
            if button.hit(pos):
                self.state.set_brush_blur(style)
                return
        if self.action_buttons["undo"].hit(pos):
            self.undo()
        elif self.action_buttons["clear"].hit(pos):
            self.clear()
        elif self.action_buttons["save"].hit(pos):
            self.save()

    def _set_width(self, width: float) -> None:
        self.width_slider.value = width
        self.state.set_brush_width(width)

    def _handle_pointer(self, event: pygame.event.Event) -> None:
        phase = pointer_phase(event)
        if phase is None:
            return
        # Touch input also arrives as FINGER* events.
        if getattr(event, "touch", False) and event.type in {pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION}:
            return
        pos = pointer_event_pos(event, self.screen_rect)
        if pos is None:
            return
        if phase is PointerPhase.DOWN:
            self.pointer_down = True
            if not self.canvas_rect.collidepoint(pos):
                self._handle_controls_down(pos)
                self.needs_redraw = True
                return
        elif phase is PointerPhase.MOVE:
            if not self.pointer_down:
                return
            if self.dragging_slider:
                self._set_width(self.width_slider.value_at(pos))
                self.needs_redraw = True
                return
        else:
            self.pointer_down = False
            if self.dragging_slider:
                self.dragging_slider = False
                return
        local = self._local(pos)
        if self.state.handle_pointer(phase, local[0], local[1]):
            self.needs_redraw = True

    def _handle_key(self, event: pygame.event.Event) -> bool:
        ctrl = bool(event.mod & pygame.KMOD_CTRL)
        if event.key == pygame.K_ESCAPE:
            return False
        if ctrl and event.key == pygame.K_z:
            self.undo()
        elif ctrl and event.key == pygame.K_s:
            self.save()
        elif event.key == pygame.K_DELETE:
            self.clear()
        return True

    def _draw(self) -> None:
        self.screen.fill((252, 248, 240))
        pygame.draw.rect(self.screen, self.menu_bg, self.controls_rect, border_radius=12)

        self.canvas_surface.fill(to_rgba(self.background)[:3])
        self.state.render(self.canvas_surface)
        self.state.render_preview(self.canvas_surface)
        self.screen.blit(self.canvas_surface, self.canvas_rect.topleft)
        pygame.draw.rect(self.screen, (200, 200, 200), self.canvas_rect, width=2)

        current = self.state.brush
        for idx, button in enumerate(self.palette_buttons):
            button.draw(self.screen)
            if self.palette[idx] == current.rgba[:3]:
                pygame.draw.rect(self.screen, (200, 60, 60), button.rect, width=3, border_radius=12)
        self.width_slider.draw(self.screen)
        label = self.font.render(f"Width {current.width:.0f}", True, (40, 40, 40))
        self.screen.blit(label, (self.width_slider.rect.left, self.width_slider.rect.bottom))

        active_style = current.blur.style if current.blur is not None else None
        for button, style in self.blur_buttons:
            button.draw(self.screen, self.font)
            if style is active_style:
                pygame.draw.rect(self.screen, (200, 60, 60), button.rect, width=3, border_radius=12)
        for button in self.action_buttons.values():
            button.draw(self.screen, self.font)

        if self.status and time.monotonic() < self.status_until:
            text = self.font.render(self.status, True, (20, 20, 20))
            rect = text.get_rect(midbottom=(self.canvas_rect.centerx, self.canvas_rect.bottom - 12))
            pygame.draw.rect(self.screen, (235, 235, 235), rect.inflate(20, 10), border_radius=8)
            self.screen.blit(text, rect)

        pygame.display.flip()

    def run(self) -> None:
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    running = self._handle_key(event)
                else:
                    self._handle_pointer(event)

            if self.status and time.monotonic() >= self.status_until:
                self.status = ""
                self.needs_redraw = True
            if self.needs_redraw:
                self._draw()
                self.needs_redraw = False
            self.clock.tick(60)

        pygame.quit()


def main() -> None:
    config = load_config()
    setup_logging(config.get("logging", {}).get("level", "INFO"))
    try:
        PaintBoardApp(config).run()
    except Exception:
        logger.exception("PaintBoard stopped unexpectedly")
        pygame.quit()
        raise


if __name__ == "__main__":
    main()
