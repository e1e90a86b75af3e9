"""Stroke history, brush state and replay onto pygame surfaces.

The stroke list is append-only apart from :meth:`DrawingState.undo` and
:meth:`DrawingState.clear`. Records never change once appended; changing the
brush only affects strokes committed afterwards.

Two commit timings are supported. With ``commit="end"`` a finished gesture is
recorded with the brush active when the pointer is released. With
``commit="next_start"`` it stays pending and is recorded with the brush active
when the next gesture begins (or when :meth:`DrawingState.commit_pending` is
called).
"""

from __future__ import annotations

import enum
import logging
import math
from numbers import Real
from typing import List, Optional

import pygame

from paintboard.board.render import clear_layer_cache, draw_record, replay
from paintboard.board.strokes import (
    TOUCH_TOLERANCE,
    BlurStyle,
    Brush,
    ColorValue,
    StrokePath,
    StrokeRecord,
    StrokeRecorder,
    to_rgba,
)

logger = logging.getLogger(__name__)

COMMIT_MODES = ("end", "next_start")


class PointerPhase(enum.Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"


def _valid_coordinate(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(float(value))


class DrawingState:
    def __init__(
        self,
        brush: Optional[Brush] = None,
        *,
        tolerance: float = TOUCH_TOLERANCE,
        commit: str = "end",
    ) -> None:
        if commit not in COMMIT_MODES:
            raise ValueError(f"unknown commit mode: {commit!r}")
        self.brush = brush or Brush()
        self.commit = commit
        self.recorder = StrokeRecorder(tolerance=tolerance)
        self.strokes: List[StrokeRecord] = []

    # --- brush ---

    def set_brush_width(self, width: float) -> None:
        self.brush = self.brush.with_width(width)

    def set_brush_color(self, color: ColorValue) -> None:
        self.brush = self.brush.with_color(color)

    def set_brush_blur(self, style: Optional[BlurStyle]) -> None:
        self.brush = self.brush.with_blur(style)

    # --- gestures ---

    def _push(self, path: StrokePath, brush: Brush) -> StrokeRecord:
        record = StrokeRecord.from_path(path, brush)
        self.strokes.append(record)
        logger.debug("Recorded stroke %d with %d segments", len(self.strokes), record.segment_count)
        return record

    def begin_stroke(self, x: float, y: float, brush: Optional[Brush] = None) -> None:
        previous = self.recorder.start(x, y)
        if previous is not None:
            self._push(previous, brush or self.brush)

    def extend_stroke(self, x: float, y: float) -> bool:
        return self.recorder.move(x, y)

    def finish_stroke(self, x: float, y: float, brush: Optional[Brush] = None) -> Optional[StrokeRecord]:
        path = self.recorder.end(x, y)
        if path is None or self.commit != "end":
            return None
        return self._push(path, brush or self.brush)

    def commit_pending(self) -> Optional[StrokeRecord]:
        """Record a finished but not yet recorded path with the current brush."""
        path = self.recorder.path
        if self.recorder.drawing or path.is_empty or path.is_frozen:
            return None
        return self._push(path, self.brush)

    def handle_pointer(self, phase: PointerPhase, x: object, y: object) -> bool:
        """Apply one pointer event. Returns whether a repaint is needed."""
        if not (_valid_coordinate(x) and _valid_coordinate(y)):
            logger.debug("Ignoring %s event with invalid coordinates (%r, %r)", phase, x, y)
            return False
        px = float(x)
        py = float(y)
        if phase is PointerPhase.DOWN:
            self.begin_stroke(px, py)
            return True
        if not self.recorder.drawing:
            return False
        if phase is PointerPhase.MOVE:
            self.extend_stroke(px, py)
        else:
            self.finish_stroke(px, py)
        return True

    # --- history ---

    def undo(self) -> Optional[StrokeRecord]:
        if not self.strokes:
            logger.debug("Undo requested with empty history")
            return None
        return self.strokes.pop()

    def clear(self) -> None:
        self.strokes.clear()
        self.recorder.reset()
        clear_layer_cache()

    # --- rendering ---

    def render(self, surface: pygame.Surface) -> None:
        replay(surface, tuple(self.strokes))

    def render_preview(self, surface: pygame.Surface) -> None:
        """Draw the gesture in progress (or pending) with the live brush."""
        path = self.recorder.path
        if path.is_empty or path.is_frozen:
            return
        preview = StrokeRecord(path.commands, self.brush.width, self.brush.color, self.brush.blur)
        draw_record(surface, preview, cache=False)

    def flatten_to_image(self, width: int, height: int, background: ColorValue) -> pygame.Surface:
        surface = pygame.Surface((max(1, int(width)), max(1, int(height))))
        surface.fill(to_rgba(background)[:3])
        self.render(surface)
        return surface
