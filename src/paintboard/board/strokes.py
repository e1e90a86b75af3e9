"""Stroke data model and the gesture recorder.

A gesture is captured as a :class:`StrokePath`: one move-to followed by
quadratic segments through the anchor points and a closing straight segment.
Finished paths are frozen into :class:`StrokeRecord` objects together with the
brush that was active when they were committed.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]
ColorValue = Union[int, Sequence[int]]

TOUCH_TOLERANCE = 4.0


def to_rgba(color: ColorValue) -> RGBA:
    """Normalise a packed ``0xAARRGGBB`` int or an ``(r, g, b[, a])`` sequence."""
    if isinstance(color, (bool, str, bytes)):
        raise ValueError(f"invalid color: {color!r}")
    if isinstance(color, int):
        if not 0 <= color <= 0xFFFFFFFF:
            raise ValueError(f"packed color out of range: {color:#x}")
        return (
            (color >> 16) & 0xFF,
            (color >> 8) & 0xFF,
            color & 0xFF,
            (color >> 24) & 0xFF,
        )
    try:
        channels = [int(channel) for channel in color]
    except (TypeError, ValueError):
        raise ValueError(f"invalid color: {color!r}") from None
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or any(not 0 <= channel <= 255 for channel in channels):
        raise ValueError(f"invalid color: {color!r}")
    return (channels[0], channels[1], channels[2], channels[3])


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class QuadTo:
    cx: float
    cy: float
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


PathCommand = Union[MoveTo, QuadTo, LineTo]


class StrokePath:
    """Mutable path under construction by the active gesture."""

    def __init__(self) -> None:
        self._commands: List[PathCommand] = []
        self._frozen = False

    def move_to(self, x: float, y: float) -> None:
        self._commands.append(MoveTo(x, y))

    def quad_to(self, cx: float, cy: float, x: float, y: float) -> None:
        self._commands.append(QuadTo(cx, cy, x, y))

    def line_to(self, x: float, y: float) -> None:
        self._commands.append(LineTo(x, y))

    def reset(self) -> None:
        self._commands = []
        self._frozen = False

    @property
    def commands(self) -> Tuple[PathCommand, ...]:
        return tuple(self._commands)

    @property
    def segment_count(self) -> int:
        return sum(1 for command in self._commands if not isinstance(command, MoveTo))

    @property
    def is_empty(self) -> bool:
        return self.segment_count == 0

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def current_point(self) -> Optional[Point]:
        if not self._commands:
            return None
        last = self._commands[-1]
        return (last.x, last.y)

    def freeze(self) -> Tuple[PathCommand, ...]:
        """Mark the path as recorded and return an immutable copy of it."""
        self._frozen = True
        return tuple(self._commands)


class BlurStyle(enum.Enum):
    NORMAL = "normal"
    SOLID = "solid"
    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True)
class BlurSpec:
    radius: float
    style: BlurStyle

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise ValueError(f"blur radius must be positive, got {self.radius!r}")


@dataclass(frozen=True)
class Brush:
    width: float = 20.0
    color: ColorValue = 0xFF888888
    blur: Optional[BlurSpec] = None

    def __post_init__(self) -> None:
        if isinstance(self.width, bool) or not isinstance(self.width, (int, float)):
            raise ValueError(f"brush width must be a number, got {self.width!r}")
        if not (math.isfinite(self.width) and self.width > 0):
            raise ValueError(f"brush width must be positive, got {self.width!r}")
        to_rgba(self.color)
        if isinstance(self.color, list):
            object.__setattr__(self, "color", tuple(self.color))

    @property
    def rgba(self) -> RGBA:
        return to_rgba(self.color)

    def with_width(self, width: float) -> "Brush":
        return replace(self, width=width)

    def with_color(self, color: ColorValue) -> "Brush":
        return replace(self, color=color)

    def with_blur(self, style: Optional[BlurStyle]) -> "Brush":
        # The blur radius follows the width at the time the blur is chosen.
        if style is None:
            return replace(self, blur=None)
        return replace(self, blur=BlurSpec(radius=float(self.width), style=style))


@dataclass(frozen=True)
class StrokeRecord:
    commands: Tuple[PathCommand, ...]
    width: float
    color: ColorValue
    blur: Optional[BlurSpec] = None

    def __post_init__(self) -> None:
        if isinstance(self.color, list):
            object.__setattr__(self, "color", tuple(self.color))

    @classmethod
    def from_path(cls, path: StrokePath, brush: Brush) -> "StrokeRecord":
        return cls(commands=path.freeze(), width=brush.width, color=brush.color, blur=brush.blur)

    @property
    def rgba(self) -> RGBA:
        return to_rgba(self.color)

    @property
    def segment_count(self) -> int:
        return sum(1 for command in self.commands if not isinstance(command, MoveTo))


class StrokeRecorder:
    """Turns pointer samples into a smoothed quadratic path.

    ``start`` opens a new path, ``move`` adds a curve segment once the pointer
    has travelled at least ``tolerance`` from the anchor on either axis, and
    ``end`` closes the path with a straight segment to the release point.
    """

    def __init__(self, tolerance: float = TOUCH_TOLERANCE) -> None:
        self.tolerance = tolerance
        self.path = StrokePath()
        self.anchor: Optional[Point] = None
        self.drawing = False

    def start(self, x: float, y: float) -> Optional[StrokePath]:
        """Begin a gesture and hand back the previous path if it still needs recording."""
        previous = self.path
        self.path = StrokePath()
        self.path.move_to(x, y)
        self.anchor = (x, y)
        self.drawing = True
        if previous.is_empty or previous.is_frozen:
            return None
        return previous

    def move(self, x: float, y: float) -> bool:
        if not self.drawing or self.anchor is None:
            return False
        anchor_x, anchor_y = self.anchor
        dx = abs(x - anchor_x)
        dy = abs(y - anchor_y)
        if max(dx, dy) < self.tolerance:
            return False
        self.path.quad_to(anchor_x, anchor_y, (x + anchor_x) / 2, (y + anchor_y) / 2)
        self.anchor = (x, y)
        return True

    def end(self, x: float, y: float) -> Optional[StrokePath]:
        if not self.drawing:
            return None
        self.path.line_to(x, y)
        self.drawing = False
        return self.path

    def reset(self) -> None:
        self.path = StrokePath()
        self.anchor = None
        self.drawing = False
