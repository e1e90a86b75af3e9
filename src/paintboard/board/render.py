from __future__ import annotations

import functools
import math
from typing import Iterable, List, Optional, Tuple

import pygame
from PIL import Image, ImageChops, ImageFilter

from paintboard.board.strokes import (
    RGBA,
    BlurSpec,
    BlurStyle,
    LineTo,
    MoveTo,
    PathCommand,
    Point,
    QuadTo,
    StrokeRecord,
)

CURVE_STEP = 4.0
MAX_CURVE_STEPS = 64
LAYER_CACHE_SIZE = 512


def _quad_point(start: Point, control: Point, end: Point, t: float) -> Point:
    u = 1.0 - t
    return (
        u * u * start[0] + 2 * u * t * control[0] + t * t * end[0],
        u * u * start[1] + 2 * u * t * control[1] + t * t * end[1],
    )


def flatten_commands(commands: Iterable[PathCommand], step: float = CURVE_STEP) -> List[Point]:
    points: List[Point] = []
    for command in commands:
        if isinstance(command, MoveTo):
            points = [(command.x, command.y)]
        elif isinstance(command, LineTo):
            if not points:
                points.append((command.x, command.y))
            points.append((command.x, command.y))
        elif isinstance(command, QuadTo):
            start = points[-1] if points else (command.cx, command.cy)
            if not points:
                points.append(start)
            control = (command.cx, command.cy)
            end = (command.x, command.y)
            # Control polygon length bounds the curve length from above.
            length = math.dist(start, control) + math.dist(control, end)
            steps = min(MAX_CURVE_STEPS, max(1, int(math.ceil(length / step))))
            for idx in range(1, steps + 1):
                points.append(_quad_point(start, control, end, idx / steps))
    return points


def _round_point(point: Point) -> Tuple[int, int]:
    return (int(round(point[0])), int(round(point[1])))


def draw_stroke_path(surface: pygame.Surface, points: List[Point], color, width: float) -> None:
    """Draw a polyline with round caps and joins."""
    if len(points) < 2:
        return
    half = max(0.5, width * 0.5)
    radius = max(1, int(round(half)))
    for start, end in zip(points, points[1:]):
        dx = end[0] - start[0]
        dy = end[1] - start[1]
        length = math.hypot(dx, dy)
        if length < 1e-6:
            continue
        nx = -dy / length * half
        ny = dx / length * half
        quad = [
            (start[0] + nx, start[1] + ny),
            (start[0] - nx, start[1] - ny),
            (end[0] - nx, end[1] - ny),
            (end[0] + nx, end[1] + ny),
        ]
        pygame.draw.polygon(surface, color, [_round_point(point) for point in quad])
    for point in points:
        pygame.draw.circle(surface, color, _round_point(point), radius)


def _stroke_bounds(points: List[Point], width: float, blur: Optional[BlurSpec]) -> pygame.Rect:
    margin = width / 2 + 2
    if blur is not None:
        margin += blur.radius * 3
    xs = [point[0] for point in points]
    ys = [point[1] for point in points]
    left = int(math.floor(min(xs) - margin))
    top = int(math.floor(min(ys) - margin))
    right = int(math.ceil(max(xs) + margin))
    bottom = int(math.ceil(max(ys) + margin))
    return pygame.Rect(left, top, right - left, bottom - top)


def _blur_mask(mask: Image.Image, blur: BlurSpec) -> Image.Image:
    blurred = mask.filter(ImageFilter.GaussianBlur(blur.radius))
    if blur.style is BlurStyle.SOLID:
        return ImageChops.lighter(mask, blurred)
    if blur.style is BlurStyle.OUTER:
        return ImageChops.multiply(blurred, ImageChops.invert(mask))
    if blur.style is BlurStyle.INNER:
        return ImageChops.multiply(blurred, mask)
    return blurred


def _render_layer(points: List[Point], rect: pygame.Rect, record: StrokeRecord, rgba: RGBA) -> pygame.Surface:
    layer = pygame.Surface(rect.size, pygame.SRCALPHA)
    layer.fill((rgba[0], rgba[1], rgba[2], 0))
    local = [(x - rect.left, y - rect.top) for x, y in points]
    draw_stroke_path(layer, local, (rgba[0], rgba[1], rgba[2], 255), record.width)

    image = Image.frombytes("RGBA", rect.size, pygame.image.tobytes(layer, "RGBA"))
    mask = image.getchannel("A")
    if record.blur is not None:
        mask = _blur_mask(mask, record.blur)
    if rgba[3] < 255:
        alpha = rgba[3]
        mask = mask.point(lambda value: value * alpha // 255)
    image.putalpha(mask)
    return pygame.image.frombytes(image.tobytes(), rect.size, "RGBA")


@functools.lru_cache(maxsize=LAYER_CACHE_SIZE)
def _cached_layer(record: StrokeRecord, rect_key: Tuple[int, int, int, int]) -> pygame.Surface:
    # Records are frozen, so a layer stays valid for as long as its clip rect does.
    return _render_layer(flatten_commands(record.commands), pygame.Rect(rect_key), record, record.rgba)


def clear_layer_cache() -> None:
    _cached_layer.cache_clear()


def draw_record(surface: pygame.Surface, record: StrokeRecord, *, cache: bool = True) -> None:
    points = flatten_commands(record.commands)
    if len(points) < 2:
        return
    rgba = record.rgba
    if record.blur is None and rgba[3] == 255:
        draw_stroke_path(surface, points, rgba[:3], record.width)
        return
    rect = _stroke_bounds(points, record.width, record.blur).clip(surface.get_rect())
    if rect.width <= 0 or rect.height <= 0:
        return
    if cache:
        layer = _cached_layer(record, (rect.left, rect.top, rect.width, rect.height))
    else:
        layer = _render_layer(points, rect, record, rgba)
    surface.blit(layer, rect.topleft)


def replay(surface: pygame.Surface, records: Iterable[StrokeRecord]) -> None:
    for record in records:
        draw_record(surface, record)
