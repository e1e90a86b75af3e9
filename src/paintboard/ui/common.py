from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import pygame

from paintboard.board.drawing import PointerPhase


Color = Tuple[int, int, int]
Point = Tuple[int, int]

FINGERDOWN = getattr(pygame, "FINGERDOWN", None)
FINGERMOTION = getattr(pygame, "FINGERMOTION", None)
FINGERUP = getattr(pygame, "FINGERUP", None)
FINGER_EVENTS = {event for event in (FINGERDOWN, FINGERMOTION, FINGERUP) if event is not None}


@dataclass
class Button:
    rect: pygame.Rect
    label: str = ""
    fill: Optional[Color] = None
    border_color: Optional[Color] = (30, 30, 30)
    border_width: int = 0

    def draw(self, surface: pygame.Surface, font: Optional[pygame.font.Font] = None) -> None:
        if self.fill is not None:
            pygame.draw.rect(surface, self.fill, self.rect, border_radius=12)
        if self.border_color is not None and self.border_width > 0:
            pygame.draw.rect(
                surface,
                self.border_color,
                self.rect,
                width=self.border_width,
                border_radius=12,
            )
        if self.label and font is not None:
            text = font.render(self.label, True, (20, 20, 20))
            text_rect = text.get_rect(center=self.rect.center)
            surface.blit(text, text_rect)

    def hit(self, pos: Tuple[int, int]) -> bool:
        return self.rect.collidepoint(pos)


@dataclass
class Slider:
    rect: pygame.Rect
    minimum: float
    maximum: float
    value: float

    def value_at(self, pos: Tuple[int, int]) -> float:
        span = max(1, self.rect.width)
        ratio = (pos[0] - self.rect.left) / span
        ratio = max(0.0, min(1.0, ratio))
        return self.minimum + (self.maximum - self.minimum) * ratio

    def knob_x(self) -> int:
        span = self.maximum - self.minimum
        ratio = 0.0 if span <= 0 else (self.value - self.minimum) / span
        return self.rect.left + int(round(self.rect.width * max(0.0, min(1.0, ratio))))

    def draw(self, surface: pygame.Surface) -> None:
        track = pygame.Rect(self.rect.left, self.rect.centery - 3, self.rect.width, 6)
        pygame.draw.rect(surface, (190, 190, 190), track, border_radius=3)
        pygame.draw.circle(surface, (60, 60, 60), (self.knob_x(), self.rect.centery), max(6, self.rect.height // 3))

    def hit(self, pos: Tuple[int, int]) -> bool:
        return self.rect.collidepoint(pos)


def create_window(size: Tuple[int, int], *, fullscreen: bool = False) -> Tuple[pygame.Surface, pygame.Rect]:
    pygame.init()
    if fullscreen:
        screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
    else:
        screen = pygame.display.set_mode(size)
    pygame.display.set_caption("PaintBoard")
    pygame.mouse.set_visible(True)
    return screen, screen.get_rect()


def is_primary_pointer_event(event: pygame.event.Event, *, is_down: bool) -> bool:
    expected_type = pygame.MOUSEBUTTONDOWN if is_down else pygame.MOUSEBUTTONUP
    if event.type == expected_type:
        # Some touch stacks can emit emulated mouse events with button 0.
        button = getattr(event, "button", 1)
        if button in {0, 1}:
            return True
        return bool(getattr(event, "touch", False))
    finger_type = FINGERDOWN if is_down else FINGERUP
    return finger_type is not None and event.type == finger_type


def pointer_phase(event: pygame.event.Event) -> Optional[PointerPhase]:
    if is_primary_pointer_event(event, is_down=True):
        return PointerPhase.DOWN
    if is_primary_pointer_event(event, is_down=False):
        return PointerPhase.UP
    if event.type == pygame.MOUSEMOTION or (FINGERMOTION is not None and event.type == FINGERMOTION):
        return PointerPhase.MOVE
    return None


def pointer_event_pos(event: pygame.event.Event, screen_rect: pygame.Rect) -> Optional[Point]:
    if hasattr(event, "pos"):
        return event.pos
    if event.type in FINGER_EVENTS:
        return (
            int(event.x * screen_rect.width),
            int(event.y * screen_rect.height),
        )
    return None
