from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pygame  # type: ignore[import-not-found]


Color = tuple[int, int, int]

CATEGORY_COLORS: dict[str, Color] = {
    "enemy": (240, 110, 110),
    "player": (140, 150, 250),
    "heal": (110, 220, 130),
    "burn": (240, 160, 80),
    "item": (230, 200, 110),
    "info": (170, 175, 190),
}


def draw_text(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: tuple[int, int],
    color: Color = (240, 240, 240),
) -> None:
    img = font.render(text, True, color)
    screen.blit(img, pos)


def draw_bar(
    screen: pygame.Surface,
    rect: pygame.Rect,
    value: int,
    maximum: int,
    color: Color,
) -> None:
    pygame.draw.rect(screen, (30, 30, 36), rect, border_radius=6)
    if maximum > 0 and value > 0:
        fill = rect.copy()
        fill.width = max(1, int(rect.width * min(value, maximum) / maximum))
        pygame.draw.rect(screen, color, fill, border_radius=6)
    pygame.draw.rect(screen, (0, 0, 0), rect, width=2, border_radius=6)


@dataclass
class Button:
    rect: pygame.Rect
    text: str
    on_click: Callable[[], None]
    enabled: bool = True

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.enabled:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.on_click()
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        bg = (60, 60, 60) if self.enabled else (30, 30, 30)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        img = font.render(self.text, True, (240, 240, 240))
        r = img.get_rect(center=self.rect.center)
        screen.blit(img, r.topleft)
