from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from ..app import GameContext
from ..scene_base import SceneTransition
from ..ui import Button, draw_text


class BestiaryScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._next: SceneTransition | None = None
        self.btn_back = Button(rect=pygame.Rect(20, 20, 120, 40), text="Back", on_click=self._on_back)

    def _on_back(self) -> None:
        from .main_menu import MainMenuScene

        self._next = SceneTransition(MainMenuScene(self.ctx))

    def handle_event(self, event: pygame.event.Event) -> None:
        self.btn_back.handle_event(event)

    def update(self, dt: float) -> SceneTransition | None:
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((12, 14, 18))
        fonts = self.ctx.assets.fonts
        self.btn_back.draw(screen, fonts.ui)
        draw_text(screen, fonts.big, "Bestiary", (170, 24))

        entries = self.ctx.progress.progress.bestiary if self.ctx.progress is not None else []
        if not entries:
            draw_text(screen, fonts.ui, "No foes recorded yet. Clear a floor to fill these pages.", (60, 110))
            return
        for i, e in enumerate(entries[:12]):
            y = 90 + i * 52
            draw_text(screen, fonts.ui, f"{e.visual} {e.name}", (60, y))
            draw_text(
                screen,
                fonts.small,
                f"{e.difficulty.title()}  {e.max_hp} HP  first met {e.date_encountered or '?'}",
                (60, y + 24),
                color=(170, 170, 190),
            )
            if e.description:
                draw_text(screen, fonts.small, e.description, (420, y + 4), color=(200, 200, 210))
