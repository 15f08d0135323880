from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from towerflip.services.content import CardTheme

from ..app import GameContext
from ..scene_base import Scene, SceneTransition
from ..ui import Button, draw_text


class StoreScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._next: SceneTransition | None = None
        self.message: str = ""

        self.btn_back = Button(rect=pygame.Rect(20, 20, 120, 40), text="Back", on_click=self._on_back)
        self._theme_buttons: list[tuple[CardTheme, Button]] = []
        themes = self.ctx.themes.ordered() if self.ctx.themes is not None else []
        for i, theme in enumerate(themes):
            btn = Button(
                rect=pygame.Rect(760, 110 + i * 120, 200, 48),
                text="",
                on_click=lambda t=theme: self._on_theme(t),
            )
            self._theme_buttons.append((theme, btn))

    def _on_back(self) -> None:
        from .main_menu import MainMenuScene

        self._go(MainMenuScene(self.ctx))

    def _go(self, scene: Scene) -> None:
        self._next = SceneTransition(scene)

    def _on_theme(self, theme: CardTheme) -> None:
        prog = self.ctx.progress
        if prog is None:
            return
        if theme.id in prog.progress.unlocked_themes:
            prog.select_theme(theme.id)
            self.message = f"Selected {theme.name}."
            return
        if prog.buy_theme(theme):
            self.ctx.telemetry.log("theme_bought", {"theme": theme.id, "price": theme.price})
            self.message = f"Unlocked {theme.name}!"
        else:
            self.message = "Not enough coins."

    def handle_event(self, event: pygame.event.Event) -> None:
        self.btn_back.handle_event(event)
        for _theme, btn in self._theme_buttons:
            if btn.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        prog = self.ctx.progress
        for theme, btn in self._theme_buttons:
            if prog is None:
                btn.enabled = False
                continue
            unlocked = theme.id in prog.progress.unlocked_themes
            selected = prog.progress.selected_theme_id == theme.id
            if selected:
                btn.text, btn.enabled = "Equipped", False
            elif unlocked:
                btn.text, btn.enabled = "Equip", True
            else:
                btn.text, btn.enabled = f"Buy ({theme.price})", prog.can_afford(theme)
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((14, 12, 20))
        fonts = self.ctx.assets.fonts
        self.btn_back.draw(screen, fonts.ui)
        draw_text(screen, fonts.big, "Card Themes", (170, 24))
        if self.ctx.progress is not None:
            draw_text(screen, fonts.ui, f"Coins: {self.ctx.progress.progress.coins}", (820, 30))

        for i, (theme, btn) in enumerate(self._theme_buttons):
            y = 100 + i * 120
            swatch = pygame.Rect(60, y, 70, 90)
            pygame.draw.rect(screen, theme.back_color, swatch, border_radius=8)
            pygame.draw.rect(screen, theme.accent_color, swatch, width=3, border_radius=8)
            draw_text(screen, fonts.ui, theme.name, (150, y + 10))
            draw_text(screen, fonts.small, theme.description, (150, y + 42), color=(180, 180, 200))
            btn.draw(screen, fonts.ui)

        if self.message:
            draw_text(screen, fonts.ui, self.message, (60, 700), color=(240, 200, 120))
