from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from ..app import GameContext
from ..scene_base import Scene, SceneTransition, request_quit
from ..ui import Button, draw_text
from .bestiary import BestiaryScene
from .loading import LoadingScene, today_string
from .store import StoreScene


class MainMenuScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._buttons: list[Button] = []
        self._build_ui()

    def _build_ui(self) -> None:
        def go(scene: Scene) -> None:
            self._next = SceneTransition(scene)

        self._next: SceneTransition | None = None
        x = 60
        y = 180
        w = 320
        h = 56
        gap = 14

        self.btn_daily = Button(
            rect=pygame.Rect(x + w + 40, y, 200, h),
            text="Daily coin",
            on_click=self._on_claim_daily,
        )
        self._buttons = [
            Button(
                rect=pygame.Rect(x, y, w, h),
                text="Enter the Tower",
                on_click=self._on_start_run,
            ),
            Button(
                rect=pygame.Rect(x, y + (h + gap) * 1, w, h),
                text="Store",
                on_click=lambda: go(StoreScene(self.ctx)),
            ),
            Button(
                rect=pygame.Rect(x, y + (h + gap) * 2, w, h),
                text="Bestiary",
                on_click=lambda: go(BestiaryScene(self.ctx)),
            ),
            Button(
                rect=pygame.Rect(x, y + (h + gap) * 3, w, h),
                text="Quit",
                on_click=request_quit,
            ),
            self.btn_daily,
        ]

    def _on_claim_daily(self) -> None:
        prog = self.ctx.progress
        if prog is not None and prog.claim_daily(today_string()):
            self.ctx.telemetry.log("daily_claim", {"coins": prog.progress.coins})

    def _on_start_run(self) -> None:
        self._next = SceneTransition(LoadingScene(self.ctx))

    def handle_event(self, event: pygame.event.Event) -> None:
        for b in self._buttons:
            if b.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        prog = self.ctx.progress
        self.btn_daily.enabled = prog is not None and prog.can_claim_daily(today_string())
        self.btn_daily.text = "Daily coin" if self.btn_daily.enabled else "Claimed"
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((12, 12, 18))
        fonts = self.ctx.assets.fonts
        draw_text(screen, fonts.big, "Towerflip", (60, 40))
        prog = self.ctx.progress
        if prog is not None:
            p = prog.progress
            draw_text(screen, fonts.ui, f"Coins: {p.coins}   Highest floor: {p.tower_level}", (60, 100))
            draw_text(screen, fonts.ui, f"Foes recorded: {len(p.bestiary)}", (60, 126))
        for b in self._buttons:
            b.draw(screen, fonts.ui)
