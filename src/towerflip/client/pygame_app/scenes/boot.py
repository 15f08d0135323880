from __future__ import annotations

import traceback

import pygame  # type: ignore[import-not-found]
from loguru import logger

from towerflip.services.enemies import EnemyService
from towerflip.services.progress import ProgressService
from ..app import GameContext
from ..scene_base import SceneTransition, request_quit
from ..ui import Button, draw_text
from .main_menu import MainMenuScene


class BootScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._did_boot = False
        self._error: str | None = None
        self._quit_button: Button | None = None

    def handle_event(self, event: pygame.event.Event) -> None:
        if self._quit_button is not None:
            self._quit_button.handle_event(event)

    def update(self, dt: float) -> SceneTransition | None:
        if self._did_boot:
            return None
        self._did_boot = True
        try:
            self.ctx.content.validate_all()
            self.ctx.config = self.ctx.content.load_engine_config()
            self.ctx.themes = self.ctx.content.load_themes()

            self.ctx.paths.userdata_dir.mkdir(parents=True, exist_ok=True)
            self.ctx.progress = ProgressService(
                progress_path=self.ctx.paths.userdata_dir / "progress.json",
                schema=self.ctx.content.load_schema("progress.schema.json"),
            )
            self.ctx.enemies = EnemyService.from_env(self.ctx.content)

            online = self.ctx.enemies.online
            logger.info(f"Boot complete, enemy generation {'online' if online else 'offline'}")
            self.ctx.telemetry.log("boot", {"ok": True, "enemy_generation": online})
            return SceneTransition(MainMenuScene(self.ctx))
        except Exception as e:
            logger.exception("Boot failed")
            tb = traceback.format_exc(limit=8)
            self._error = f"{e}\n\n{tb}"
            self.ctx.telemetry.log("boot", {"ok": False, "error": str(e)})
            # Offer quit button
            self._quit_button = Button(
                rect=pygame.Rect(20, 700, 140, 44),
                text="Quit",
                on_click=request_quit,
            )
            return None

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((10, 10, 10))
        font = self.ctx.assets.fonts.big
        draw_text(screen, font, "Towerflip", (20, 20))

        font2 = self.ctx.assets.fonts.ui
        if self._error is None:
            draw_text(screen, font2, "Booting... validating data, loading progress.", (20, 80))
        else:
            draw_text(screen, font2, "BOOT ERROR", (20, 80), color=(240, 80, 80))
            y = 120
            for line in self._error.splitlines()[:22]:
                draw_text(screen, self.ctx.assets.fonts.small, line[:120], (20, y), color=(230, 230, 230))
                y += 18
            if self._quit_button is not None:
                self._quit_button.draw(screen, font2)
