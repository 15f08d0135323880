from __future__ import annotations

import random
from datetime import date

import pygame  # type: ignore[import-not-found]

from towerflip.engine.run import new_run
from towerflip.engine.scheduler import Scheduler

from ..app import GameContext
from ..asset_manager import PygameCueSink
from ..scene_base import SceneTransition
from ..ui import draw_text
from .battle import BattleScene


def today_string() -> str:
    return date.today().isoformat()


def start_run_scene(ctx: GameContext) -> BattleScene | None:
    if ctx.config is None or ctx.enemies is None:
        return None
    opponents = ctx.enemies.fetch_floor_entities(today_string())
    cues = PygameCueSink(ctx.assets)
    seed = random.randrange(1, 2**31 - 1)
    state = new_run(opponents, seed=seed, config=ctx.config, scheduler=Scheduler(), cues=cues)
    ctx.telemetry.run_event("run_started", state)
    return BattleScene(ctx, state, cues)


class LoadingScene:
    """Shows the loading screen for one frame, then fetches the floor roster.

    The fetch blocks; the enemy service bounds it with a request timeout.
    """

    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._rendered = False

    def handle_event(self, event: pygame.event.Event) -> None:
        return None

    def update(self, dt: float) -> SceneTransition | None:
        if not self._rendered:
            return None
        scene = start_run_scene(self.ctx)
        if scene is None:
            from .main_menu import MainMenuScene

            return SceneTransition(MainMenuScene(self.ctx))
        return SceneTransition(scene)

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((10, 10, 14))
        fonts = self.ctx.assets.fonts
        draw_text(screen, fonts.big, "Climbing the tower...", (60, 40))
        if self.ctx.enemies is not None and self.ctx.enemies.online:
            draw_text(screen, fonts.ui, "Summoning the floor's inhabitants.", (60, 100), color=(170, 175, 190))
        self._rendered = True
