from __future__ import annotations

from datetime import date

import pygame  # type: ignore[import-not-found]

from towerflip.engine.battle import RunState, flip
from towerflip.engine.run import advance_floor, floors_reached, share_text, take_unbanked_coins
from towerflip.engine.types import Card, Entity, Side, effect_family

from ..app import GameContext
from ..asset_manager import PygameCueSink
from ..scene_base import Scene, SceneTransition
from ..ui import CATEGORY_COLORS, Button, draw_bar, draw_text

CARD_W, CARD_H, CARD_GAP = 104, 120, 12
BOARD_X, BOARD_Y, BOARD_COLS = 470, 110, 4

FAMILY_COLORS = {
    "attack": (200, 70, 70),
    "heal": (70, 180, 100),
    "shield": (80, 130, 210),
    "coin": (220, 180, 60),
}


class BattleScene:
    def __init__(self, ctx: GameContext, state: RunState, cues: PygameCueSink) -> None:
        self.ctx = ctx
        self.state = state
        self.cues = cues

        self._next: SceneTransition | None = None
        self._message: str = ""
        self._share: str | None = None
        self._settled_floor: int | None = None

        self.btn_menu = Button(rect=pygame.Rect(860, 20, 140, 40), text="Menu", on_click=self._on_menu)
        self.btn_ascend = Button(rect=pygame.Rect(360, 420, 300, 56), text="Ascend", on_click=self._on_ascend)
        self.btn_share = Button(rect=pygame.Rect(360, 490, 300, 56), text="Share", on_click=self._on_share)
        self.btn_retry = Button(rect=pygame.Rect(360, 560, 300, 56), text="Try Again", on_click=self._on_retry)

    def _go(self, scene: Scene) -> None:
        self._next = SceneTransition(scene)

    def _on_menu(self) -> None:
        from .main_menu import MainMenuScene

        self._go(MainMenuScene(self.ctx))

    def _on_retry(self) -> None:
        from .loading import LoadingScene

        self._go(LoadingScene(self.ctx))

    def _on_ascend(self) -> None:
        res = advance_floor(self.state)
        if not res.ok:
            self._message = res.error or ""
            return
        self._message = ""
        self.ctx.telemetry.run_event("floor_started", self.state)

    def _on_share(self) -> None:
        self._share = share_text(self.state, date.today().isoformat())
        self.ctx.telemetry.log("share", {"text": self._share})

    # -------- Input --------
    def handle_event(self, event: pygame.event.Event) -> None:
        if self.btn_menu.handle_event(event):
            return
        if self.state.game_over:
            if self.state.phase == "FLOOR_COMPLETE":
                self.btn_ascend.handle_event(event)
            else:
                self.btn_share.handle_event(event)
                if self.state.phase == "RUN_DEFEAT":
                    self.btn_retry.handle_event(event)
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            pos = self._hit_test_board(event.pos)
            if pos is not None:
                res = flip(self.state, pos)
                self._message = "" if res.ok else (res.error or "")

    def _card_rect(self, index: int) -> pygame.Rect:
        col = index % BOARD_COLS
        row = index // BOARD_COLS
        return pygame.Rect(BOARD_X + col * (CARD_W + CARD_GAP), BOARD_Y + row * (CARD_H + CARD_GAP), CARD_W, CARD_H)

    def _hit_test_board(self, pos: tuple[int, int]) -> int | None:
        for i in range(len(self.state.board)):
            if self._card_rect(i).collidepoint(pos):
                return i
        return None

    # -------- Update --------
    def update(self, dt: float) -> SceneTransition | None:
        self.state.scheduler.advance(dt)
        self.cues.update(dt)
        self._settle_floor()
        return self._next

    def _settle_floor(self) -> None:
        """Persist floor results once, when combat on the current floor ends."""
        state = self.state
        if not state.game_over or self._settled_floor == state.floor_index:
            return
        self._settled_floor = state.floor_index
        prog = self.ctx.progress
        today = date.today().isoformat()
        if prog is not None:
            prog.record_floor_reached(floors_reached(state))
            if state.phase != "RUN_DEFEAT":
                prog.bank_floor(state.opponent, take_unbanked_coins(state), today)
        if state.phase == "FLOOR_COMPLETE":
            self.ctx.telemetry.run_event("floor_cleared", state)
        else:
            self.ctx.telemetry.run_event("run_ended", state)

    # -------- Render --------
    def render(self, screen: pygame.Surface) -> None:
        screen.fill((8, 10, 14))
        fonts = self.ctx.assets.fonts
        state = self.state

        self.btn_menu.draw(screen, fonts.ui)
        draw_text(screen, fonts.big, f"Floor {state.floor_index + 1} / {len(state.opponents)}", (40, 20))

        self._draw_entity(screen, state.opponent, "opponent", y=70)
        self._draw_entity(screen, state.party, "party", y=230)

        if state.combo > 1:
            draw_text(screen, fonts.big, f"Combo x{state.combo}", (40, 390), color=(250, 200, 90))
        self._draw_turn_indicator(screen)
        self._draw_log(screen)
        self._draw_board(screen)

        if self._message:
            draw_text(screen, fonts.small, self._message, (BOARD_X, 70), color=(240, 200, 120))
        if state.game_over:
            self._draw_overlay(screen)

    def _draw_entity(self, screen: pygame.Surface, e: Entity, side: Side, y: int) -> None:
        fonts = self.ctx.assets.fonts
        rect = pygame.Rect(30, y, 400, 140)
        anim = self.cues.animation_for(side)
        border = (240, 80, 80) if anim == "damage" else (0, 0, 0)
        pygame.draw.rect(screen, (24, 24, 32), rect, border_radius=10)
        pygame.draw.rect(screen, border, rect, width=3, border_radius=10)
        label = f"{e.visual} {e.name}" if e.visual else e.name
        draw_text(screen, fonts.ui, label, (rect.x + 12, rect.y + 10))
        if side == "opponent":
            draw_text(screen, fonts.small, e.difficulty.title(), (rect.right - 80, rect.y + 12), color=(200, 160, 160))
        draw_bar(screen, pygame.Rect(rect.x + 12, rect.y + 44, 376, 22), e.current_hp, e.max_hp, (200, 60, 60))
        draw_text(screen, fonts.small, f"HP {e.current_hp}/{e.max_hp}", (rect.x + 12, rect.y + 74))
        if e.shield > 0:
            draw_text(screen, fonts.small, f"Shield {e.shield}", (rect.x + 130, rect.y + 74), color=(140, 180, 250))
        if side == "party":
            draw_text(screen, fonts.small, f"Coins {e.coins}", (rect.x + 250, rect.y + 74), color=(230, 200, 90))
        if e.description:
            draw_text(screen, fonts.small, e.description[:60], (rect.x + 12, rect.y + 104), color=(150, 150, 170))

    def _draw_turn_indicator(self, screen: pygame.Surface) -> None:
        phase = self.state.phase
        if phase == "PARTY_TURN":
            text, color = "Your turn", (140, 150, 250)
        elif phase in ("OPPONENT_THINKING", "OPPONENT_ACTING"):
            text, color = f"{self.state.opponent.name} is thinking...", (240, 110, 110)
        else:
            return
        if self.state.shuffling:
            text = "The board shifts..."
        draw_text(screen, self.ctx.assets.fonts.ui, text, (BOARD_X, 40), color=color)

    def _draw_log(self, screen: pygame.Surface) -> None:
        font = self.ctx.assets.fonts.small
        y = 430
        for entry in self.state.log[-14:]:
            draw_text(screen, font, entry.message[:64], (40, y), color=CATEGORY_COLORS.get(entry.category, (200, 200, 200)))
            y += 20

    def _draw_board(self, screen: pygame.Surface) -> None:
        if self.state.shuffling:
            return
        prog = self.ctx.progress
        theme = None
        if self.ctx.themes is not None:
            theme = self.ctx.themes.get(prog.progress.selected_theme_id if prog is not None else "default")
        back = theme.back_color if theme is not None else (52, 58, 72)
        accent = theme.accent_color if theme is not None else (120, 130, 150)
        for i, card in enumerate(self.state.board):
            self._draw_card(screen, card, self._card_rect(i), back, accent)

    def _draw_card(
        self,
        screen: pygame.Surface,
        card: Card,
        rect: pygame.Rect,
        back: tuple[int, int, int],
        accent: tuple[int, int, int],
    ) -> None:
        fonts = self.ctx.assets.fonts
        if not card.is_flipped and not card.is_matched:
            pygame.draw.rect(screen, back, rect, border_radius=10)
            pygame.draw.rect(screen, accent, rect, width=3, border_radius=10)
            return
        family = effect_family(card.effect)
        color = FAMILY_COLORS[family]
        if card.is_matched:
            color = tuple(c // 3 for c in color)  # type: ignore[assignment]
        pygame.draw.rect(screen, color, rect, border_radius=10)
        pygame.draw.rect(screen, (0, 0, 0), rect, width=2, border_radius=10)
        value = self.state.config.base_value(card.effect)
        draw_text(screen, fonts.ui, family.title(), (rect.x + 10, rect.y + 14))
        draw_text(screen, fonts.big, str(value), (rect.x + 10, rect.y + 52))
        if card.is_wildcard:
            draw_text(screen, fonts.small, "WILD", (rect.x + 10, rect.bottom - 22))

    def _draw_overlay(self, screen: pygame.Surface) -> None:
        overlay = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 170))
        screen.blit(overlay, (0, 0))
        fonts = self.ctx.assets.fonts
        phase = self.state.phase

        if phase == "FLOOR_COMPLETE":
            draw_text(screen, fonts.big, "Floor cleared", (400, 320))
            draw_text(screen, fonts.ui, f"Resting: +{self.state.config.rest_heal} HP", (420, 370))
            self.btn_ascend.draw(screen, fonts.ui)
            return

        title = "Tower Conquered!" if phase == "RUN_VICTORY" else "You have fallen"
        draw_text(screen, fonts.big, title, (380, 320))
        self.btn_share.draw(screen, fonts.ui)
        if phase == "RUN_DEFEAT":
            self.btn_retry.draw(screen, fonts.ui)
        if self._share is not None:
            y = 630
            for line in self._share.splitlines():
                draw_text(screen, fonts.small, line, (380, y))
                y += 18
