from __future__ import annotations

import random
from dataclasses import dataclass, field

from .ai import OpponentModel
from .combat import apply_effect
from .config import EngineConfig
from .cues import CueSink, NullCueSink
from .deck import build_board
from .match import (
    evaluate_pair,
    is_exhausted,
    mark_matched,
    next_combo,
    reveal,
    selection_error,
    turn_face_down,
)
from .scheduler import Scheduler
from .types import (
    OPPONENT_PHASES,
    TERMINAL_PHASES,
    Card,
    EffectKind,
    Entity,
    GamePhase,
    LogCategory,
    LogEntry,
    Side,
)


@dataclass
class StepResult:
    ok: bool
    error: str | None = None


@dataclass
class RunState:
    """Everything one run owns.

    Entities persist for the whole run; board, selection, combo and the
    opponent's memory are replaced per floor (board and memory also per
    reshuffle). `game_over` latches when a floor's combat ends and is what
    every deferred continuation checks first.
    """

    config: EngineConfig
    seed: int
    rng: random.Random
    scheduler: Scheduler
    party: Entity
    opponents: list[Entity]
    cues: CueSink = field(default_factory=NullCueSink)
    floor_index: int = 0
    phase: GamePhase = "LOADING"
    board: list[Card] = field(default_factory=list)
    selection: list[int] = field(default_factory=list)
    combo: int = 0
    shuffling: bool = False
    game_over: bool = False
    generation: int = 0
    banked_coins: int = 0
    ai: OpponentModel = field(default_factory=lambda: OpponentModel.for_difficulty("EASY"))
    log: list[LogEntry] = field(default_factory=list)
    history: list[str] = field(default_factory=list)

    @property
    def opponent(self) -> Entity:
        return self.opponents[self.floor_index]

    @opponent.setter
    def opponent(self, value: Entity) -> None:
        self.opponents[self.floor_index] = value

    @property
    def is_final_floor(self) -> bool:
        return self.floor_index >= len(self.opponents) - 1

    @property
    def acting_side(self) -> Side | None:
        if self.phase == "PARTY_TURN":
            return "party"
        if self.phase in OPPONENT_PHASES:
            return "opponent"
        return None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


def add_log(state: RunState, message: str, category: LogCategory = "info") -> None:
    state.log.append(LogEntry(message=message, category=category))


def _stale(state: RunState, generation: int) -> bool:
    return state.game_over or generation != state.generation


# -------- Party input --------
def flip(state: RunState, position: int) -> StepResult:
    """Party flips the card at `position`. Rejected requests change nothing."""
    if state.game_over:
        return StepResult(ok=False, error="Combat is over.")
    if state.phase != "PARTY_TURN":
        return StepResult(ok=False, error="Not your turn.")
    if state.shuffling:
        return StepResult(ok=False, error="The board is reshuffling.")
    if is_exhausted(state.board):
        return StepResult(ok=False, error="No pairs remain on the board.")
    err = selection_error(state.board, state.selection, position)
    if err is not None:
        return StepResult(ok=False, error=err)

    state.selection.append(position)
    state.cues.play_cue("tap")
    state.scheduler.call_later(state.config.delays.tap, _party_reveal, state, state.generation, position)
    return StepResult(ok=True)


def _party_reveal(state: RunState, generation: int, position: int) -> None:
    if _stale(state, generation) or position not in state.selection:
        return
    card = reveal(state.board, position)
    state.cues.play_cue("flip")
    state.ai.observe(position, card)

    if len(state.selection) < 2:
        return
    if not all(state.board[i].is_flipped for i in state.selection):
        return
    _schedule_pair(state, "party", state.selection[0], state.selection[1])


def _schedule_pair(state: RunState, side: Side, first: int, second: int) -> None:
    delays = state.config.delays
    result = evaluate_pair(state.board, first, second)
    if result.matched:
        assert result.effect is not None
        delay = delays.party_match if side == "party" else delays.opponent_match
        state.scheduler.call_later(
            delay, _resolve_match, state, state.generation, first, second, result.effect, side
        )
    else:
        state.scheduler.call_later(delays.settle, _resolve_mismatch, state, state.generation, first, second, side)


# -------- Pair resolution --------
def _resolve_match(
    state: RunState, generation: int, first: int, second: int, effect: EffectKind, side: Side
) -> None:
    if _stale(state, generation):
        return
    if state.board[first].is_matched or state.board[second].is_matched:
        return

    mark_matched(state.board, (first, second))
    state.selection.clear()
    state.ai.forget((first, second))

    if side == "party":
        state.cues.play_cue("match")
        if state.combo > 0:
            state.cues.play_cue("combo")
    else:
        state.cues.play_cue("enemy_match")

    _apply_combat(state, effect, side)
    state.combo = next_combo(state.combo, matched=True)

    if check_combat_end(state):
        return

    exhausted = is_exhausted(state.board)
    if exhausted:
        state.scheduler.call_later(state.config.delays.reshuffle, _auto_reshuffle, state, state.generation)

    if side == "opponent":
        # Matching keeps the turn; think again before the next pair.
        state.phase = "OPPONENT_THINKING"
        if not exhausted:
            state.scheduler.call_later(
                state.config.delays.opponent_chain, _opponent_move, state, state.generation
            )


def _resolve_mismatch(state: RunState, generation: int, first: int, second: int, side: Side) -> None:
    if _stale(state, generation):
        return
    turn_face_down(state.board, (first, second))
    state.selection.clear()
    state.cues.play_cue("flip")
    state.combo = next_combo(state.combo, matched=False)

    if side == "party":
        _enter_opponent_thinking(state)
    else:
        state.phase = "PARTY_TURN"


def _apply_combat(state: RunState, effect: EffectKind, side: Side) -> None:
    outcome = apply_effect(effect, side, state.combo, state.party, state.opponent, state.config)
    state.party = outcome.party
    state.opponent = outcome.opponent
    add_log(state, outcome.message, outcome.category)
    if outcome.history_symbol is not None:
        state.history.append(outcome.history_symbol)
    if outcome.cue is not None:
        state.cues.play_cue(outcome.cue)
    if outcome.animation is not None:
        state.cues.trigger_animation(side, outcome.animation)
    if outcome.cue == "attack":
        state.cues.trigger_animation("opponent" if side == "party" else "party", "damage")


def check_combat_end(state: RunState) -> bool:
    """Latch the end of combat. Party death is checked first, so a double KO is a defeat."""
    if state.game_over:
        return True
    if state.party.current_hp <= 0:
        state.game_over = True
        state.phase = "RUN_DEFEAT"
        state.cues.play_cue("defeat")
        add_log(state, f"{state.party.name} has fallen on floor {state.floor_index + 1}.", "enemy")
        return True
    if state.opponent.current_hp <= 0:
        state.game_over = True
        state.phase = "RUN_VICTORY" if state.is_final_floor else "FLOOR_COMPLETE"
        state.cues.play_cue("victory")
        add_log(state, f"{state.opponent.name} is defeated!", "player")
        return True
    return False


# -------- Opponent turn --------
def _enter_opponent_thinking(state: RunState) -> None:
    state.phase = "OPPONENT_THINKING"
    state.scheduler.call_later(state.config.delays.think, _opponent_move, state, state.generation)


def _opponent_move(state: RunState, generation: int) -> None:
    if _stale(state, generation) or state.shuffling:
        return
    if state.phase not in OPPONENT_PHASES:
        return
    if not state.party.alive or not state.opponent.alive:
        return

    move = state.ai.opening_move(state.board, state.rng)
    if move is None:
        return
    state.phase = "OPPONENT_ACTING"

    first = move.first
    card = reveal(state.board, first)
    state.selection.append(first)
    state.cues.play_cue("flip")
    state.ai.observe(first, card)

    second = move.second
    if second is None:
        choice = state.ai.second_position(state.board, first, state.rng)
        if choice is None:
            # Lone card left: nothing to pair it with.
            state.scheduler.call_later(
                state.config.delays.settle, _resolve_mismatch, state, generation, first, first, "opponent"
            )
            return
        second, kind = choice
        if kind == "mistake":
            add_log(state, f"{state.opponent.name} stumbles!", "info")
        elif kind == "partner":
            add_log(state, f"{state.opponent.name} sneers...", "enemy")

    state.scheduler.call_later(state.config.delays.inter_flip, _opponent_reveal_second, state, generation, first, second)


def _opponent_reveal_second(state: RunState, generation: int, first: int, second: int) -> None:
    if _stale(state, generation):
        return
    if state.board[second].is_matched:
        return
    card = reveal(state.board, second)
    state.selection.append(second)
    state.cues.play_cue("flip")
    state.ai.observe(second, card)
    _schedule_pair(state, "opponent", first, second)


# -------- Reshuffle --------
def _auto_reshuffle(state: RunState, generation: int) -> None:
    if _stale(state, generation) or not is_exhausted(state.board):
        return
    if not state.party.alive or not state.opponent.alive:
        return
    reshuffle(state)


def reshuffle(state: RunState) -> StepResult:
    """Replace an exhausted board. Combo, HP and shields carry over; memory does not."""
    if state.game_over:
        return StepResult(ok=False, error="Combat is over.")
    if state.shuffling:
        return StepResult(ok=False, error="Already reshuffling.")
    if state.selection or not is_exhausted(state.board):
        return StepResult(ok=False, error="Pairs remain on the board.")
    add_log(state, "The dungeon rearranges itself...", "info")
    state.cues.play_cue("flip")
    state.shuffling = True
    state.scheduler.call_later(state.config.delays.shuffle_exit, _finish_reshuffle, state, state.generation)
    return StepResult(ok=True)


def _finish_reshuffle(state: RunState, generation: int) -> None:
    if _stale(state, generation):
        state.shuffling = False
        return
    deal_board(state)
    state.shuffling = False

    if state.phase in OPPONENT_PHASES:
        add_log(state, f"{state.opponent.name} prepares to continue...", "enemy")
        _enter_opponent_thinking(state)
    else:
        state.phase = "PARTY_TURN"
        add_log(state, "Your turn!", "info")


def deal_board(state: RunState) -> None:
    state.generation += 1
    state.board = build_board(
        state.rng,
        state.config.composition,
        prefix=f"floor{state.floor_index}",
        generation=state.generation,
        wildcards=state.config.wildcards,
    )
    state.selection.clear()
    state.ai.clear()


def enter_merchant(state: RunState) -> StepResult:
    """External trigger only; the merchant sits between floors."""
    if state.phase != "FLOOR_COMPLETE":
        return StepResult(ok=False, error="The merchant only appears between floors.")
    state.phase = "MERCHANT"
    add_log(state, "A merchant beckons from the shadows.", "item")
    return StepResult(ok=True)
