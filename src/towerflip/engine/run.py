from __future__ import annotations

import random
from dataclasses import replace
from typing import Sequence

from .battle import RunState, StepResult, add_log, deal_board
from .config import EngineConfig
from .cues import CueSink, NullCueSink
from .scheduler import Scheduler
from .types import Entity

STATUS_VICTORY = "🏆 Tower Conquered"


def new_party(config: EngineConfig) -> Entity:
    hp = config.party.max_hp
    return Entity(name=config.party.name, max_hp=hp, current_hp=hp, shield=0, coins=0, difficulty="EASY")


def new_run(
    opponents: Sequence[Entity],
    seed: int,
    config: EngineConfig | None = None,
    scheduler: Scheduler | None = None,
    cues: CueSink | None = None,
    party: Entity | None = None,
) -> RunState:
    """Create a run over `opponents` (one per floor) and open the first floor."""
    cfg = config or EngineConfig()
    if not opponents:
        raise ValueError("A run needs at least one opponent.")
    state = RunState(
        config=cfg,
        seed=seed,
        rng=random.Random(seed),
        scheduler=scheduler or Scheduler(),
        party=party or new_party(cfg),
        opponents=list(opponents)[: cfg.floor_count],
        cues=cues or NullCueSink(),
    )
    start_floor(state, 0)
    return state


def start_floor(state: RunState, floor_index: int) -> None:
    state.phase = "LOADING"
    state.floor_index = floor_index
    state.game_over = False
    state.shuffling = False
    state.combo = 0
    state.ai.reset_for_floor(state.opponent.difficulty)
    deal_board(state)

    opponent = state.opponent
    add_log(state, f"Floor {floor_index + 1}: {opponent.name} appears!", "enemy")
    add_log(state, opponent.description or "Prepare for battle!", "info")
    state.phase = "PARTY_TURN"


def advance_floor(state: RunState) -> StepResult:
    """Rest, heal, and climb to the next floor. Only valid after clearing a floor."""
    if state.phase not in ("FLOOR_COMPLETE", "MERCHANT"):
        return StepResult(ok=False, error="The floor is not cleared.")
    if state.is_final_floor:
        return StepResult(ok=False, error="No floors remain.")
    state.cues.play_cue("ascend")
    party = state.party
    state.party = replace(party, current_hp=min(party.max_hp, party.current_hp + state.config.rest_heal))
    add_log(state, f"You rest and recover {state.party.current_hp - party.current_hp} HP.", "heal")
    start_floor(state, state.floor_index + 1)
    return StepResult(ok=True)


def unbanked_coins(state: RunState) -> int:
    return max(0, state.party.coins - state.banked_coins)


def take_unbanked_coins(state: RunState) -> int:
    """Coins found since the last floor clear; marks them as banked."""
    amount = unbanked_coins(state)
    state.banked_coins += amount
    return amount


def floors_reached(state: RunState) -> int:
    return state.floor_index + 1


def share_status(state: RunState) -> str:
    if state.phase == "RUN_VICTORY":
        return STATUS_VICTORY
    return f"💀 Died Floor {state.floor_index + 1}"


def share_text(state: RunState, today: str) -> str:
    moves = "".join(state.history)
    return f"Towerflip 🏰\n{today}\n{share_status(state)}\n{moves}\n\nPlay now!"
