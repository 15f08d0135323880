"""Shared fixtures: a stock three-floor tower and a scripted party player."""

from __future__ import annotations

from typing import Callable

import pytest

from towerflip.engine.battle import RunState, flip
from towerflip.engine.types import Entity


@pytest.fixture
def tower() -> list[Entity]:
    return [
        Entity(name="Rotting Rat", max_hp=6, current_hp=6, difficulty="EASY"),
        Entity(name="Hollow Guard", max_hp=10, current_hp=10, difficulty="MEDIUM"),
        Entity(name="The Forgotten", max_hp=15, current_hp=15, difficulty="HARD", boss_type="BURN"),
    ]


@pytest.fixture
def durable_party() -> Entity:
    """A party that survives long autoplay sessions."""
    return Entity(name="Hero", max_hp=1_000_000, current_hp=1_000_000)


def party_turn(state: RunState, *, mismatch: bool = True) -> bool:
    """Flip two face-down cards when the party may act. Prefers a mismatch if asked."""
    if state.game_over or state.shuffling or state.phase != "PARTY_TURN" or state.selection:
        return False
    hidden = [i for i, c in enumerate(state.board) if not c.is_matched and not c.is_flipped]
    if len(hidden) < 2:
        return False
    pick = (hidden[0], hidden[1])
    for a in hidden:
        for b in hidden:
            if a < b and (state.board[a].effect != state.board[b].effect) == mismatch:
                pick = (a, b)
                break
        else:
            continue
        break
    flip(state, pick[0])
    flip(state, pick[1])
    return True


@pytest.fixture
def autoplay() -> Callable[..., int]:
    """Drive a run step by step; `check` runs after every fired continuation."""

    def _run(
        state: RunState,
        steps: int,
        *,
        mismatch: bool = True,
        check: Callable[[RunState], None] | None = None,
    ) -> int:
        fired = 0
        for _ in range(steps):
            party_turn(state, mismatch=mismatch)
            if not state.scheduler.run_next():
                break
            fired += 1
            if check is not None:
                check(state)
        return fired

    return _run
