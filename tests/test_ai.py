from __future__ import annotations

import random

from towerflip.engine.ai import OpponentModel
from towerflip.engine.config import DifficultyProfile
from towerflip.engine.run import new_run
from towerflip.engine.types import Card, Entity

NEVER_ERR = dict(mistake_chance=0.0, forget_chance=0.0)


def _board(effects: list[str]) -> list[Card]:
    return [Card(id=f"c{i}", effect=e) for i, e in enumerate(effects)]  # type: ignore[arg-type]


def _model(guaranteed_miss: bool) -> OpponentModel:
    return OpponentModel(profile=DifficultyProfile(guaranteed_miss=guaranteed_miss, **NEVER_ERR))


def test_known_pair_is_replayed() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "SHIELD", "HEAL_SMALL"])
    ai = _model(guaranteed_miss=False)
    ai.observe(0, board[0])
    ai.observe(2, board[2])
    move = ai.opening_move(board, random.Random(1))
    assert move is not None
    assert (move.first, move.second) == (0, 2)


def test_guaranteed_miss_drops_first_known_pair_once() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "SHIELD", "HEAL_SMALL"])
    ai = _model(guaranteed_miss=True)
    ai.observe(0, board[0])
    ai.observe(2, board[2])
    rng = random.Random(1)

    forgot = ai.opening_move(board, rng)
    assert forgot is not None and forgot.second is None
    assert forgot.first in (1, 3)
    assert ai.guaranteed_miss_used

    recalled = ai.opening_move(board, rng)
    assert recalled is not None
    assert (recalled.first, recalled.second) == (0, 2)

    ai.reset_for_floor("EASY")
    assert not ai.guaranteed_miss_used
    assert ai.memory == {}


def test_second_pick_mistake_then_partner() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "SHIELD", "HEAL_SMALL"])
    ai = _model(guaranteed_miss=True)
    ai.observe(0, board[0])
    ai.observe(2, board[2])
    rng = random.Random(5)

    pos, kind = ai.second_position(board, 2, rng)  # type: ignore[misc]
    assert kind == "mistake"
    assert pos in (1, 3)

    assert ai.second_position(board, 2, rng) == (0, "partner")


def test_mistake_with_no_wrong_card_falls_back_to_partner() -> None:
    board = _board(["SHIELD", "SHIELD"])
    ai = _model(guaranteed_miss=True)
    ai.observe(0, board[0])
    ai.observe(1, board[1])
    assert ai.second_position(board, 1, random.Random(0)) == (0, "fallback")


def test_unknown_partner_is_a_blind_pick() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "SHIELD", "HEAL_SMALL"])
    ai = _model(guaranteed_miss=True)
    ai.observe(0, board[0])
    pos, kind = ai.second_position(board, 0, random.Random(2))  # type: ignore[misc]
    assert kind == "blind"
    assert pos in (1, 2, 3)
    # a blind pick does not consume the owed miss
    assert not ai.guaranteed_miss_used


def test_opening_prefers_unseen_cards() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "COIN_SMALL", "SHIELD", "HEAL_SMALL", "COIN_SMALL"])
    ai = _model(guaranteed_miss=False)
    for i in (0, 1, 2):
        ai.observe(i, board[i])
    rng = random.Random(3)
    for _ in range(20):
        move = ai.opening_move(board, rng)
        assert move is not None
        assert move.first in (3, 4, 5)


def test_stale_memory_is_ignored() -> None:
    board = _board(["SHIELD", "HEAL_SMALL", "SHIELD", "HEAL_SMALL"])
    ai = _model(guaranteed_miss=False)
    ai.observe(0, board[0])
    ai.observe(2, board[2])
    board[0].is_matched = True
    board[2].is_matched = True
    assert ai.known_pair(board) is None

    fresh = _board(["SHIELD", "SHIELD"])
    fresh[0] = Card(id="other", effect="SHIELD")
    assert ai.recalled_partner(fresh, 1) is None


def test_memory_never_holds_matched_positions(autoplay, tower, durable_party) -> None:
    state = new_run(tower, seed=11, party=durable_party)

    def check(s) -> None:
        for pos in s.ai.memory:
            assert not s.board[pos].is_matched

    assert autoplay(state, 300, check=check) > 0


def test_guaranteed_miss_fires_once_per_floor(monkeypatch, autoplay, tower, durable_party) -> None:
    taken: list[int] = []
    original = OpponentModel._take_guaranteed_miss

    def counting(self: OpponentModel) -> bool:
        took = original(self)
        if took:
            taken.append(1)
        return took

    monkeypatch.setattr(OpponentModel, "_take_guaranteed_miss", counting)

    tough = [Entity(name=e.name, max_hp=10**6, current_hp=10**6, difficulty="EASY") for e in tower]
    state = new_run(tough, seed=3, party=durable_party)
    state.ai.profile = DifficultyProfile(guaranteed_miss=True, **NEVER_ERR)

    autoplay(state, 400)
    assert state.floor_index == 0
    assert state.ai.guaranteed_miss_used
    assert len(taken) == 1
