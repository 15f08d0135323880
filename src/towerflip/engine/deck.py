from __future__ import annotations

import random
from collections import Counter
from typing import Sequence

from .types import Card, EffectKind


def _shuffle(rng: random.Random, items: list[EffectKind]) -> None:
    rng.shuffle(items)


def build_board(
    rng: random.Random,
    composition: Sequence[EffectKind],
    *,
    prefix: str = "card",
    generation: int = 0,
    wildcards: int = 0,
) -> list[Card]:
    """Deal every kind in `composition` twice, shuffled, all face-down.

    `generation` keeps identity tokens unique across reshuffles of the same floor.
    """
    kinds: list[EffectKind] = []
    for kind in composition:
        kinds.append(kind)
        kinds.append(kind)
    _shuffle(rng, kinds)

    board = [Card(id=f"{prefix}-{generation}-{i}", effect=kind) for i, kind in enumerate(kinds)]

    if wildcards > 0 and board:
        # A wildcard keeps its dealt kind so pair counts stay intact.
        for idx in rng.sample(range(len(board)), k=min(wildcards, len(board))):
            board[idx].is_wildcard = True
    return board


def is_cleared(board: Sequence[Card]) -> bool:
    return bool(board) and all(c.is_matched for c in board)


def unmatched_positions(board: Sequence[Card]) -> list[int]:
    return [i for i, c in enumerate(board) if not c.is_matched]


def kind_counts(board: Sequence[Card]) -> Counter[EffectKind]:
    return Counter(c.effect for c in board)
