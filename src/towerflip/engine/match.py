from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .types import Card, EffectKind

MAX_SELECTION = 2


@dataclass(frozen=True)
class PairResult:
    first: int
    second: int
    matched: bool
    effect: EffectKind | None = None


def cards_match(a: Card, b: Card) -> bool:
    if a.id == b.id:
        return False
    if a.is_wildcard or b.is_wildcard:
        return True
    return a.effect == b.effect


def resolved_effect(a: Card, b: Card) -> EffectKind:
    """The effect a matched pair triggers: the non-wildcard card decides."""
    if a.is_wildcard and not b.is_wildcard:
        return b.effect
    return a.effect


def selection_error(board: Sequence[Card], selection: Sequence[int], position: int) -> str | None:
    """Why `position` cannot join the face-up selection, or None if it can."""
    if len(selection) >= MAX_SELECTION:
        return "Two cards already face-up."
    if position < 0 or position >= len(board):
        return "Invalid board position."
    card = board[position]
    if card.is_matched:
        return "Card already matched."
    if card.is_flipped or position in selection:
        return "Card already face-up."
    return None


def reveal(board: list[Card], position: int) -> Card:
    card = board[position]
    card.is_flipped = True
    return card


def evaluate_pair(board: Sequence[Card], first: int, second: int) -> PairResult:
    a, b = board[first], board[second]
    if cards_match(a, b):
        return PairResult(first=first, second=second, matched=True, effect=resolved_effect(a, b))
    return PairResult(first=first, second=second, matched=False)


def mark_matched(board: list[Card], positions: Sequence[int]) -> None:
    for i in positions:
        if 0 <= i < len(board):
            board[i].is_matched = True


def turn_face_down(board: list[Card], positions: Sequence[int]) -> None:
    for i in positions:
        if 0 <= i < len(board) and not board[i].is_matched:
            board[i].is_flipped = False


def next_combo(combo: int, matched: bool) -> int:
    return combo + 1 if matched else 0


def is_exhausted(board: Sequence[Card]) -> bool:
    """No two unmatched cards can still pair up. A fully matched board is exhausted."""
    if not board:
        return False
    open_cards = [c for c in board if not c.is_matched]
    for i, a in enumerate(open_cards):
        for b in open_cards[i + 1 :]:
            if cards_match(a, b):
                return False
    return True
