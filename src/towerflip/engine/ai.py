from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Literal, Sequence

from .config import DIFFICULTY_PROFILES, DifficultyProfile
from .deck import unmatched_positions
from .match import cards_match
from .types import Card, Difficulty

SecondChoice = Literal["partner", "mistake", "blind", "fallback"]


@dataclass(frozen=True)
class OpeningMove:
    first: int
    # Set only when the move replays a remembered pair.
    second: int | None = None


@dataclass
class OpponentModel:
    """Memory-limited, deliberately fallible opponent.

    Memory maps board position -> the card last seen there. It watches both
    sides' reveals, drops entries as their cards get matched, and is wiped when
    the board is replaced. Each floor the model may owe one guaranteed miss
    (EASY and MEDIUM); it is paid by whichever of the two mistake branches
    fires first.
    """

    profile: DifficultyProfile
    memory: dict[int, Card] = field(default_factory=dict)
    guaranteed_miss_used: bool = False

    @staticmethod
    def for_difficulty(difficulty: Difficulty) -> "OpponentModel":
        return OpponentModel(profile=DIFFICULTY_PROFILES[difficulty])

    def reset_for_floor(self, difficulty: Difficulty) -> None:
        self.profile = DIFFICULTY_PROFILES[difficulty]
        self.memory.clear()
        self.guaranteed_miss_used = False

    # -------- Memory --------
    def observe(self, position: int, card: Card) -> None:
        self.memory[position] = replace(card)

    def forget(self, positions: Sequence[int]) -> None:
        for p in positions:
            self.memory.pop(p, None)

    def clear(self) -> None:
        self.memory.clear()

    def _live_entries(self, board: Sequence[Card]) -> list[tuple[int, Card]]:
        out: list[tuple[int, Card]] = []
        for idx, card in self.memory.items():
            if idx >= len(board) or board[idx].is_matched or board[idx].id != card.id:
                continue
            out.append((idx, card))
        return out

    def known_pair(self, board: Sequence[Card]) -> tuple[int, int] | None:
        seen: list[tuple[int, Card]] = []
        for idx, card in self._live_entries(board):
            for prev_idx, prev in seen:
                if cards_match(prev, card):
                    return prev_idx, idx
            seen.append((idx, card))
        return None

    def recalled_partner(self, board: Sequence[Card], position: int) -> int | None:
        revealed = board[position]
        for idx, card in self._live_entries(board):
            if idx != position and cards_match(card, revealed):
                return idx
        return None

    # -------- Decisions --------
    def _take_guaranteed_miss(self) -> bool:
        if self.profile.guaranteed_miss and not self.guaranteed_miss_used:
            self.guaranteed_miss_used = True
            return True
        return False

    def opening_move(self, board: Sequence[Card], rng: random.Random) -> OpeningMove | None:
        available = unmatched_positions(board)
        if not available:
            return None

        pair = self.known_pair(board)
        if pair is not None:
            forced = self._take_guaranteed_miss()
            if forced or rng.random() < self.profile.forget_chance:
                pair = None
        if pair is not None:
            return OpeningMove(first=pair[0], second=pair[1])

        unknown = [i for i in available if i not in self.memory]
        first = rng.choice(unknown) if unknown else rng.choice(available)
        return OpeningMove(first=first)

    def second_position(
        self, board: Sequence[Card], first: int, rng: random.Random
    ) -> tuple[int, SecondChoice] | None:
        """Pick the second card once `first` has been revealed and recorded."""
        available = [i for i in unmatched_positions(board) if i != first]
        if not available:
            return None

        partner = self.recalled_partner(board, first)
        if partner is None:
            return rng.choice(available), "blind"

        forced = self._take_guaranteed_miss()
        if forced or rng.random() < self.profile.mistake_chance:
            wrong = [i for i in available if i != partner]
            if wrong:
                return rng.choice(wrong), "mistake"
            return partner, "fallback"
        return partner, "partner"
