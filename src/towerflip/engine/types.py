from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EffectKind = Literal[
    "ATTACK_SMALL",
    "ATTACK_MEDIUM",
    "ATTACK_BIG",
    "HEAL_SMALL",
    "HEAL_MEDIUM",
    "SHIELD",
    "COIN_SMALL",
    "COIN_MEDIUM",
]
EffectFamily = Literal["attack", "heal", "shield", "coin"]

Difficulty = Literal["EASY", "MEDIUM", "HARD"]
BossType = Literal["NONE", "BURN", "SLIME", "CONFUSION"]
Side = Literal["party", "opponent"]

GamePhase = Literal[
    "LOADING",
    "PARTY_TURN",
    "OPPONENT_THINKING",
    "OPPONENT_ACTING",
    "FLOOR_COMPLETE",
    "RUN_VICTORY",
    "RUN_DEFEAT",
    "MERCHANT",
]
LogCategory = Literal["info", "player", "enemy", "heal", "burn", "item"]

ALL_EFFECTS: tuple[EffectKind, ...] = (
    "ATTACK_SMALL",
    "ATTACK_MEDIUM",
    "ATTACK_BIG",
    "HEAL_SMALL",
    "HEAL_MEDIUM",
    "SHIELD",
    "COIN_SMALL",
    "COIN_MEDIUM",
)
BOSS_BEHAVIORS: tuple[BossType, ...] = ("BURN", "SLIME", "CONFUSION")
TERMINAL_PHASES: frozenset[GamePhase] = frozenset({"RUN_VICTORY", "RUN_DEFEAT"})
OPPONENT_PHASES: frozenset[GamePhase] = frozenset({"OPPONENT_THINKING", "OPPONENT_ACTING"})


def effect_family(kind: EffectKind) -> EffectFamily:
    if kind.startswith("ATTACK"):
        return "attack"
    if kind.startswith("HEAL"):
        return "heal"
    if kind == "SHIELD":
        return "shield"
    return "coin"


def other_side(side: Side) -> Side:
    return "opponent" if side == "party" else "party"


@dataclass
class Card:
    id: str
    effect: EffectKind
    is_flipped: bool = False
    is_matched: bool = False
    is_slimed: bool = False
    is_wildcard: bool = False


@dataclass(frozen=True)
class Entity:
    """A combatant. Immutable; combat returns updated copies."""

    name: str
    max_hp: int
    current_hp: int
    shield: int = 0
    coins: int = 0
    difficulty: Difficulty = "EASY"
    boss_type: BossType = "NONE"
    description: str = ""
    visual: str = ""
    date_encountered: str | None = None

    @property
    def alive(self) -> bool:
        return self.current_hp > 0


@dataclass(frozen=True)
class LogEntry:
    message: str
    category: LogCategory = "info"
