from __future__ import annotations

from dataclasses import dataclass, field

from .types import ALL_EFFECTS, Difficulty, EffectKind

DEFAULT_EFFECT_VALUES: dict[EffectKind, int] = {
    "ATTACK_SMALL": 2,
    "ATTACK_MEDIUM": 3,
    "ATTACK_BIG": 5,
    "HEAL_SMALL": 2,
    "HEAL_MEDIUM": 3,
    "SHIELD": 2,
    "COIN_SMALL": 1,
    "COIN_MEDIUM": 2,
}


@dataclass(frozen=True)
class Delays:
    """Pacing between deferred steps, in seconds."""

    tap: float = 0.05
    inter_flip: float = 0.8
    party_match: float = 0.5
    opponent_match: float = 0.8
    settle: float = 1.0
    think: float = 1.5
    opponent_chain: float = 1.0
    reshuffle: float = 1.5
    shuffle_exit: float = 0.45


@dataclass(frozen=True)
class DifficultyProfile:
    mistake_chance: float
    forget_chance: float
    guaranteed_miss: bool


DIFFICULTY_PROFILES: dict[Difficulty, DifficultyProfile] = {
    "EASY": DifficultyProfile(mistake_chance=0.6, forget_chance=0.5, guaranteed_miss=True),
    "MEDIUM": DifficultyProfile(mistake_chance=0.3, forget_chance=0.3, guaranteed_miss=True),
    "HARD": DifficultyProfile(mistake_chance=0.1, forget_chance=0.1, guaranteed_miss=False),
}


@dataclass(frozen=True)
class PartyConfig:
    name: str = "Hero"
    max_hp: int = 12


@dataclass(frozen=True)
class EngineConfig:
    effect_values: dict[EffectKind, int] = field(default_factory=lambda: dict(DEFAULT_EFFECT_VALUES))
    composition: tuple[EffectKind, ...] = ALL_EFFECTS
    delays: Delays = field(default_factory=Delays)
    party: PartyConfig = field(default_factory=PartyConfig)
    floor_count: int = 3
    rest_heal: int = 3
    wildcards: int = 0

    def base_value(self, kind: EffectKind) -> int:
        return self.effect_values.get(kind, DEFAULT_EFFECT_VALUES[kind])

    @property
    def board_size(self) -> int:
        return 2 * len(self.composition)
