from __future__ import annotations

from dataclasses import dataclass, replace

from .config import EngineConfig
from .types import EffectKind, Entity, LogCategory, Side, effect_family

HISTORY_SYMBOLS = {
    "attack": "⚔️",
    "heal": "💚",
    "shield": "🛡️",
    "coin": "🪙",
}
OPPONENT_ATTACK_SYMBOL = "🩸"


@dataclass(frozen=True)
class CombatOutcome:
    party: Entity
    opponent: Entity
    amount: int
    message: str
    category: LogCategory
    cue: str | None
    animation: str | None
    history_symbol: str | None = None


def scaled_value(base: int, combo: int) -> int:
    """floor(base * (1 + combo * 0.5)), kept in integer arithmetic."""
    return base * (2 + max(0, combo)) // 2


def combo_multiplier_text(combo: int) -> str:
    if combo <= 0:
        return ""
    mult = 1 + combo * 0.5
    return f" (Combo x{mult:g}!)"


def damage_entity(target: Entity, amount: int) -> Entity:
    dmg = max(0, amount)
    absorbed = min(target.shield, dmg)
    dmg -= absorbed
    return replace(
        target,
        shield=max(0, target.shield - absorbed),
        current_hp=max(0, target.current_hp - dmg),
    )


def heal_entity(target: Entity, amount: int) -> Entity:
    return replace(target, current_hp=min(target.max_hp, target.current_hp + max(0, amount)))


def shield_entity(target: Entity, amount: int) -> Entity:
    return replace(target, shield=target.shield + max(0, amount))


def apply_effect(
    effect: EffectKind,
    acting: Side,
    combo: int,
    party: Entity,
    opponent: Entity,
    config: EngineConfig,
) -> CombatOutcome:
    """Resolve a matched pair for `acting` and return the updated combatants.

    `combo` is the streak value before this match is counted, so the first
    match of a chain gets no bonus.
    """
    value = scaled_value(config.base_value(effect), combo)
    family = effect_family(effect)
    suffix = combo_multiplier_text(combo)
    by_party = acting == "party"
    symbol: str | None = HISTORY_SYMBOLS[family] if by_party else None

    if family == "attack":
        if by_party:
            opponent = damage_entity(opponent, value)
            message = f"Player attacks for {value} damage!{suffix}"
            category: LogCategory = "player"
            animation = "attack-up"
        else:
            party = damage_entity(party, value)
            message = f"{opponent.name} attacks you for {value} damage!{suffix}"
            category = "enemy"
            animation = "attack-down"
            symbol = OPPONENT_ATTACK_SYMBOL
        return CombatOutcome(party, opponent, value, message, category, "attack", animation, symbol)

    if family == "heal":
        if by_party:
            party = heal_entity(party, value)
            message = f"Player heals for {value} HP.{suffix}"
            category = "heal"
        else:
            opponent = heal_entity(opponent, value)
            message = f"{opponent.name} heals for {value} HP.{suffix}"
            category = "enemy"
        return CombatOutcome(party, opponent, value, message, category, "heal", "heal", symbol)

    if family == "shield":
        if by_party:
            party = shield_entity(party, value)
            message = f"Player gains {value} Shield.{suffix}"
            category = "player"
        else:
            opponent = shield_entity(opponent, value)
            message = f"{opponent.name} raises a shield ({value}).{suffix}"
            category = "enemy"
        return CombatOutcome(party, opponent, value, message, category, "shield", "heal", symbol)

    # coin: only the party keeps what it finds
    if by_party:
        party = replace(party, coins=party.coins + value)
        return CombatOutcome(
            party, opponent, value, f"Player found {value} coins!{suffix}", "info", "coin", "heal", symbol
        )
    return CombatOutcome(
        party, opponent, value, f"{opponent.name} finds some gold.{suffix}", "info", None, None, symbol
    )
