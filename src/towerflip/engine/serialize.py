from __future__ import annotations

from dataclasses import asdict

from .battle import RunState
from .types import Card, Entity


def card_to_dict(c: Card) -> dict[str, object]:
    return {
        "id": c.id,
        "effect": c.effect,
        "is_flipped": c.is_flipped,
        "is_matched": c.is_matched,
        "is_slimed": c.is_slimed,
        "is_wildcard": c.is_wildcard,
    }


def entity_to_dict(e: Entity) -> dict[str, object]:
    return asdict(e)


def entity_from_dict(d: dict[str, object]) -> Entity:
    max_hp = int(d.get("max_hp", 1))  # type: ignore[arg-type]
    return Entity(
        name=str(d.get("name", "Unknown")),
        max_hp=max_hp,
        current_hp=int(d.get("current_hp", max_hp)),  # type: ignore[arg-type]
        shield=int(d.get("shield", 0)),  # type: ignore[arg-type]
        coins=int(d.get("coins", 0)),  # type: ignore[arg-type]
        difficulty=str(d.get("difficulty", "EASY")),  # type: ignore[arg-type]
        boss_type=str(d.get("boss_type", "NONE")),  # type: ignore[arg-type]
        description=str(d.get("description", "")),
        visual=str(d.get("visual", "")),
        date_encountered=d.get("date_encountered") if isinstance(d.get("date_encountered"), str) else None,  # type: ignore[arg-type]
    )


def snapshot(state: RunState) -> dict[str, object]:
    """Return a JSON-serializable view of what the UI needs to render and gate input."""
    return {
        "seed": state.seed,
        "phase": state.phase,
        "floor_index": state.floor_index,
        "floor_count": len(state.opponents),
        "combo": state.combo,
        "shuffling": state.shuffling,
        "game_over": state.game_over,
        "party": entity_to_dict(state.party),
        "opponent": entity_to_dict(state.opponent),
        "board": [card_to_dict(c) for c in state.board],
        "selection": list(state.selection),
        "log": [{"message": e.message, "category": e.category} for e in state.log],
        "history": list(state.history),
    }
