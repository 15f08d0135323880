from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from towerflip.engine.config import DEFAULT_EFFECT_VALUES, Delays, EngineConfig, PartyConfig
from towerflip.engine.types import EffectKind


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def schema_errors(instance: object, schema: object) -> list[str]:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    out: list[str] = []
    for err in errors[:10]:
        loc = "/".join(str(p) for p in err.absolute_path)
        out.append(f"- {loc}: {err.message}")
    return out


def validate_json(instance: object, schema: object, *, context: str) -> None:
    lines = schema_errors(instance, schema)
    if lines:
        raise ContentError("\n".join([f"Schema validation failed for {context}:", *lines]))


def _require_int(obj: Mapping[str, object], key: str, default: int) -> int:
    v = obj.get(key, default)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _parse_rgb(raw: object) -> tuple[int, int, int]:
    if not isinstance(raw, list) or len(raw) != 3:
        raise ContentError("Colors must be [r, g, b]")
    r, g, b = (int(x) for x in raw)
    return (r, g, b)


@dataclass(frozen=True)
class CardTheme:
    id: str
    name: str
    price: int
    description: str
    back_color: tuple[int, int, int]
    accent_color: tuple[int, int, int]


@dataclass(frozen=True)
class ThemeCatalog:
    themes: dict[str, CardTheme]

    def get(self, theme_id: str) -> CardTheme:
        # Unknown ids fall back to the first (default) theme.
        return self.themes.get(theme_id) or next(iter(self.themes.values()))

    def ordered(self) -> list[CardTheme]:
        return sorted(self.themes.values(), key=lambda t: (t.price, t.id))


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_schema(self, name: str) -> object:
        return _load_json(self._schema_dir / name)

    def load_engine_config(self) -> EngineConfig:
        path = self._data_dir / "effects.json"
        raw = _load_json(path)
        validate_json(raw, self.load_schema("effects.schema.json"), context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("effects.json must be an object")

        values: dict[EffectKind, int] = dict(DEFAULT_EFFECT_VALUES)
        raw_effects = raw.get("effects", {})
        if isinstance(raw_effects, dict):
            for k, v in raw_effects.items():
                if k in values and isinstance(v, int):
                    values[k] = v

        raw_comp = raw.get("composition")
        if not isinstance(raw_comp, list):
            raise ContentError("effects.json.composition must be a list")
        composition: tuple[EffectKind, ...] = tuple(raw_comp)  # schema restricts values

        defaults = Delays()
        raw_delays = raw.get("delays", {})
        delays = defaults
        if isinstance(raw_delays, dict):
            delays = Delays(
                **{
                    name: float(raw_delays.get(name, getattr(defaults, name)))
                    for name in defaults.__dataclass_fields__
                }
            )

        party = PartyConfig()
        raw_party = raw.get("party")
        if isinstance(raw_party, dict):
            party = PartyConfig(
                name=str(raw_party.get("name", party.name)),
                max_hp=_require_int(raw_party, "max_hp", party.max_hp),
            )

        return EngineConfig(
            effect_values=values,
            composition=composition,
            delays=delays,
            party=party,
            floor_count=_require_int(raw, "floor_count", 3),
            rest_heal=_require_int(raw, "rest_heal", 3),
            wildcards=_require_int(raw, "wildcards", 0),
        )

    def load_themes(self) -> ThemeCatalog:
        path = self._data_dir / "themes.json"
        raw = _load_json(path)
        validate_json(raw, self.load_schema("themes.schema.json"), context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("themes.json must be an object")
        themes: dict[str, CardTheme] = {}
        for item in raw.get("themes", []):
            if not isinstance(item, dict):
                continue
            theme = CardTheme(
                id=str(item["id"]),
                name=str(item["name"]),
                price=int(item["price"]),
                description=str(item["description"]),
                back_color=_parse_rgb(item["back_color"]),
                accent_color=_parse_rgb(item["accent_color"]),
            )
            themes[theme.id] = theme
        return ThemeCatalog(themes=themes)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_engine_config()
        _ = self.load_themes()
        for name in ("enemies.schema.json", "progress.schema.json"):
            Draft202012Validator.check_schema(self.load_schema(name))
