from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping

from loguru import logger

from towerflip.engine.serialize import entity_from_dict, entity_to_dict
from towerflip.engine.types import Entity

from .content import CardTheme, schema_errors


class ProgressError(RuntimeError):
    pass


@dataclass
class Progress:
    version: int = 1
    coins: int = 0
    unlocked_themes: list[str] = field(default_factory=lambda: ["default"])
    selected_theme_id: str = "default"
    last_daily_claim: str = ""
    bestiary: list[Entity] = field(default_factory=list)
    inventory: list[str] = field(default_factory=list)
    tower_level: int = 0

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "Progress":
        coins = d.get("coins", 0)
        unlocked_raw = d.get("unlocked_themes", ["default"])
        unlocked = [str(x) for x in unlocked_raw] if isinstance(unlocked_raw, list) else ["default"]
        if "default" not in unlocked:
            unlocked.insert(0, "default")
        selected = d.get("selected_theme_id", "default")
        selected_id = selected if isinstance(selected, str) and selected in unlocked else "default"

        bestiary: list[Entity] = []
        raw_bestiary = d.get("bestiary", [])
        if isinstance(raw_bestiary, list):
            for e in raw_bestiary:
                if isinstance(e, dict):
                    bestiary.append(entity_from_dict(e))

        inventory_raw = d.get("inventory", [])
        tower = d.get("tower_level", 0)
        last_claim = d.get("last_daily_claim", "")
        version = d.get("version", 1)
        return Progress(
            version=version if isinstance(version, int) else 1,
            coins=max(0, coins) if isinstance(coins, int) else 0,
            unlocked_themes=unlocked,
            selected_theme_id=selected_id,
            last_daily_claim=last_claim if isinstance(last_claim, str) else "",
            bestiary=bestiary,
            inventory=[str(x) for x in inventory_raw] if isinstance(inventory_raw, list) else [],
            tower_level=tower if isinstance(tower, int) else 0,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "coins": self.coins,
            "unlocked_themes": list(self.unlocked_themes),
            "selected_theme_id": self.selected_theme_id,
            "last_daily_claim": self.last_daily_claim,
            "bestiary": [entity_to_dict(e) for e in self.bestiary],
            "inventory": list(self.inventory),
            "tower_level": self.tower_level,
        }


class ProgressService:
    """Local JSON persistence of everything that outlives a run."""

    def __init__(self, progress_path: Path, schema: object | None = None) -> None:
        self._path = progress_path
        self._schema = schema
        self.progress = self.load()

    def load(self) -> Progress:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            prog = Progress()
            self._path.write_text(json.dumps(prog.to_dict(), indent=2), encoding="utf-8")
            return prog
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Unreadable progress file {self._path}, starting fresh: {e}")
            return Progress()
        if not isinstance(raw, dict):
            return Progress()
        if self._schema is not None:
            problems = schema_errors(raw, self._schema)
            if problems:
                logger.warning("Progress file failed validation, starting fresh:\n" + "\n".join(problems))
                return Progress()
        return Progress.from_dict(raw)

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.progress.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    # -------- Run results --------
    def knows(self, name: str) -> bool:
        return any(e.name == name for e in self.progress.bestiary)

    def bank_floor(self, defeated: Entity, coins: int, today: str) -> None:
        """Deposit run coins and log the defeated opponent if it is new."""
        self.progress.coins += max(0, coins)
        if not self.knows(defeated.name):
            self.progress.bestiary.append(replace(defeated, date_encountered=today))
        self.save()

    def record_floor_reached(self, floor_number: int) -> None:
        if floor_number > self.progress.tower_level:
            self.progress.tower_level = floor_number
            self.save()

    # -------- Daily reward --------
    def can_claim_daily(self, today: str) -> bool:
        return self.progress.last_daily_claim != today

    def claim_daily(self, today: str) -> bool:
        if not self.can_claim_daily(today):
            return False
        self.progress.coins += 1
        self.progress.last_daily_claim = today
        self.save()
        return True

    # -------- Themes --------
    def can_afford(self, theme: CardTheme) -> bool:
        return self.progress.coins >= theme.price

    def buy_theme(self, theme: CardTheme) -> bool:
        if theme.id in self.progress.unlocked_themes:
            return False
        if not self.can_afford(theme):
            return False
        self.progress.coins -= theme.price
        self.progress.unlocked_themes.append(theme.id)
        self.progress.selected_theme_id = theme.id
        self.save()
        return True

    def select_theme(self, theme_id: str) -> None:
        if theme_id not in self.progress.unlocked_themes:
            raise ProgressError(f"Theme {theme_id} is locked.")
        self.progress.selected_theme_id = theme_id
        self.save()
