from __future__ import annotations

import json
import math
import os
import random
from typing import Any, Mapping

from google import genai
from google.genai.types import GenerateContentConfig, HttpOptions
from loguru import logger

from towerflip.engine.types import BOSS_BEHAVIORS, BossType, Difficulty, Entity

from .content import ContentService, schema_errors

DEFAULT_MODEL = "gemini-2.5-flash"
API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
REQUEST_TIMEOUT_MS = 10_000

TIERS: tuple[Difficulty, Difficulty, Difficulty] = ("EASY", "MEDIUM", "HARD")
BASE_HP = (6, 10, 15)

FALLBACK_FLAVOR = (
    ("Rotting Rat", "It gnaws at the roots of the world.", "🐀"),
    ("Hollow Guard", "Armor rusting over nothing but dust.", "🛡️"),
    ("The Forgotten", "It remembers you, but you do not remember it.", "👁️"),
)

PROMPT_TEMPLATE = """Generate 3 fantasy enemies for a roguelike card game Tower (Seed: {seed}, Difficulty Multiplier: {strength}).
The enemies should get progressively stronger in description.
The tone should be "Dark Fantasy".
Max 12 words per description.
For each enemy, provide a single UTF-8 Emoji that best represents it in the "visual" field.

1. First enemy: Difficulty Easy (Weak, ~{hp_easy} HP).
2. Second enemy: Difficulty Medium (Average, ~{hp_medium} HP).
3. Third enemy: Difficulty Hard (Boss, ~{hp_hard} HP).

Return them as a JSON list of objects with keys "name", "maxHp", "description" and "visual"."""


def floor_hp(strength: float) -> tuple[int, int, int]:
    easy, medium, hard = (max(1, math.floor(base * strength)) for base in BASE_HP)
    return easy, medium, hard


def _build(
    flavor: tuple[str, str, str], hp: int, difficulty: Difficulty, boss_type: BossType
) -> Entity:
    name, description, visual = flavor
    return Entity(
        name=name,
        max_hp=hp,
        current_hp=hp,
        shield=0,
        coins=0,
        difficulty=difficulty,
        boss_type=boss_type,
        description=description,
        visual=visual,
    )


def fallback_entities(strength: float, boss_type: BossType) -> list[Entity]:
    hps = floor_hp(strength)
    return [
        _build(FALLBACK_FLAVOR[i], hps[i], TIERS[i], boss_type if i == 2 else "NONE")
        for i in range(3)
    ]


class EnemyService:
    """Generates the three floor opponents, degrading to a fixed roster.

    Generation only supplies flavor (name, description, visual); HP, tier and
    boss tag are always the fixed values for the floor. Any failure, malformed
    answer or missing key silently yields the fallback roster.
    """

    def __init__(
        self,
        api_key: str | None,
        schema: object,
        model: str = DEFAULT_MODEL,
        client: Any | None = None,
        rng: random.Random | None = None,
        timeout_ms: int = REQUEST_TIMEOUT_MS,
    ) -> None:
        self._api_key = api_key
        self._schema = schema
        self._model = model
        self._client = client
        self._rng = rng or random.Random()
        self._timeout_ms = timeout_ms

    @classmethod
    def from_env(
        cls, content: ContentService, environ: Mapping[str, str] | None = None, **kwargs: Any
    ) -> "EnemyService":
        env = os.environ if environ is None else environ
        api_key = next((env[k] for k in API_KEY_VARS if env.get(k)), None)
        return cls(api_key=api_key, schema=content.load_schema("enemies.schema.json"), **kwargs)

    @property
    def online(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key, http_options=HttpOptions(timeout=self._timeout_ms)
            )
        return self._client

    def fetch_floor_entities(self, seed: str, strength: float = 1.0) -> list[Entity]:
        boss_type: BossType = self._rng.choice(BOSS_BEHAVIORS)
        fallback = fallback_entities(strength, boss_type)

        if not self.online:
            logger.warning("No API key found, using fallback enemies.")
            return fallback

        hp_easy, hp_medium, hp_hard = floor_hp(strength)
        prompt = PROMPT_TEMPLATE.format(
            seed=seed, strength=strength, hp_easy=hp_easy, hp_medium=hp_medium, hp_hard=hp_hard
        )
        try:
            response = self._get_client().models.generate_content(
                model=self._model,
                contents=prompt,
                config=GenerateContentConfig(response_mime_type="application/json"),
            )
            text = getattr(response, "text", None)
            if not text:
                logger.warning("Enemy generation returned no text, using fallback enemies.")
                return fallback
            data = json.loads(text)
        except Exception as e:
            logger.error(f"Error generating enemies: {e}")
            return fallback

        problems = schema_errors(data, self._schema)
        if problems:
            logger.warning("Malformed enemy response, using fallback enemies:\n" + "\n".join(problems))
            return fallback

        hps = (hp_easy, hp_medium, hp_hard)
        out: list[Entity] = []
        for i in range(3):
            raw = data[i]
            flavor = (str(raw["name"]), str(raw["description"]), str(raw["visual"]))
            out.append(_build(flavor, hps[i], TIERS[i], boss_type if i == 2 else "NONE"))
        logger.info(f"Generated floor enemies for {seed}: {[e.name for e in out]}")
        return out
