from __future__ import annotations

import json
import random
from pathlib import Path
from types import SimpleNamespace

import pytest

from towerflip.engine.run import new_run
from towerflip.paths import get_paths
from towerflip.services.content import CardTheme, ContentService
from towerflip.services import enemies
from towerflip.services.enemies import EnemyService, fallback_entities, floor_hp
from towerflip.services.progress import ProgressError, ProgressService
from towerflip.services.telemetry import TelemetryService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


class _FakeModels:
    def __init__(self, answer: object) -> None:
        self.answer = answer
        self.calls: list[dict[str, object]] = []

    def generate_content(self, **kwargs: object) -> object:
        self.calls.append(kwargs)
        if isinstance(self.answer, Exception):
            raise self.answer
        return SimpleNamespace(text=self.answer)


def _service(answer: object) -> tuple[EnemyService, _FakeModels]:
    models = _FakeModels(answer)
    client = SimpleNamespace(models=models)
    svc = EnemyService(
        api_key=None,
        schema=_content().load_schema("enemies.schema.json"),
        client=client,
        rng=random.Random(0),
    )
    return svc, models


GENERATED = [
    {"name": "Mire Leech", "maxHp": 99, "description": "It drinks slowly.", "visual": "🪱"},
    {"name": "Ash Knight", "maxHp": 99, "description": "Oathbound to cinders.", "visual": "⚔️"},
    {"name": "Hollow King", "maxHp": 99, "description": "The crown weighs nothing now.", "visual": "👑"},
]


# -------- Enemies --------
def test_floor_hp_scales_and_floors() -> None:
    assert floor_hp(1.0) == (6, 10, 15)
    assert floor_hp(1.5) == (9, 15, 22)
    assert floor_hp(0.01) == (1, 1, 1)


def test_fallback_roster() -> None:
    roster = fallback_entities(1.0, "SLIME")
    assert [e.name for e in roster] == ["Rotting Rat", "Hollow Guard", "The Forgotten"]
    assert [e.difficulty for e in roster] == ["EASY", "MEDIUM", "HARD"]
    assert [e.boss_type for e in roster] == ["NONE", "NONE", "SLIME"]
    assert all(e.current_hp == e.max_hp for e in roster)


def test_no_api_key_uses_fallback() -> None:
    svc = EnemyService.from_env(_content(), environ={})
    assert not svc.online
    roster = svc.fetch_floor_entities("10/17/2026")
    assert [e.max_hp for e in roster] == [6, 10, 15]
    assert roster[2].boss_type in ("BURN", "SLIME", "CONFUSION")


def test_from_env_reads_first_available_key() -> None:
    svc = EnemyService.from_env(_content(), environ={"GOOGLE_API_KEY": "", "API_KEY": "k"})
    assert svc._api_key == "k"


def test_generated_flavor_keeps_fixed_stats() -> None:
    svc, models = _service(json.dumps(GENERATED))
    assert svc.online
    roster = svc.fetch_floor_entities("seed-1")
    assert [e.name for e in roster] == ["Mire Leech", "Ash Knight", "Hollow King"]
    assert [e.max_hp for e in roster] == [6, 10, 15]
    assert roster[0].visual == "🪱"
    assert roster[0].boss_type == "NONE"
    assert roster[2].boss_type != "NONE"
    assert len(models.calls) == 1
    assert "seed-1" in str(models.calls[0]["contents"])


def test_malformed_answer_uses_fallback() -> None:
    svc, _ = _service(json.dumps(GENERATED[:2]))
    assert [e.name for e in svc.fetch_floor_entities("s")][0] == "Rotting Rat"

    svc, _ = _service("not json at all")
    assert svc.fetch_floor_entities("s")[1].name == "Hollow Guard"

    svc, _ = _service("")
    assert svc.fetch_floor_entities("s")[2].name == "The Forgotten"


def test_service_failure_uses_fallback() -> None:
    svc, _ = _service(RuntimeError("quota exceeded"))
    roster = svc.fetch_floor_entities("s", strength=2.0)
    assert [e.max_hp for e in roster] == [12, 20, 30]



def test_real_client_is_built_with_request_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[dict[str, object]] = []

    class _Client:
        def __init__(self, **kwargs: object) -> None:
            built.append(kwargs)
            self.models = _FakeModels(TimeoutError("read timed out"))

    monkeypatch.setattr(enemies.genai, "Client", _Client)
    svc = EnemyService(
        api_key="k", schema=_content().load_schema("enemies.schema.json"), timeout_ms=2_500
    )
    roster = svc.fetch_floor_entities("s")

    assert built[0]["api_key"] == "k"
    assert built[0]["http_options"].timeout == 2_500  # type: ignore[attr-defined]
    assert roster[0].name == "Rotting Rat"
    assert enemies.REQUEST_TIMEOUT_MS == 10_000

# -------- Progress --------
def _progress(tmp_path: Path) -> ProgressService:
    return ProgressService(tmp_path / "progress.json", schema=_content().load_schema("progress.schema.json"))


def test_progress_file_is_created(tmp_path: Path) -> None:
    svc = _progress(tmp_path)
    assert (tmp_path / "progress.json").exists()
    assert svc.progress.coins == 0
    assert svc.progress.unlocked_themes == ["default"]


def test_bank_floor_dedupes_bestiary(tmp_path: Path, tower) -> None:
    svc = _progress(tmp_path)
    svc.bank_floor(tower[0], 3, "10/17/2026")
    svc.bank_floor(tower[0], 2, "10/18/2026")
    svc.record_floor_reached(2)
    svc.record_floor_reached(1)

    again = _progress(tmp_path)
    assert again.progress.coins == 5
    assert [e.name for e in again.progress.bestiary] == ["Rotting Rat"]
    assert again.progress.bestiary[0].date_encountered == "10/17/2026"
    assert again.progress.tower_level == 2


def test_daily_claim_once_per_day(tmp_path: Path) -> None:
    svc = _progress(tmp_path)
    assert svc.claim_daily("10/17/2026")
    assert not svc.claim_daily("10/17/2026")
    assert svc.claim_daily("10/18/2026")
    assert svc.progress.coins == 2


def test_buy_and_select_theme(tmp_path: Path) -> None:
    svc = _progress(tmp_path)
    ember = CardTheme("ember", "Ember", 5, "Warm.", (90, 30, 20), (240, 140, 60))
    assert not svc.buy_theme(ember)

    svc.progress.coins = 7
    assert svc.buy_theme(ember)
    assert svc.progress.coins == 2
    assert svc.progress.selected_theme_id == "ember"
    assert not svc.buy_theme(ember)

    svc.select_theme("default")
    with pytest.raises(ProgressError):
        svc.select_theme("void")
    assert svc.progress.selected_theme_id == "default"


def test_corrupt_progress_starts_fresh(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    path.write_text("{ nope", encoding="utf-8")
    assert _progress(tmp_path).progress.coins == 0

    path.write_text(json.dumps({"coins": "lots"}), encoding="utf-8")
    assert _progress(tmp_path).progress.coins == 0


# -------- Telemetry --------
def test_telemetry_appends_jsonl(tmp_path: Path, tower) -> None:
    path = tmp_path / "logs" / "telemetry.jsonl"
    telemetry = TelemetryService(path)
    state = new_run(tower, seed=9)
    telemetry.run_event("run_started", state)
    telemetry.log("note", {"k": 1})

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["type"] == "run_started"
    assert first["payload"]["opponent"] == "Rotting Rat"
    assert first["payload"]["floor"] == 1
    assert json.loads(lines[1])["payload"] == {"k": 1}
