from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .types import Side


class CueSink(Protocol):
    """Presentation side channel. Return values are never consulted."""

    def play_cue(self, cue: str) -> None: ...

    def trigger_animation(self, side: Side, cue: str) -> None: ...


class NullCueSink:
    def play_cue(self, cue: str) -> None:
        return None

    def trigger_animation(self, side: Side, cue: str) -> None:
        return None


@dataclass
class RecordingCueSink:
    """Keeps every cue in order; handy for headless runs and tests."""

    sounds: list[str] = field(default_factory=list)
    animations: list[tuple[Side, str]] = field(default_factory=list)

    def play_cue(self, cue: str) -> None:
        self.sounds.append(cue)

    def trigger_animation(self, side: Side, cue: str) -> None:
        self.animations.append((side, cue))
