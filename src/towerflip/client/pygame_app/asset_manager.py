from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pygame  # type: ignore[import-not-found]

from towerflip.engine.types import Side

ANIMATION_SECONDS = 0.5


@dataclass
class Fonts:
    ui: pygame.font.Font
    small: pygame.font.Font
    big: pygame.font.Font


class AssetManager:
    def __init__(self, sounds_dir: Path) -> None:
        self.sounds_dir = sounds_dir
        self._sounds: dict[str, pygame.mixer.Sound | None] = {}

        pygame.font.init()
        self.fonts = Fonts(
            ui=pygame.font.SysFont(None, 24),
            small=pygame.font.SysFont(None, 18),
            big=pygame.font.SysFont(None, 34),
        )

    def get_sound(self, cue: str) -> pygame.mixer.Sound | None:
        if cue in self._sounds:
            return self._sounds[cue]
        sound: pygame.mixer.Sound | None = None
        path = self.sounds_dir / f"{cue}.wav"
        if path.exists() and pygame.mixer.get_init():
            try:
                sound = pygame.mixer.Sound(path.as_posix())
            except pygame.error:
                sound = None
        self._sounds[cue] = sound
        return sound


@dataclass
class PygameCueSink:
    """Plays cue sounds when a matching wav exists and keeps short-lived animation flags per side."""

    assets: AssetManager
    active: dict[Side, tuple[str, float]] = field(default_factory=dict)

    def play_cue(self, cue: str) -> None:
        sound = self.assets.get_sound(cue)
        if sound is not None:
            sound.play()

    def trigger_animation(self, side: Side, cue: str) -> None:
        self.active[side] = (cue, ANIMATION_SECONDS)

    def update(self, dt: float) -> None:
        for side, (cue, left) in list(self.active.items()):
            if left - dt <= 0:
                del self.active[side]
            else:
                self.active[side] = (cue, left - dt)

    def animation_for(self, side: Side) -> str | None:
        entry = self.active.get(side)
        return entry[0] if entry else None
