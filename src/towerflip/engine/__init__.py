"""Deterministic, headless battle engine for Towerflip.

IMPORTANT: This package must never import pygame.
"""

from .battle import RunState, StepResult, enter_merchant, flip, reshuffle
from .config import EngineConfig
from .run import advance_floor, new_run, share_text
from .types import Card, Entity, GamePhase

__all__ = [
    "Card",
    "EngineConfig",
    "Entity",
    "GamePhase",
    "RunState",
    "StepResult",
    "advance_floor",
    "enter_merchant",
    "flip",
    "new_run",
    "reshuffle",
    "share_text",
]
