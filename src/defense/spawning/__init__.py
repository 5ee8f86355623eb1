# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Adaptive spawn scheduling.

Dependency order (leaves first):
  PerformanceTracker, WaveConfigRegistry -> AdaptiveSpawnStrategy
  -> SpawnController
"""

from defense.spawning.controller import SpawnController, SpawnEvent, SpawnPhase, SpawnRunState
from defense.spawning.enemies import Enemy, EnemyRoster, make_enemy
from defense.spawning.errors import ConfigurationError, SpawnError, UsageError
from defense.spawning.performance import PerformanceHistory, PerformanceSample, PerformanceTracker
from defense.spawning.strategy import AdaptiveSpawnStrategy
from defense.spawning.wave_config import (
    BossSpawnConfig,
    DifficultyModifiers,
    EnemyCompositionEntry,
    WaveConfigRegistry,
    WaveSpawnConfig,
    WaveTier,
)

__all__ = [
    "AdaptiveSpawnStrategy",
    "BossSpawnConfig",
    "ConfigurationError",
    "DifficultyModifiers",
    "Enemy",
    "EnemyCompositionEntry",
    "EnemyRoster",
    "PerformanceHistory",
    "PerformanceSample",
    "PerformanceTracker",
    "SpawnController",
    "SpawnError",
    "SpawnEvent",
    "SpawnPhase",
    "SpawnRunState",
    "UsageError",
    "WaveConfigRegistry",
    "WaveSpawnConfig",
    "WaveTier",
    "make_enemy",
]
