# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Adaptive enemy-spawn scheduling for wave-based defense games.

Factory function wires an explicitly owned tracker, strategy and
controller.  Nothing here is a process-wide singleton: every call to
create_spawn_system() returns a fresh, independent set of objects.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from defense.comms.event_bus import EventBus
    from defense.config import SpawnSettings
    from defense.spawning.controller import SpawnController
    from defense.spawning.enemies import EnemyCollaborator
    from defense.spawning.wave_config import WaveConfigRegistry


def create_spawn_system(
    settings: SpawnSettings | None = None,
    registry: WaveConfigRegistry | None = None,
    rng: random.Random | None = None,
    event_bus: EventBus | None = None,
    roster: EnemyCollaborator | None = None,
) -> SpawnController:
    """Create a SpawnController with its tracker, strategy and roster.

    Args:
        settings: SpawnSettings, or None for the module defaults.
        registry: Wave data.  When None, loads ``settings.wave_config_path``
                  if set, otherwise the built-in tiers.
        rng: Random source for enemy selection and boss rolls.
        event_bus: Optional EventBus for spawn/wave events.
        roster: Enemy-management collaborator.  Defaults to an in-memory
                EnemyRoster.

    Returns:
        A SpawnController in the Idle phase.  The tracker and strategy are
        reachable as ``controller.tracker`` and ``controller.strategy``.
    """
    from defense.config import settings as default_settings
    from defense.spawning.controller import SpawnController
    from defense.spawning.enemies import EnemyCollaborator
    from defense.spawning.enemies import EnemyRoster
    from defense.spawning.performance import PerformanceTracker
    from defense.spawning.strategy import AdaptiveSpawnStrategy
    from defense.spawning.wave_config import WaveConfigRegistry

    cfg = settings if settings is not None else default_settings

    if registry is None:
        if cfg.wave_config_path is not None:
            registry = WaveConfigRegistry.from_json(
                cfg.wave_config_path, extend_last_tier=cfg.extend_last_tier,
            )
        else:
            registry = WaveConfigRegistry.default(extend_last_tier=cfg.extend_last_tier)

    tracker = PerformanceTracker(settings=cfg)
    strategy = AdaptiveSpawnStrategy(tracker, registry, rng=rng, settings=cfg)
    return SpawnController(
        strategy,
        tracker,
        roster if roster is not None else EnemyRoster(),
        event_bus=event_bus,
    )
