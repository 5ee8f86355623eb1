# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""AdaptiveSpawnStrategy -- per-spawn decisions for the active wave.

Four decisions, each driven by the wave's WaveSpawnConfig and the
tracker's current difficulty modifier:

  calculate_next_spawn_delay  how long until the next spawn
  select_enemy_type           weighted pick under concurrency ceilings
  should_spawn_boss           gated boss coin-flip
  apply_difficulty_scaling    wave + performance stat scaling

Spawn delay:
  raw   = max(floor, base_spawn_rate - spawn_rate_acceleration * count)
  delay = raw / difficulty_modifier
  delay /= adaptive_spawn_modifier   (only when score >= performance_threshold)
  delay = max(floor, delay)

Stat scaling:
  health *= health_scaling_factor ** (wave - 1) * difficulty_modifier
  speed  *= speed_scaling_factor ** ((wave - 1) * 0.5)
  bosses additionally take the boss health/speed/gold multipliers.
  Every stat is floored at SpawnSettings.min_stat_value.

All randomness comes from the injected ``rng`` so tests can seed it.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import TYPE_CHECKING, Sequence

from loguru import logger

from defense.spawning.enemies import Enemy, count_by_type

if TYPE_CHECKING:
    from defense.config import SpawnSettings
    from defense.spawning.performance import PerformanceTracker
    from defense.spawning.wave_config import (
        EnemyCompositionEntry,
        WaveConfigRegistry,
        WaveSpawnConfig,
    )

# Speed scales at half the wave exponent used for health
_SPEED_EXPONENT_RATIO = 0.5


def health_exponent(wave: int) -> float:
    return float(max(0, wave - 1))


def speed_exponent(wave: int) -> float:
    return health_exponent(wave) * _SPEED_EXPONENT_RATIO


class AdaptiveSpawnStrategy:
    """Spawn pacing, enemy mix and scaling tuned by player performance."""

    def __init__(
        self,
        tracker: PerformanceTracker,
        registry: WaveConfigRegistry,
        rng: random.Random | None = None,
        settings: SpawnSettings | None = None,
    ) -> None:
        if settings is None:
            from defense.config import settings as default_settings
            settings = default_settings
        self._tracker = tracker
        self._registry = registry
        self._rng = rng if rng is not None else random.Random()
        self._min_delay = settings.min_spawn_delay_ms
        self._min_stat = settings.min_stat_value
        self._default_boss_min_wave = settings.default_boss_min_wave

    @property
    def registry(self) -> WaveConfigRegistry:
        return self._registry

    @property
    def min_spawn_delay(self) -> float:
        return self._min_delay

    def get_config(self, wave: int) -> WaveSpawnConfig:
        return self._registry.get_config(wave)

    # -- Pacing ----------------------------------------------------------------

    def calculate_next_spawn_delay(self, wave: int, current_spawn_count: int) -> float:
        """Milliseconds until the next spawn."""
        config = self.get_config(wave)
        count = max(0, current_spawn_count)

        raw = max(
            self._min_delay,
            config.base_spawn_rate - config.spawn_rate_acceleration * count,
        )
        delay = raw / self._tracker.get_adaptive_difficulty_modifier()

        mods = config.difficulty_modifiers
        if self._tracker.get_performance_score() >= mods.performance_threshold:
            delay /= mods.adaptive_spawn_modifier

        return max(self._min_delay, delay)

    # -- Selection -------------------------------------------------------------

    def selectable_entries(
        self, wave: int, active_enemies: Sequence[Enemy],
    ) -> list[EnemyCompositionEntry]:
        """Composition entries eligible for *wave* with concurrency headroom."""
        config = self.get_config(wave)
        return [
            entry for entry in config.enemy_composition
            if entry.is_eligible(wave)
            and entry.has_capacity(count_by_type(active_enemies, entry.enemy_type))
        ]

    def select_enemy_type(self, wave: int, active_enemies: Sequence[Enemy]) -> str:
        """Weighted random pick among eligible types.

        With nothing eligible, returns the entry with the lowest min_wave
        (first listed on ties) regardless of its concurrency ceiling.
        """
        config = self.get_config(wave)
        eligible = self.selectable_entries(wave, active_enemies)

        if not eligible:
            fallback = min(config.enemy_composition, key=lambda e: e.min_wave)
            logger.debug(f"Wave {wave}: no eligible enemy types, falling back to {fallback.enemy_type}")
            return fallback.enemy_type

        weighted = [e for e in eligible if e.weight > 0]
        if not weighted:
            return eligible[0].enemy_type

        total = sum(e.weight for e in weighted)
        roll = self._rng.random() * total
        for entry in weighted:
            roll -= entry.weight
            if roll < 0:
                return entry.enemy_type
        # Float rounding can leave a sliver past the last entry
        return weighted[-1].enemy_type

    # -- Bosses ----------------------------------------------------------------

    def boss_min_wave(self, wave: int) -> int | None:
        """Wave from which bosses may appear, or None without a boss config."""
        boss = self.get_config(wave).boss_config
        if boss is None:
            return None
        return boss.min_wave if boss.min_wave is not None else self._default_boss_min_wave

    def should_spawn_boss(self, wave: int, current_spawn_count: int) -> bool:
        """Roll once for a boss at this scheduling decision."""
        config = self.get_config(wave)
        boss = config.boss_config
        if boss is None:
            return False

        min_wave = self.boss_min_wave(wave)
        if min_wave is not None and wave < min_wave:
            return False

        # Strictly past the threshold; 0.0 disables the gate
        progress_needed = boss.min_progress * config.max_enemies_per_wave
        if boss.min_progress > 0 and max(0, current_spawn_count) <= progress_needed:
            return False

        return self._rng.random() < boss.spawn_chance

    def select_boss_type(self, wave: int) -> str:
        boss = self.get_config(wave).boss_config
        if boss is None:
            raise ValueError(f"Wave {wave} has no boss configuration")
        return self._rng.choice(boss.boss_types)

    # -- Scaling ---------------------------------------------------------------

    def apply_difficulty_scaling(self, enemy: Enemy, wave: int) -> Enemy:
        """Return a scaled copy of *enemy*; the original is left untouched."""
        config = self.get_config(wave)
        mods = config.difficulty_modifiers
        modifier = self._tracker.get_adaptive_difficulty_modifier()

        health = enemy.health * mods.health_scaling_factor ** health_exponent(wave) * modifier
        speed = enemy.speed * mods.speed_scaling_factor ** speed_exponent(wave)
        gold = enemy.gold

        boss = config.boss_config
        if enemy.is_boss and boss is not None:
            health *= boss.health_multiplier
            speed *= boss.speed_multiplier
            gold *= boss.gold_multiplier

        health = max(self._min_stat, health)
        return replace(
            enemy,
            health=health,
            max_health=health,
            speed=max(self._min_stat, speed),
            gold=max(self._min_stat, gold),
        )
