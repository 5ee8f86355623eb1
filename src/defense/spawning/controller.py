# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""SpawnController -- drives one wave's spawn stream from host ticks.

Phases (per wave cycle):
  IDLE      no wave; start_wave() -> ACTIVE
  ACTIVE    tick(dt) counts down and emits spawns; reaching
            max_enemies_per_wave -> DRAINING
  DRAINING  no further spawns; report_wave_complete() -> IDLE and feeds
            the outcome to the PerformanceTracker

There is no internal timer.  Time advances only through tick(delta_ms), and
a large delta (e.g. after a pause) produces every spawn that came due in
that window, in countdown order, with overshoot carried into the next
countdown.

Per spawn the strategy is consulted in a fixed order:
  select_enemy_type -> should_spawn_boss -> apply_difficulty_scaling
A positive boss roll replaces the selected type with a boss type.  The
active-enemy snapshot is re-read before every decision so concurrency
ceilings see spawns made earlier in the same tick.

Events published on EventBus (when one is supplied):
  - spawn_wave_started
  - spawn_enemy
  - spawn_wave_draining
  - spawn_wave_complete
  - spawn_wave_aborted
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from defense.spawning.enemies import Enemy, make_enemy
from defense.spawning.errors import ConfigurationError, UsageError

if TYPE_CHECKING:
    from defense.comms.event_bus import EventBus
    from defense.spawning.enemies import EnemyCollaborator
    from defense.spawning.performance import PerformanceSample, PerformanceTracker
    from defense.spawning.strategy import AdaptiveSpawnStrategy
    from defense.spawning.wave_config import WaveSpawnConfig


class SpawnPhase(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DRAINING = "draining"


@dataclass
class SpawnRunState:
    """Mutable state of the wave currently being spawned."""

    wave: int
    config: WaveSpawnConfig
    current_spawn_count: int = 0
    countdown_remaining: float = 0.0  # ms
    elapsed_ms: float = 0.0
    bosses_spawned: int = 0

    def to_dict(self) -> dict:
        return {
            "wave": self.wave,
            "current_spawn_count": self.current_spawn_count,
            "max_enemies_per_wave": self.config.max_enemies_per_wave,
            "countdown_remaining": round(self.countdown_remaining, 2),
            "elapsed_ms": round(self.elapsed_ms, 2),
            "bosses_spawned": self.bosses_spawned,
        }


@dataclass(frozen=True)
class SpawnEvent:
    """One spawn instruction handed to the enemy collaborator."""

    wave: int
    spawn_index: int
    enemy: Enemy

    @property
    def is_boss(self) -> bool:
        return self.enemy.is_boss

    def to_dict(self) -> dict:
        return {
            "wave": self.wave,
            "spawn_index": self.spawn_index,
            "is_boss": self.is_boss,
            "enemy": self.enemy.to_dict(),
        }


class SpawnController:
    """Owns the lifecycle of the active wave's spawn stream."""

    def __init__(
        self,
        strategy: AdaptiveSpawnStrategy,
        tracker: PerformanceTracker,
        enemies: EnemyCollaborator,
        event_bus: EventBus | None = None,
    ) -> None:
        self._strategy = strategy
        self._tracker = tracker
        self._enemies = enemies
        self._event_bus = event_bus
        self._phase = SpawnPhase.IDLE
        self._run: SpawnRunState | None = None
        self._started_once = False

    # -- Introspection ---------------------------------------------------------

    @property
    def phase(self) -> SpawnPhase:
        return self._phase

    @property
    def run_state(self) -> SpawnRunState | None:
        return self._run

    @property
    def current_wave(self) -> int | None:
        return self._run.wave if self._run is not None else None

    @property
    def current_config(self) -> WaveSpawnConfig | None:
        return self._run.config if self._run is not None else None

    @property
    def strategy(self) -> AdaptiveSpawnStrategy:
        return self._strategy

    @property
    def tracker(self) -> PerformanceTracker:
        return self._tracker

    @property
    def enemies(self) -> EnemyCollaborator:
        return self._enemies

    def to_dict(self) -> dict:
        return {
            "phase": self._phase.value,
            "run": self._run.to_dict() if self._run is not None else None,
            "performance": self._tracker.to_dict(),
        }

    # -- Lifecycle -------------------------------------------------------------

    def start_wave(self, wave: int) -> SpawnRunState:
        """Begin spawning *wave*.

        Raises:
            UsageError: a wave is already active or draining.
            ConfigurationError: no configuration resolves for *wave*.  The
                controller stays IDLE.
        """
        if self._phase is not SpawnPhase.IDLE:
            msg = f"start_wave({wave}) called while wave {self.current_wave} is {self._phase.value}"
            logger.error(msg)
            raise UsageError(msg, phase=self._phase)

        try:
            config = self._strategy.get_config(wave)
            first_delay = self._strategy.calculate_next_spawn_delay(wave, 0)
        except ConfigurationError:
            logger.error(f"Wave {wave} not started: no usable configuration")
            raise

        self._run = SpawnRunState(wave=wave, config=config, countdown_remaining=first_delay)
        self._phase = SpawnPhase.ACTIVE
        self._started_once = True
        logger.info(
            f"Wave {wave} started: {config.max_enemies_per_wave} enemies, "
            f"first spawn in {first_delay:.0f}ms"
        )
        self._publish("spawn_wave_started", {
            "wave": wave,
            "max_enemies": config.max_enemies_per_wave,
            "first_delay_ms": first_delay,
        })
        return self._run

    def tick(self, delta_ms: float) -> list[SpawnEvent]:
        """Advance the countdown by *delta_ms* and emit any due spawns.

        Returns the spawns made during this tick, in order.

        Raises:
            UsageError: no wave has ever been started.
        """
        if not self._started_once:
            msg = "tick() called before any start_wave()"
            logger.error(msg)
            raise UsageError(msg, phase=self._phase)

        if not math.isfinite(delta_ms) or delta_ms < 0:
            logger.warning(f"Invalid tick delta {delta_ms}ms clamped to 0")
            delta_ms = 0.0

        run = self._run
        if self._phase is SpawnPhase.IDLE or run is None:
            return []

        run.elapsed_ms += delta_ms
        if self._phase is SpawnPhase.DRAINING:
            return []

        max_enemies = run.config.max_enemies_per_wave
        run.countdown_remaining -= delta_ms
        spawned: list[SpawnEvent] = []
        while run.countdown_remaining <= 0 and run.current_spawn_count < max_enemies:
            spawned.append(self._spawn_next(run))
            run.current_spawn_count += 1
            if run.current_spawn_count < max_enemies:
                # Adding keeps the overshoot from this tick
                run.countdown_remaining += self._strategy.calculate_next_spawn_delay(
                    run.wave, run.current_spawn_count,
                )

        if run.current_spawn_count >= max_enemies:
            self._enter_draining(run)
        return spawned

    def report_wave_complete(
        self,
        wave: int,
        completion_time: float | None = None,
        *,
        towers_used: int,
    ) -> PerformanceSample:
        """Signal that every enemy of the draining wave is resolved.

        Records the outcome with the PerformanceTracker and returns to IDLE.
        When *completion_time* is None the ms accumulated from ticks since
        start_wave is used.  *towers_used* is keyword-only and required;
        the host must always say how many towers the wave took.

        Raises:
            UsageError: the wave is not draining, or *wave* is not the
                current wave.
        """
        run = self._run
        if self._phase is not SpawnPhase.DRAINING or run is None:
            msg = f"report_wave_complete({wave}) called while {self._phase.value}"
            logger.error(msg)
            raise UsageError(msg, phase=self._phase)
        if wave != run.wave:
            msg = f"report_wave_complete({wave}) does not match draining wave {run.wave}"
            logger.error(msg)
            raise UsageError(msg, phase=self._phase)

        elapsed = completion_time if completion_time is not None else run.elapsed_ms
        sample = self._tracker.track_player_performance(wave, elapsed, towers_used)

        self._phase = SpawnPhase.IDLE
        self._run = None
        logger.info(f"Wave {wave} complete")
        self._publish("spawn_wave_complete", {
            "wave": wave,
            "completion_time": elapsed,
            "towers_used": towers_used,
            "score": sample.score,
            "performance_score": self._tracker.get_performance_score(),
            "difficulty_modifier": self._tracker.get_adaptive_difficulty_modifier(),
        })
        return sample

    def abort_wave(self) -> None:
        """Drop the current wave without recording performance.

        Raises:
            UsageError: no wave is active or draining.
        """
        run = self._run
        if self._phase is SpawnPhase.IDLE or run is None:
            msg = "abort_wave() called with no wave in progress"
            logger.error(msg)
            raise UsageError(msg, phase=self._phase)

        logger.info(f"Wave {run.wave} aborted after {run.current_spawn_count} spawns")
        self._phase = SpawnPhase.IDLE
        self._run = None
        self._publish("spawn_wave_aborted", {
            "wave": run.wave,
            "spawned": run.current_spawn_count,
        })

    # -- Internal --------------------------------------------------------------

    def _spawn_next(self, run: SpawnRunState) -> SpawnEvent:
        active = list(self._enemies.active_enemies())
        enemy_type = self._strategy.select_enemy_type(run.wave, active)
        is_boss = self._strategy.should_spawn_boss(run.wave, run.current_spawn_count)
        if is_boss:
            enemy_type = self._strategy.select_boss_type(run.wave)
            run.bosses_spawned += 1

        enemy = self._strategy.apply_difficulty_scaling(make_enemy(enemy_type, is_boss=is_boss), run.wave)
        self._enemies.spawn(enemy)

        event = SpawnEvent(wave=run.wave, spawn_index=run.current_spawn_count, enemy=enemy)
        logger.debug(
            f"Wave {run.wave} spawn #{event.spawn_index}: {enemy_type}"
            f"{' (boss)' if is_boss else ''} hp={enemy.health:.1f} speed={enemy.speed:.1f}"
        )
        self._publish("spawn_enemy", event.to_dict())
        return event

    def _enter_draining(self, run: SpawnRunState) -> None:
        self._phase = SpawnPhase.DRAINING
        run.countdown_remaining = 0.0
        logger.info(f"Wave {run.wave} draining: all {run.current_spawn_count} enemies spawned")
        self._publish("spawn_wave_draining", {
            "wave": run.wave,
            "spawned": run.current_spawn_count,
            "bosses": run.bosses_spawned,
        })

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)
