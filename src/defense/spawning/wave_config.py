# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Wave spawn configuration models and the per-wave registry.

Wave data is plain data: a list of tiers, each covering a contiguous wave
range and carrying one WaveSpawnConfig.  Models are frozen pydantic models
so a loaded registry can be shared read-only across waves.  Keys may be
written snake_case or camelCase (``baseSpawnRate``) in data files.

Resolution:
  - The tier whose [min_wave, max_wave] range covers the wave wins.
    max_wave None means open ended.
  - Waves past the last tier reuse the highest tier, so late-game
    difficulty never resets.  Disable with extend_last_tier=False.
  - Anything else (wave below the first tier, gaps) is a
    ConfigurationError.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from defense.spawning.errors import ConfigurationError

# max_concurrent value meaning "no ceiling"
UNLIMITED = -1


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )


class EnemyCompositionEntry(_ConfigModel):
    """One enemy type eligible for selection within a wave."""
    enemy_type: str = Field(..., alias="type", min_length=1)
    weight: float = Field(..., ge=0.0, description="Relative probability mass")
    min_wave: int = Field(default=1, ge=1)
    max_concurrent: int = Field(default=UNLIMITED, ge=UNLIMITED, description="-1 for no ceiling")

    def is_eligible(self, wave: int) -> bool:
        return wave >= self.min_wave

    def has_capacity(self, active_count: int) -> bool:
        return self.max_concurrent == UNLIMITED or active_count < self.max_concurrent


class BossSpawnConfig(_ConfigModel):
    """Rare, stat-amplified spawns."""
    spawn_chance: float = Field(..., ge=0.0, le=1.0)
    boss_types: tuple[str, ...] = Field(..., min_length=1)
    health_multiplier: float = Field(default=1.0, gt=0.0)
    speed_multiplier: float = Field(default=1.0, gt=0.0)
    gold_multiplier: float = Field(default=1.0, gt=0.0)
    # None -> SpawnSettings.default_boss_min_wave
    min_wave: Optional[int] = Field(default=None, ge=1)
    # Fraction of max_enemies_per_wave that must be exceeded before a boss
    min_progress: float = Field(default=0.0, ge=0.0, le=1.0)


class DifficultyModifiers(_ConfigModel):
    """Static scaling knobs, combined with the dynamic difficulty modifier."""
    performance_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    adaptive_spawn_modifier: float = Field(default=1.0, gt=0.0)
    health_scaling_factor: float = Field(default=1.0, gt=0.0)
    speed_scaling_factor: float = Field(default=1.0, gt=0.0)


class WaveSpawnConfig(_ConfigModel):
    """Spawn pacing, composition and scaling for a wave (or wave range)."""
    base_spawn_rate: float = Field(..., gt=0.0, description="ms between spawns at spawn 0")
    spawn_rate_acceleration: float = Field(default=0.0, ge=0.0, description="ms removed per spawn")
    max_enemies_per_wave: int = Field(..., ge=1)
    enemy_composition: tuple[EnemyCompositionEntry, ...] = Field(..., min_length=1)
    boss_config: Optional[BossSpawnConfig] = None
    difficulty_modifiers: DifficultyModifiers = Field(default_factory=DifficultyModifiers)


class WaveTier(_ConfigModel):
    """A WaveSpawnConfig bound to an inclusive wave range."""
    name: str = ""
    min_wave: int = Field(..., ge=1)
    max_wave: Optional[int] = None
    config: WaveSpawnConfig

    @model_validator(mode="after")
    def _check_range(self) -> "WaveTier":
        if self.max_wave is not None and self.max_wave < self.min_wave:
            raise ValueError(f"max_wave {self.max_wave} < min_wave {self.min_wave}")
        return self

    def covers(self, wave: int) -> bool:
        if wave < self.min_wave:
            return False
        return self.max_wave is None or wave <= self.max_wave


class WaveConfigRegistry:
    """Immutable lookup from wave number to WaveSpawnConfig."""

    def __init__(self, tiers: Iterable[WaveTier], extend_last_tier: bool = True) -> None:
        self._tiers: tuple[WaveTier, ...] = tuple(sorted(tiers, key=lambda t: t.min_wave))
        self._extend_last_tier = extend_last_tier
        self._validate()

    def _validate(self) -> None:
        for prev, nxt in zip(self._tiers, self._tiers[1:]):
            if prev.max_wave is None or prev.max_wave >= nxt.min_wave:
                msg = (
                    f"Wave tier '{prev.name}' ({prev.min_wave}-{prev.max_wave}) "
                    f"overlaps tier '{nxt.name}' starting at wave {nxt.min_wave}"
                )
                logger.error(msg)
                raise ConfigurationError(msg)

    # -- Construction ----------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict | list, extend_last_tier: bool = True) -> "WaveConfigRegistry":
        """Build a registry from ``{"tiers": [...]}`` or a bare list of tiers."""
        raw = data.get("tiers", []) if isinstance(data, dict) else data
        try:
            tiers = [WaveTier.model_validate(t) for t in raw]
        except ValidationError as e:
            logger.error(f"Invalid wave configuration: {e}")
            raise ConfigurationError(f"Invalid wave configuration: {e}") from e
        return cls(tiers, extend_last_tier=extend_last_tier)

    @classmethod
    def from_json(cls, path: str | Path, extend_last_tier: bool = True) -> "WaveConfigRegistry":
        """Load wave tiers from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load wave configuration {path}: {e}")
            raise ConfigurationError(f"Failed to load wave configuration {path}: {e}") from e
        registry = cls.from_dict(data, extend_last_tier=extend_last_tier)
        logger.info(f"Loaded {len(registry.tiers)} wave tiers from {path}")
        return registry

    @classmethod
    def default(cls, extend_last_tier: bool = True) -> "WaveConfigRegistry":
        """Registry over the built-in easy..nightmare tiers."""
        return cls.from_dict(DEFAULT_WAVE_TIERS, extend_last_tier=extend_last_tier)

    # -- Lookup ----------------------------------------------------------------

    @property
    def tiers(self) -> tuple[WaveTier, ...]:
        return self._tiers

    def get_tier(self, wave: int) -> WaveTier:
        """Return the tier responsible for *wave*.

        Raises:
            ConfigurationError: no tier covers *wave* and no fallback applies.
        """
        for tier in self._tiers:
            if tier.covers(wave):
                return tier

        if self._tiers and self._extend_last_tier:
            last = self._tiers[-1]
            if last.max_wave is not None and wave > last.max_wave:
                return last

        msg = f"No wave configuration for wave {wave}"
        logger.error(msg)
        raise ConfigurationError(msg, wave=wave)

    def get_config(self, wave: int) -> WaveSpawnConfig:
        return self.get_tier(wave).config


# ---------------------------------------------------------------------------
# Built-in tiers
# ---------------------------------------------------------------------------

DEFAULT_WAVE_TIERS: list[dict] = [
    {
        "name": "easy",
        "min_wave": 1,
        "max_wave": 5,
        "config": {
            "base_spawn_rate": 1800,
            "spawn_rate_acceleration": 50,
            "max_enemies_per_wave": 8,
            "enemy_composition": [
                {"type": "Basic", "weight": 80, "min_wave": 1, "max_concurrent": UNLIMITED},
                {"type": "Scout", "weight": 20, "min_wave": 3, "max_concurrent": 2},
            ],
            "difficulty_modifiers": {
                "performance_threshold": 0.6,
                "adaptive_spawn_modifier": 1.0,
                "health_scaling_factor": 1.12,
                "speed_scaling_factor": 1.03,
            },
        },
    },
    {
        "name": "medium",
        "min_wave": 6,
        "max_wave": 10,
        "config": {
            "base_spawn_rate": 1400,
            "spawn_rate_acceleration": 60,
            "max_enemies_per_wave": 12,
            "enemy_composition": [
                {"type": "Basic", "weight": 50, "min_wave": 1, "max_concurrent": UNLIMITED},
                {"type": "Scout", "weight": 30, "min_wave": 1, "max_concurrent": 4},
                {"type": "Tank", "weight": 20, "min_wave": 6, "max_concurrent": 2},
            ],
            "boss_config": {
                "spawn_chance": 0.15,
                "boss_types": ["Tank"],
                "health_multiplier": 1.5,
                "speed_multiplier": 0.8,
                "gold_multiplier": 2.0,
                "min_progress": 0.7,
            },
            "difficulty_modifiers": {
                "performance_threshold": 0.65,
                "adaptive_spawn_modifier": 1.1,
                "health_scaling_factor": 1.15,
                "speed_scaling_factor": 1.05,
            },
        },
    },
    {
        "name": "hard",
        "min_wave": 11,
        "max_wave": 15,
        "config": {
            "base_spawn_rate": 1000,
            "spawn_rate_acceleration": 50,
            "max_enemies_per_wave": 16,
            "enemy_composition": [
                {"type": "Basic", "weight": 30, "min_wave": 1, "max_concurrent": UNLIMITED},
                {"type": "Scout", "weight": 35, "min_wave": 1, "max_concurrent": 6},
                {"type": "Tank", "weight": 25, "min_wave": 1, "max_concurrent": 3},
                {"type": "Ghost", "weight": 10, "min_wave": 11, "max_concurrent": 2},
            ],
            "boss_config": {
                "spawn_chance": 0.25,
                "boss_types": ["Tank", "Ghost"],
                "health_multiplier": 2.0,
                "speed_multiplier": 0.9,
                "gold_multiplier": 2.5,
                "min_progress": 0.7,
            },
            "difficulty_modifiers": {
                "performance_threshold": 0.7,
                "adaptive_spawn_modifier": 1.2,
                "health_scaling_factor": 1.18,
                "speed_scaling_factor": 1.06,
            },
        },
    },
    {
        "name": "extreme",
        "min_wave": 16,
        "max_wave": 25,
        "config": {
            "base_spawn_rate": 700,
            "spawn_rate_acceleration": 30,
            "max_enemies_per_wave": 20,
            "enemy_composition": [
                {"type": "Basic", "weight": 20, "min_wave": 1, "max_concurrent": UNLIMITED},
                {"type": "Scout", "weight": 30, "min_wave": 1, "max_concurrent": 8},
                {"type": "Tank", "weight": 30, "min_wave": 1, "max_concurrent": 4},
                {"type": "Ghost", "weight": 20, "min_wave": 1, "max_concurrent": 4},
            ],
            "boss_config": {
                "spawn_chance": 0.35,
                "boss_types": ["Tank", "Ghost"],
                "health_multiplier": 2.5,
                "speed_multiplier": 1.0,
                "gold_multiplier": 3.0,
                "min_progress": 0.7,
            },
            "difficulty_modifiers": {
                "performance_threshold": 0.75,
                "adaptive_spawn_modifier": 1.3,
                "health_scaling_factor": 1.22,
                "speed_scaling_factor": 1.08,
            },
        },
    },
    {
        "name": "nightmare",
        "min_wave": 26,
        "max_wave": None,
        "config": {
            "base_spawn_rate": 500,
            "spawn_rate_acceleration": 20,
            "max_enemies_per_wave": 25,
            "enemy_composition": [
                {"type": "Basic", "weight": 15, "min_wave": 1, "max_concurrent": UNLIMITED},
                {"type": "Scout", "weight": 25, "min_wave": 1, "max_concurrent": 10},
                {"type": "Tank", "weight": 35, "min_wave": 1, "max_concurrent": 6},
                {"type": "Ghost", "weight": 25, "min_wave": 1, "max_concurrent": 6},
            ],
            "boss_config": {
                "spawn_chance": 0.45,
                "boss_types": ["Tank", "Ghost"],
                "health_multiplier": 3.0,
                "speed_multiplier": 1.1,
                "gold_multiplier": 4.0,
                "min_progress": 0.7,
            },
            "difficulty_modifiers": {
                "performance_threshold": 0.8,
                "adaptive_spawn_modifier": 1.4,
                "health_scaling_factor": 1.25,
                "speed_scaling_factor": 1.10,
            },
        },
    },
]
