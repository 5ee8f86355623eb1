# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Process-wide tunables for the spawn scheduler.

Values are read from the environment (prefix ``DEFENSE_SPAWN_``) so a host
can retune pacing floors and history windows without touching wave data.
Components take an explicit settings object and fall back to the module
level ``settings`` when none is given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpawnSettings(BaseSettings):
    """Tunables shared by the tracker, strategy and controller."""

    model_config = SettingsConfigDict(env_prefix="DEFENSE_SPAWN_", extra="ignore")

    # Pacing
    min_spawn_delay_ms: float = Field(default=200.0, gt=0)

    # Performance history
    history_capacity: int = Field(default=10, ge=1)
    score_window: int = Field(default=5, ge=1)
    neutral_score: float = Field(default=0.5, ge=0.0, le=1.0)

    # Stat scaling
    min_stat_value: float = Field(default=1.0, gt=0)

    # Bosses
    default_boss_min_wave: int = Field(default=5, ge=1)

    # Wave data
    wave_config_path: Optional[Path] = None
    extend_last_tier: bool = True


settings = SpawnSettings()
