# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Errors surfaced to the host by the spawn scheduler.

Data anomalies in performance inputs are not errors; they are clamped
where they occur.
"""

from __future__ import annotations

from typing import Any


class SpawnError(Exception):
    """Base class for spawn scheduler errors."""


class ConfigurationError(SpawnError):
    """No usable wave configuration, or wave data failed validation."""

    def __init__(self, message: str, wave: int | None = None):
        self.wave = wave
        super().__init__(message)


class UsageError(SpawnError):
    """A controller operation was called in a phase that does not allow it."""

    def __init__(self, message: str, phase: Any = None):
        self.phase = phase
        super().__init__(message)
