# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""PerformanceTracker -- rolling measure of how well the player is doing.

Architecture
------------
Every completed wave produces one PerformanceSample.  Samples live in a
fixed-capacity ring buffer (PerformanceHistory, default 10 slots); once
full, each append overwrites the oldest slot.

Per-sample score in [0, 1]:
  expected_time   = 15000 + wave * 2000           (ms)
  expected_towers = min(8, 2 + wave // 3)
  time_score       = clamp(expected_time / completion_time, 0, 1)
  efficiency_score = clamp(expected_towers / towers_used, 0, 1)
  score = 0.6 * time_score + 0.4 * efficiency_score

Finishing faster than expected, or with fewer towers than expected,
saturates the sub-score at 1.  A zero input also saturates (the ratio
diverges); negative or NaN inputs score 0 for that sub-score.

Performance score:
  Mean of the last 5 sample scores, clamped to [0, 1].  0.5 with no history.

Difficulty modifier (continuous, non-decreasing, range [0.7, 1.3]):
  score < 0.3         0.7 + (score / 0.3) * 0.2
  0.3 <= score < 0.7  0.9 + ((score - 0.3) / 0.4) * 0.2
  score >= 0.7        1.1 + ((score - 0.7) / 0.3) * 0.2
"""

from __future__ import annotations

import math
import threading
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Iterator

from loguru import logger

if TYPE_CHECKING:
    from defense.config import SpawnSettings


# Score weights
_WEIGHT_TIME = 0.6
_WEIGHT_EFFICIENCY = 0.4

# Expected completion time: base + per-wave increment (ms)
_EXPECTED_TIME_BASE_MS = 15000.0
_EXPECTED_TIME_PER_WAVE_MS = 2000.0

# Expected tower count: base + one per 3 waves, capped
_EXPECTED_TOWERS_BASE = 2
_EXPECTED_TOWERS_CAP = 8

# Difficulty modifier breakpoints
_LOW_BREAKPOINT = 0.3
_HIGH_BREAKPOINT = 0.7
_MODIFIER_FLOOR = 0.7
_MODIFIER_MID_LOW = 0.9
_MODIFIER_MID_HIGH = 1.1
_SEGMENT_SPAN = 0.2


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class PerformanceSample:
    """Outcome of one completed wave."""

    wave: int
    completion_time: float  # ms
    towers_used: int
    score: float            # [0, 1]

    def to_dict(self) -> dict:
        return asdict(self)


def expected_time_ms(wave: int) -> float:
    """Completion time (ms) a par player needs for *wave*."""
    return _EXPECTED_TIME_BASE_MS + wave * _EXPECTED_TIME_PER_WAVE_MS


def expected_towers(wave: int) -> int:
    """Tower count a par player uses for *wave*."""
    return min(_EXPECTED_TOWERS_CAP, _EXPECTED_TOWERS_BASE + wave // 3)


def score_wave(wave: int, completion_time: float, towers_used: int) -> float:
    """Compute the [0, 1] score for a single wave outcome.

    A zero duration or tower count saturates its sub-score at 1 (the ratio
    diverges).  Negative or NaN inputs score 0 for that sub-score.
    """
    if math.isnan(completion_time) or completion_time < 0:
        logger.warning(f"Wave {wave}: invalid completion time {completion_time}, time score 0")
        time_score = 0.0
    elif completion_time == 0:
        time_score = 1.0
    else:
        time_score = _clamp(expected_time_ms(wave) / completion_time, 0.0, 1.0)

    if towers_used < 0:
        logger.warning(f"Wave {wave}: negative tower count {towers_used}, efficiency score 0")
        efficiency_score = 0.0
    elif towers_used == 0:
        efficiency_score = 1.0
    else:
        efficiency_score = _clamp(expected_towers(wave) / towers_used, 0.0, 1.0)

    return _WEIGHT_TIME * time_score + _WEIGHT_EFFICIENCY * efficiency_score


def difficulty_modifier_for(score: float) -> float:
    """Map a performance score onto the [0.7, 1.3] difficulty modifier."""
    score = _clamp(score, 0.0, 1.0)
    if score < _LOW_BREAKPOINT:
        return _MODIFIER_FLOOR + (score / _LOW_BREAKPOINT) * _SEGMENT_SPAN
    if score < _HIGH_BREAKPOINT:
        span = _HIGH_BREAKPOINT - _LOW_BREAKPOINT
        return _MODIFIER_MID_LOW + ((score - _LOW_BREAKPOINT) / span) * _SEGMENT_SPAN
    span = 1.0 - _HIGH_BREAKPOINT
    return _MODIFIER_MID_HIGH + ((score - _HIGH_BREAKPOINT) / span) * _SEGMENT_SPAN


class PerformanceHistory:
    """Fixed-capacity ring buffer of PerformanceSample, oldest evicted first.

    Slots are preallocated; ``_head`` is the slot the next append writes
    to.  Length never exceeds capacity.
    """

    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._slots: list[PerformanceSample | None] = [None] * capacity
        self._head = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[PerformanceSample]:
        """Yield samples oldest to newest."""
        start = (self._head - self._count) % self.capacity
        for i in range(self._count):
            sample = self._slots[(start + i) % self.capacity]
            assert sample is not None
            yield sample

    def append(self, sample: PerformanceSample) -> PerformanceSample | None:
        """Store *sample*.  Returns the evicted sample when the buffer was full."""
        evicted = self._slots[self._head] if self._count == self.capacity else None
        self._slots[self._head] = sample
        self._head = (self._head + 1) % self.capacity
        if self._count < self.capacity:
            self._count += 1
        return evicted

    def recent(self, n: int) -> list[PerformanceSample]:
        """Return up to the last *n* samples, oldest first."""
        n = max(0, min(n, self._count))
        return list(self)[self._count - n:]

    def clear(self) -> None:
        self._slots = [None] * self.capacity
        self._head = 0
        self._count = 0


class PerformanceTracker:
    """Tracks wave outcomes and derives the adaptive difficulty modifier.

    The tracker serializes history mutation and reads with a lock so a
    host that reports completions from another thread does not corrupt
    the ring buffer.
    """

    def __init__(self, settings: SpawnSettings | None = None) -> None:
        if settings is None:
            from defense.config import settings as default_settings
            settings = default_settings
        self._window = settings.score_window
        self._neutral_score = settings.neutral_score
        self._history = PerformanceHistory(settings.history_capacity)
        self._lock = threading.Lock()

    @property
    def history(self) -> list[PerformanceSample]:
        """Copy of the stored samples, oldest first."""
        with self._lock:
            return list(self._history)

    def track_player_performance(
        self, wave: int, completion_time: float, towers_used: int,
    ) -> PerformanceSample:
        """Score a completed wave and append it to the history."""
        sample = PerformanceSample(
            wave=wave,
            completion_time=completion_time,
            towers_used=towers_used,
            score=score_wave(wave, completion_time, towers_used),
        )
        with self._lock:
            evicted = self._history.append(sample)
        if evicted is not None:
            logger.debug(f"Performance history full, evicted wave {evicted.wave}")
        logger.info(
            f"Wave {wave} performance: score={sample.score:.3f} "
            f"time={completion_time:.0f}ms towers={towers_used}"
        )
        return sample

    def get_performance_score(self) -> float:
        """Mean score of the most recent samples, clamped to [0, 1]."""
        with self._lock:
            recent = self._history.recent(self._window)
        if not recent:
            return self._neutral_score
        mean = sum(s.score for s in recent) / len(recent)
        return _clamp(mean, 0.0, 1.0)

    def get_adaptive_difficulty_modifier(self) -> float:
        """Piecewise-linear difficulty modifier in [0.7, 1.3]."""
        return difficulty_modifier_for(self.get_performance_score())

    def reset(self) -> None:
        """Drop all recorded samples."""
        with self._lock:
            self._history.clear()

    def to_dict(self) -> dict:
        score = self.get_performance_score()
        return {
            "performance_score": round(score, 4),
            "difficulty_modifier": round(difficulty_modifier_for(score), 4),
            "history": [s.to_dict() for s in self.history],
        }
