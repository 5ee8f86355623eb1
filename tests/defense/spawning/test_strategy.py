# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for AdaptiveSpawnStrategy -- pacing, selection, bosses, scaling.

Randomness is injected: either a seeded random.Random or a scripted stub
returning fixed rolls, so every assertion is exact.
"""

from __future__ import annotations

import random

import pytest

from defense.config import SpawnSettings
from defense.spawning.enemies import make_enemy
from defense.spawning.strategy import AdaptiveSpawnStrategy
from defense.spawning.wave_config import EnemyCompositionEntry, WaveConfigRegistry

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FixedTracker:
    """Tracker stand-in with a pinned score and modifier."""

    def __init__(self, score: float = 0.5, modifier: float = 1.0) -> None:
        self.score = score
        self.modifier = modifier

    def get_performance_score(self) -> float:
        return self.score

    def get_adaptive_difficulty_modifier(self) -> float:
        return self.modifier


class _ScriptedRng:
    """Returns scripted values from random(); choice() picks by index script."""

    def __init__(self, rolls=(0.0,), picks=(0,)) -> None:
        self._rolls = list(rolls)
        self._picks = list(picks)
        self.calls = 0

    def random(self) -> float:
        value = self._rolls[self.calls % len(self._rolls)]
        self.calls += 1
        return value

    def choice(self, seq):
        return seq[self._picks[0] % len(seq)]


def _registry(**overrides) -> WaveConfigRegistry:
    config = {
        "base_spawn_rate": 1000,
        "spawn_rate_acceleration": 100,
        "max_enemies_per_wave": 10,
        "enemy_composition": [
            {"type": "Basic", "weight": 80, "min_wave": 1},
            {"type": "Scout", "weight": 20, "min_wave": 3, "max_concurrent": 2},
        ],
    }
    config.update(overrides)
    return WaveConfigRegistry.from_dict([{"name": "t", "min_wave": 1, "max_wave": None, "config": config}])


def _strategy(tracker=None, rng=None, **overrides) -> AdaptiveSpawnStrategy:
    return AdaptiveSpawnStrategy(
        tracker if tracker is not None else _FixedTracker(),
        _registry(**overrides),
        rng=rng if rng is not None else random.Random(7),
        settings=SpawnSettings(),
    )


# ---------------------------------------------------------------------------
# Spawn delay
# ---------------------------------------------------------------------------

class TestSpawnDelay:
    def test_first_delay_is_base_rate(self):
        assert _strategy().calculate_next_spawn_delay(1, 0) == pytest.approx(1000.0)

    def test_acceleration_shortens_delay(self):
        s = _strategy()
        assert s.calculate_next_spawn_delay(1, 3) == pytest.approx(700.0)

    def test_non_increasing_and_floored(self):
        s = _strategy()
        delays = [s.calculate_next_spawn_delay(1, n) for n in range(30)]
        assert all(b <= a for a, b in zip(delays, delays[1:]))
        assert min(delays) == pytest.approx(200.0)

    def test_higher_modifier_spawns_faster(self):
        slow = _strategy(tracker=_FixedTracker(modifier=0.8)).calculate_next_spawn_delay(1, 0)
        fast = _strategy(tracker=_FixedTracker(modifier=1.25)).calculate_next_spawn_delay(1, 0)
        assert slow == pytest.approx(1250.0)
        assert fast == pytest.approx(800.0)

    def test_floor_holds_after_modifier(self):
        s = _strategy(tracker=_FixedTracker(modifier=1.3), base_spawn_rate=250, spawn_rate_acceleration=0)
        assert s.calculate_next_spawn_delay(1, 0) == pytest.approx(200.0)

    def test_negative_spawn_count_clamped(self):
        s = _strategy()
        assert s.calculate_next_spawn_delay(1, -5) == s.calculate_next_spawn_delay(1, 0)

    def test_adaptive_spawn_modifier_applies_above_threshold(self):
        knobs = {"performance_threshold": 0.6, "adaptive_spawn_modifier": 2.0}
        below = _strategy(tracker=_FixedTracker(score=0.5), difficulty_modifiers=knobs)
        above = _strategy(tracker=_FixedTracker(score=0.6), difficulty_modifiers=knobs)
        assert below.calculate_next_spawn_delay(1, 0) == pytest.approx(1000.0)
        assert above.calculate_next_spawn_delay(1, 0) == pytest.approx(500.0)

    def test_custom_floor_from_settings(self):
        s = AdaptiveSpawnStrategy(
            _FixedTracker(), _registry(), settings=SpawnSettings(min_spawn_delay_ms=450.0),
        )
        assert s.calculate_next_spawn_delay(1, 50) == pytest.approx(450.0)


# ---------------------------------------------------------------------------
# Enemy selection
# ---------------------------------------------------------------------------

class TestSelectEnemyType:
    def test_min_wave_excludes_type(self):
        s = _strategy(rng=random.Random(1))
        picks = {s.select_enemy_type(1, []) for _ in range(200)}
        assert picks == {"Basic"}

    def test_weighted_pick_follows_rolls(self):
        # total weight 100: roll 10 lands on Basic, roll 90 on Scout
        s = _strategy(rng=_ScriptedRng(rolls=[0.1, 0.9]))
        assert s.select_enemy_type(3, []) == "Basic"
        assert s.select_enemy_type(3, []) == "Scout"

    def test_roll_at_upper_edge_picks_last(self):
        s = _strategy(rng=_ScriptedRng(rolls=[0.9999999999]))
        assert s.select_enemy_type(3, []) == "Scout"

    def test_never_exceeds_max_concurrent(self):
        s = _strategy(rng=random.Random(3))
        active = [make_enemy("Scout"), make_enemy("Scout")]
        picks = {s.select_enemy_type(5, active) for _ in range(300)}
        assert picks == {"Basic"}

    def test_selectable_entries_filters_by_wave_and_headroom(self):
        s = _strategy()
        entries = s.selectable_entries(5, [])
        assert all(isinstance(e, EnemyCompositionEntry) for e in entries)
        assert [e.enemy_type for e in entries] == ["Basic", "Scout"]
        assert [e.enemy_type for e in s.selectable_entries(1, [])] == ["Basic"]
        saturated = [make_enemy("Scout"), make_enemy("Scout")]
        assert [e.enemy_type for e in s.selectable_entries(5, saturated)] == ["Basic"]

    def test_seeded_distribution_roughly_matches_weights(self):
        s = _strategy(rng=random.Random(42))
        picks = [s.select_enemy_type(3, []) for _ in range(2000)]
        share = picks.count("Scout") / len(picks)
        assert 0.15 < share < 0.25

    def test_fallback_to_lowest_min_wave_when_all_saturated(self):
        s = _strategy(enemy_composition=[
            {"type": "Tank", "weight": 5, "min_wave": 2, "max_concurrent": 1},
            {"type": "Basic", "weight": 5, "min_wave": 1, "max_concurrent": 1},
        ])
        active = [make_enemy("Tank"), make_enemy("Basic")]
        assert s.select_enemy_type(4, active) == "Basic"

    def test_fallback_when_nothing_eligible_yet(self):
        s = _strategy(enemy_composition=[
            {"type": "Ghost", "weight": 5, "min_wave": 9},
            {"type": "Tank", "weight": 5, "min_wave": 4},
        ])
        assert s.select_enemy_type(1, []) == "Tank"

    def test_zero_weight_entries_not_rolled(self):
        s = _strategy(rng=_ScriptedRng(rolls=[0.0, 0.5, 0.99]), enemy_composition=[
            {"type": "Basic", "weight": 0},
            {"type": "Scout", "weight": 3},
        ])
        assert {s.select_enemy_type(1, []) for _ in range(3)} == {"Scout"}


# ---------------------------------------------------------------------------
# Bosses
# ---------------------------------------------------------------------------

_BOSS = {
    "spawn_chance": 0.5,
    "boss_types": ["Tank", "Ghost"],
    "health_multiplier": 2.0,
    "speed_multiplier": 0.5,
    "gold_multiplier": 3.0,
    "min_wave": 4,
}


class TestShouldSpawnBoss:
    def test_false_without_boss_config(self):
        for seed in range(20):
            s = _strategy(rng=random.Random(seed))
            assert s.should_spawn_boss(50, 9) is False

    def test_no_roll_consumed_without_boss_config(self):
        rng = _ScriptedRng()
        _strategy(rng=rng).should_spawn_boss(10, 5)
        assert rng.calls == 0

    def test_false_below_min_wave(self):
        s = _strategy(rng=_ScriptedRng(rolls=[0.0]), boss_config=dict(_BOSS, spawn_chance=1.0))
        assert s.should_spawn_boss(3, 5) is False
        assert s.should_spawn_boss(4, 5) is True

    def test_default_min_wave_from_settings(self):
        boss = {k: v for k, v in _BOSS.items() if k != "min_wave"}
        s = _strategy(rng=_ScriptedRng(rolls=[0.0]), boss_config=boss)
        assert s.boss_min_wave(1) == 5
        assert s.should_spawn_boss(4, 0) is False
        assert s.should_spawn_boss(5, 0) is True

    def test_roll_against_spawn_chance(self):
        s = _strategy(rng=_ScriptedRng(rolls=[0.49, 0.5]), boss_config=_BOSS)
        assert s.should_spawn_boss(6, 0) is True
        assert s.should_spawn_boss(6, 0) is False

    def test_zero_chance_never_spawns(self):
        s = _strategy(rng=random.Random(0), boss_config=dict(_BOSS, spawn_chance=0.0))
        assert not any(s.should_spawn_boss(10, n) for n in range(100))

    def test_min_progress_gate(self):
        s = _strategy(
            rng=_ScriptedRng(rolls=[0.0]),
            boss_config=dict(_BOSS, spawn_chance=1.0, min_progress=0.7),
        )
        # max_enemies_per_wave is 10 -> bosses only once more than 7 have spawned
        assert s.should_spawn_boss(6, 6) is False
        assert s.should_spawn_boss(6, 7) is False
        assert s.should_spawn_boss(6, 8) is True

    def test_select_boss_type(self):
        s = _strategy(rng=_ScriptedRng(picks=[1]), boss_config=_BOSS)
        assert s.select_boss_type(6) == "Ghost"

    def test_select_boss_type_without_config(self):
        with pytest.raises(ValueError):
            _strategy().select_boss_type(6)


# ---------------------------------------------------------------------------
# Stat scaling
# ---------------------------------------------------------------------------

class TestDifficultyScaling:
    _KNOBS = {"health_scaling_factor": 1.1, "speed_scaling_factor": 1.21}

    def test_wave_one_neutral_modifier_is_identity(self):
        s = _strategy(difficulty_modifiers=self._KNOBS)
        base = make_enemy("Basic")
        scaled = s.apply_difficulty_scaling(base, 1)
        assert scaled.health == pytest.approx(base.health)
        assert scaled.speed == pytest.approx(base.speed)

    def test_wave_and_modifier_scaling(self):
        s = _strategy(tracker=_FixedTracker(modifier=1.2), difficulty_modifiers=self._KNOBS)
        scaled = s.apply_difficulty_scaling(make_enemy("Basic"), 3)
        assert scaled.health == pytest.approx(60.0 * 1.1 ** 2 * 1.2)
        assert scaled.max_health == scaled.health
        # speed exponent is half the wave exponent: 1.21 ** 1
        assert scaled.speed == pytest.approx(80.0 * 1.21)
        assert scaled.gold == pytest.approx(50.0)

    def test_returns_copy(self):
        s = _strategy(difficulty_modifiers=self._KNOBS)
        base = make_enemy("Tank")
        scaled = s.apply_difficulty_scaling(base, 5)
        assert scaled is not base
        assert base.health == 200.0
        assert scaled.enemy_id == base.enemy_id

    def test_boss_multipliers(self):
        s = _strategy(boss_config=_BOSS)
        scaled = s.apply_difficulty_scaling(make_enemy("Tank", is_boss=True), 1)
        assert scaled.is_boss
        assert scaled.health == pytest.approx(400.0)
        assert scaled.speed == pytest.approx(30.0)
        assert scaled.gold == pytest.approx(150.0)

    def test_non_boss_ignores_boss_multipliers(self):
        s = _strategy(boss_config=_BOSS)
        scaled = s.apply_difficulty_scaling(make_enemy("Tank"), 1)
        assert scaled.health == pytest.approx(200.0)

    def test_stats_never_drop_below_floor(self):
        s = _strategy(difficulty_modifiers={"health_scaling_factor": 1e-6, "speed_scaling_factor": 1e-6})
        scaled = s.apply_difficulty_scaling(make_enemy("Scout"), 40)
        assert scaled.health == pytest.approx(1.0)
        assert scaled.speed == pytest.approx(1.0)
        assert scaled.health > 0 and scaled.speed > 0
