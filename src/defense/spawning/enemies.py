# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Enemy records and the in-memory enemy roster.

The scheduler never owns live enemies.  It reads per-type counts from an
enemy-management collaborator and hands it spawn instructions.  EnemyRoster
is the reference collaborator: a plain list of active enemies that the host
resolves (killed or escaped) by id.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from typing import Protocol, Sequence

# Base stats per enemy type: (health, speed, gold)
ENEMY_BASE_STATS: dict[str, tuple[float, float, float]] = {
    "Basic": (60.0, 80.0, 50.0),
    "Scout": (40.0, 140.0, 50.0),
    "Tank": (200.0, 60.0, 50.0),
    "Ghost": (70.0, 100.0, 50.0),
}

# Used for types missing from ENEMY_BASE_STATS
_FALLBACK_STATS = ENEMY_BASE_STATS["Basic"]


@dataclass
class Enemy:
    """A single spawned (or about to be spawned) enemy."""

    enemy_type: str
    health: float
    max_health: float
    speed: float
    gold: float
    is_boss: bool = False
    enemy_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("health", "max_health", "speed", "gold"):
            d[key] = round(d[key], 2)
        return d


def make_enemy(enemy_type: str, is_boss: bool = False) -> Enemy:
    """Create an unscaled enemy of *enemy_type* from the base stat table."""
    health, speed, gold = ENEMY_BASE_STATS.get(enemy_type, _FALLBACK_STATS)
    return Enemy(
        enemy_type=enemy_type,
        health=health,
        max_health=health,
        speed=speed,
        gold=gold,
        is_boss=is_boss,
    )


def count_by_type(enemies: Sequence[Enemy], enemy_type: str) -> int:
    return sum(1 for e in enemies if e.enemy_type == enemy_type)


class EnemyCollaborator(Protocol):
    """What the controller needs from the enemy-management side."""

    def active_enemies(self, enemy_type: str | None = None) -> Sequence[Enemy]: ...

    def spawn(self, enemy: Enemy) -> None: ...


class EnemyRoster:
    """In-memory list of active enemies."""

    def __init__(self) -> None:
        self._active: list[Enemy] = []

    def active_enemies(self, enemy_type: str | None = None) -> list[Enemy]:
        """Snapshot of active enemies, optionally filtered by type."""
        if enemy_type is None:
            return list(self._active)
        return [e for e in self._active if e.enemy_type == enemy_type]

    def spawn(self, enemy: Enemy) -> None:
        self._active.append(enemy)

    def resolve(self, enemy_id: str) -> bool:
        """Remove an enemy that was killed or reached the end.

        Returns True if the enemy was active.
        """
        for i, e in enumerate(self._active):
            if e.enemy_id == enemy_id:
                del self._active[i]
                return True
        return False

    def clear(self) -> None:
        self._active.clear()

    def __len__(self) -> int:
        return len(self._active)
