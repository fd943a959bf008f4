# -*- coding: utf-8 -*-
########################
# entity_field.py
########################
# Purpose:
# - Owns the live falling entities (collectibles and hazards).
# - Applies the spawn policy, scrolls entities each tick and discards the ones past the exit edge.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Entity order is spawn order. CollisionEngine relies on it for a deterministic single pass.
# - This module owns the entity list; other modules query it or remove through it.
# - A spawn blocked by lane occupancy is skipped for that tick, never retried.
#
########################
# Interfaces:
# Public protocols:
# - RandomSource: random() -> float in [0, 1)
#
# Public classes:
# - class EntityField
#   - __init__(rules: config.GameRules)
#   - entities() -> list[Entity]
#   - views() -> tuple[EntityView, ...]
#   - reset() -> None
#   - add_entity(kind: EntityKind, lane: int, position: float) -> Entity
#   - is_lane_blocked(lane: int) -> bool
#   - maybe_spawn(tick_counter: int, profile: DifficultyProfile, rng: RandomSource) -> Optional[Entity]
#   - advance(scroll_speed: float) -> list[Entity]
#   - remove(entity_ids: Iterable[int]) -> None
#
# Inputs:
# - Tick counter, difficulty profile, scroll speed and a uniform random source.
#
# Outputs:
# - Entity list read by CollisionEngine and snapshot views read by the harness.
#
########################

from __future__ import annotations

import itertools
from typing import Iterable, List, Optional, Protocol, Tuple

import config
import gameplay_models


class RandomSource(Protocol):
    def random(self) -> float:
        ...


class EntityField:
    def __init__(self, rules: Optional[config.GameRules] = None) -> None:
        self._rules = rules if rules is not None else config.GameRules()
        self._entities: List[gameplay_models.Entity] = []
        self._ids = itertools.count(1)

    def entities(self) -> List[gameplay_models.Entity]:
        return self._entities

    def views(self) -> Tuple[gameplay_models.EntityView, ...]:
        return tuple(entity.view() for entity in self._entities)

    def reset(self) -> None:
        self._entities = []
        self._ids = itertools.count(1)

    def add_entity(self, kind: gameplay_models.EntityKind, lane: int, position: float) -> gameplay_models.Entity:
        lane_index = int(lane)
        if not 0 <= lane_index < int(self._rules.lanes):
            raise ValueError(f"lane {lane_index} outside 0..{int(self._rules.lanes) - 1}")
        entity = gameplay_models.Entity(
            entity_id=next(self._ids),
            kind=gameplay_models.EntityKind(kind),
            lane=lane_index,
            position=float(position),
        )
        self._entities.append(entity)
        return entity

    def is_lane_blocked(self, lane: int) -> bool:
        guard = float(self._rules.spawn_guard_position)
        lane_index = int(lane)
        return any(entity.lane == lane_index and entity.position < guard for entity in self._entities)

    def maybe_spawn(
        self,
        tick_counter: int,
        profile: config.DifficultyProfile,
        rng: RandomSource,
    ) -> Optional[gameplay_models.Entity]:
        if int(tick_counter) % int(profile.spawn_interval) != 0:
            return None

        # Draw order: kind, then lane.
        if rng.random() > 1.0 - float(profile.hazard_probability):
            kind = gameplay_models.EntityKind.HAZARD
        else:
            kind = gameplay_models.EntityKind.COLLECTIBLE
        lanes = int(self._rules.lanes)
        lane = min(lanes - 1, int(rng.random() * lanes))

        if self.is_lane_blocked(lane):
            return None

        return self.add_entity(kind, lane, float(self._rules.spawn_position))

    def advance(self, scroll_speed: float) -> List[gameplay_models.Entity]:
        """Scroll every entity and drop the ones past the exit edge. Returns the dropped entities."""
        speed = float(scroll_speed)
        exit_position = float(self._rules.exit_position)
        kept: List[gameplay_models.Entity] = []
        dropped: List[gameplay_models.Entity] = []
        for entity in self._entities:
            entity.position += speed
            if entity.position < exit_position:
                kept.append(entity)
            else:
                dropped.append(entity)
        self._entities = kept
        return dropped

    def remove(self, entity_ids: Iterable[int]) -> None:
        doomed = {int(entity_id) for entity_id in entity_ids}
        if not doomed:
            return
        self._entities = [entity for entity in self._entities if entity.entity_id not in doomed]


def _run_unit_tests() -> None:
    class _Scripted:
        def __init__(self, values: List[float]) -> None:
            self._values = list(values)

        def random(self) -> float:
            return self._values.pop(0)

    field = EntityField()
    profile = config.DifficultyProfile()

    assert field.maybe_spawn(69, profile, _Scripted([])) is None
    spawned = field.maybe_spawn(70, profile, _Scripted([0.1, 0.5]))
    assert spawned is not None
    assert spawned.kind == gameplay_models.EntityKind.COLLECTIBLE
    assert spawned.lane == 1
    assert spawned.position == -20.0

    assert field.maybe_spawn(140, profile, _Scripted([0.9, 0.5])) is None
    assert len(field.entities()) == 1

    field.add_entity(gameplay_models.EntityKind.HAZARD, 0, 119.5)
    dropped = field.advance(1.0)
    assert [entity.lane for entity in dropped] == [0]
    assert field.entities()[0].position == -19.0


if __name__ == "__main__":
    _run_unit_tests()
    print("entity_field.py: ok")
