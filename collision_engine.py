# -*- coding: utf-8 -*-
########################
# collision_engine.py
########################
# Purpose:
# - Collision resolution and scoring engine.
# - Matches the player row and lane against every live entity once per tick.
# - Mutates RunState (score, lives, speed) and PlayerState (stun), and reports side effects.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - One pass in EntityField order. Removals are collected and applied after the pass.
# - A hazard touching a stunned player is neither removed nor counted. It keeps scrolling.
# - Only the first hazard in a tick can land; it stuns the player so later ones in the same pass
#   are harmless.
# - The fatal hit captures the score at that moment. Deferring the game-over signal is the
#   driver's job.
#
########################
# Interfaces:
# Public dataclasses:
# - RunState(score: int, lives: int, max_lives: int, scroll_speed: float, tick: int,
#            collectibles: int, hazards_hit: int, speed_ups: int)
#   - for_run(rules, profile) -> RunState
#   - apply_collect(*, speed_up_every: int, speed_increment: float) -> bool
#   - apply_hazard_hit() -> bool
# - CollisionOutcome(sounds, particle_spawns, collected, hazard_hit, sped_up, fatal_score)
#
# Public classes:
# - class CollisionEngine
#   - __init__(rules: config.GameRules, profile: config.DifficultyProfile)
#   - resolve(field: EntityField, player: PlayerState, run_state: RunState) -> CollisionOutcome
#
# Inputs:
# - EntityField after advance(), PlayerState, RunState.
#
# Outputs:
# - CollisionOutcome consumed by GameLoopDriver (sound requests, particle spawn requests,
#   fatal hit score).
#
########################

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from typing import List, Optional

import config
import entity_field
import gameplay_models
import player_state


@dataclass
class RunState:
    score: int = 0
    lives: int = 3
    max_lives: int = 3
    scroll_speed: float = 0.4
    tick: int = 0
    collectibles: int = 0
    hazards_hit: int = 0
    speed_ups: int = 0

    @classmethod
    def for_run(cls, rules: config.GameRules, profile: config.DifficultyProfile) -> "RunState":
        return cls(
            lives=int(rules.max_lives),
            max_lives=int(rules.max_lives),
            scroll_speed=float(profile.base_speed),
        )

    def apply_collect(self, *, speed_up_every: int, speed_increment: float) -> bool:
        self.score += 1
        self.collectibles += 1
        if self.score % int(speed_up_every) == 0:
            self.scroll_speed += float(speed_increment)
            self.speed_ups += 1
            return True
        return False

    def apply_hazard_hit(self) -> bool:
        """Take one life. Returns True when this hit used the last one."""
        if self.lives <= 0:
            return False
        self.lives -= 1
        self.hazards_hit += 1
        return self.lives == 0


@dataclass
class CollisionOutcome:
    sounds: List[gameplay_models.SoundEffect] = dataclass_field(default_factory=list)
    particle_spawns: List[gameplay_models.ParticleSpawn] = dataclass_field(default_factory=list)
    collected: int = 0
    hazard_hit: bool = False
    sped_up: bool = False
    fatal_score: Optional[int] = None


class CollisionEngine:
    def __init__(self, rules: config.GameRules, profile: config.DifficultyProfile) -> None:
        self._rules = rules
        self._profile = profile

    def lane_center_x(self, lane: int) -> float:
        lane_width = 100.0 / float(self._rules.lanes)
        return (int(lane) + 0.5) * lane_width

    def is_touching(self, entity: gameplay_models.Entity, lane: int) -> bool:
        in_lane = int(entity.lane) == int(lane)
        vertical_hit = abs(float(entity.position) - float(self._rules.player_row)) < float(self._rules.hit_tolerance)
        return in_lane and vertical_hit

    def resolve(
        self,
        field: entity_field.EntityField,
        player: player_state.PlayerState,
        run_state: RunState,
    ) -> CollisionOutcome:
        outcome = CollisionOutcome()
        consumed: List[int] = []

        for entity in field.entities():
            if not self.is_touching(entity, player.lane()):
                continue

            if entity.kind == gameplay_models.EntityKind.COLLECTIBLE:
                consumed.append(entity.entity_id)
                outcome.collected += 1
                if run_state.apply_collect(
                    speed_up_every=int(self._rules.speed_up_every),
                    speed_increment=float(self._profile.speed_increment),
                ):
                    outcome.sped_up = True
                outcome.sounds.append(gameplay_models.SoundEffect.COLLECT)
                outcome.particle_spawns.append(
                    gameplay_models.ParticleSpawn(
                        x=self.lane_center_x(entity.lane),
                        y=float(entity.position),
                        color=str(self._rules.collect_particle_color),
                    )
                )
                continue

            if player.is_stunned():
                # Invulnerable: the hazard stays on the track.
                continue

            consumed.append(entity.entity_id)
            player.stun()
            outcome.hazard_hit = True
            if run_state.apply_hazard_hit():
                outcome.fatal_score = int(run_state.score)
            outcome.sounds.append(gameplay_models.SoundEffect.HIT)
            outcome.particle_spawns.append(
                gameplay_models.ParticleSpawn(
                    x=self.lane_center_x(entity.lane),
                    y=float(entity.position),
                    color=str(self._rules.hit_particle_color),
                )
            )

        field.remove(consumed)
        return outcome


def _run_unit_tests() -> None:
    rules = config.GameRules()
    profile = config.DifficultyProfile()
    field = entity_field.EntityField(rules)
    player = player_state.PlayerState(rules)
    run_state = RunState.for_run(rules, profile)
    engine = CollisionEngine(rules, profile)

    field.add_entity(gameplay_models.EntityKind.COLLECTIBLE, 1, 80.0)
    outcome = engine.resolve(field, player, run_state)
    assert outcome.collected == 1
    assert run_state.score == 1
    assert field.entities() == []

    field.add_entity(gameplay_models.EntityKind.HAZARD, 1, 82.0)
    field.add_entity(gameplay_models.EntityKind.HAZARD, 1, 78.0)
    outcome = engine.resolve(field, player, run_state)
    assert outcome.hazard_hit
    assert run_state.lives == 2
    assert len(field.entities()) == 1
    assert player.is_stunned()


if __name__ == "__main__":
    _run_unit_tests()
    print("collision_engine.py: ok")
