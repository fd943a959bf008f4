# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the runtime game loop.
# - Defines entities, intents, sound requests and the per-tick snapshot.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses and enums.
# - Snapshots are frozen and carry tuples so presentation code can never mutate simulation state.
#
########################
# Interfaces:
# Public enums:
# - EntityKind: COLLECTIBLE | HAZARD
# - Direction: LEFT | RIGHT
# - SoundEffect: JUMP | COLLECT | HIT | WIN
# - MusicContext: MENU | PLAYING
# - RunPhase: IDLE | RUNNING | PAUSED | GAME_OVER
#
# Public dataclasses:
# - Entity(entity_id: int, kind: EntityKind, lane: int, position: float)
# - EntityView(entity_id: int, kind: EntityKind, lane: int, position: float)
# - ParticleSpawn(x: float, y: float, color: str)
# - GameOverEvent(final_score: int, tick: int)
# - GameSnapshot(...)
#
# Inputs/Outputs:
# - These types are exchanged between EntityField, PlayerState, CollisionEngine, GameLoopDriver,
#   MusicSequencer and the harness.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class EntityKind(str, Enum):
    COLLECTIBLE = "collectible"
    HAZARD = "hazard"


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def step(self) -> int:
        return -1 if self is Direction.LEFT else 1


class SoundEffect(str, Enum):
    JUMP = "jump"
    COLLECT = "collect"
    HIT = "hit"
    WIN = "win"


class MusicContext(str, Enum):
    MENU = "menu"
    PLAYING = "playing"


class RunPhase(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    GAME_OVER = "GAME_OVER"


@dataclass
class Entity:
    entity_id: int
    kind: EntityKind
    lane: int
    position: float

    def view(self) -> "EntityView":
        return EntityView(
            entity_id=int(self.entity_id),
            kind=self.kind,
            lane=int(self.lane),
            position=float(self.position),
        )


@dataclass(frozen=True)
class EntityView:
    entity_id: int
    kind: EntityKind
    lane: int
    position: float


@dataclass(frozen=True)
class ParticleSpawn:
    x: float
    y: float
    color: str


@dataclass(frozen=True)
class GameOverEvent:
    final_score: int
    tick: int


@dataclass(frozen=True)
class GameSnapshot:
    phase: RunPhase
    tick: int
    score: int
    lives: int
    max_lives: int
    lane: int
    is_stunned: bool
    stun_ticks_remaining: int
    is_jumping: bool
    scroll_speed: float
    difficulty: str
    entities: Tuple[EntityView, ...]
    particle_spawns: Tuple[ParticleSpawn, ...]
    game_over: Optional[GameOverEvent] = None
