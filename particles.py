# -*- coding: utf-8 -*-
########################
# particles.py
########################
# Purpose:
# - Presentation-side particle simulation for hit and collect bursts.
# - Consumes ParticleSpawn requests from GameSnapshot; the simulation core never owns particles.
#
# Design notes:
# - No Qt usage. Positions are in percent of the track, like entities.
# - Each spawn request becomes a burst of particles with random velocity in (-1, 1) per axis.
# - Life starts at 1.0, decays by a fixed amount per step and the particle is dropped at <= 0.
#
########################
# Interfaces:
# Public dataclasses:
# - Particle(particle_id: int, x: float, y: float, vx: float, vy: float, color: str, life: float)
#
# Public classes:
# - class ParticleSystem
#   - __init__(*, burst_size: int = 8, life_decay: float = 0.05, rng=None)
#   - particles() -> list[Particle]
#   - spawn(request: ParticleSpawn) -> None
#   - spawn_all(requests) -> None
#   - step() -> None
#   - clear() -> None
#
########################

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

import gameplay_models


@dataclass
class Particle:
    particle_id: int
    x: float
    y: float
    vx: float
    vy: float
    color: str
    life: float = 1.0


class ParticleSystem:
    def __init__(self, *, burst_size: int = 8, life_decay: float = 0.05, rng: Optional[random.Random] = None) -> None:
        self._burst_size = int(burst_size)
        self._life_decay = float(life_decay)
        self._rng = rng if rng is not None else random.Random()
        self._ids = itertools.count(1)
        self._particles: List[Particle] = []

    def particles(self) -> List[Particle]:
        return list(self._particles)

    def spawn(self, request: gameplay_models.ParticleSpawn) -> None:
        for _ in range(self._burst_size):
            self._particles.append(
                Particle(
                    particle_id=next(self._ids),
                    x=float(request.x),
                    y=float(request.y),
                    vx=(self._rng.random() - 0.5) * 2.0,
                    vy=(self._rng.random() - 0.5) * 2.0,
                    color=str(request.color),
                )
            )

    def spawn_all(self, requests: Iterable[gameplay_models.ParticleSpawn]) -> None:
        for request in requests:
            self.spawn(request)

    def step(self) -> None:
        alive: List[Particle] = []
        for particle in self._particles:
            particle.x += particle.vx
            particle.y += particle.vy
            particle.life -= self._life_decay
            if particle.life > 0.0:
                alive.append(particle)
        self._particles = alive

    def clear(self) -> None:
        self._particles = []
