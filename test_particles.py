from __future__ import annotations

import random

import particles
from gameplay_models import ParticleSpawn


def test_spawn_creates_a_burst_at_the_request_point():
    system = particles.ParticleSystem(rng=random.Random(3))
    system.spawn(ParticleSpawn(x=50.0, y=80.0, color="#fb923c"))

    burst = system.particles()
    assert len(burst) == 8
    assert len({particle.particle_id for particle in burst}) == 8
    for particle in burst:
        assert (particle.x, particle.y, particle.color, particle.life) == (50.0, 80.0, "#fb923c", 1.0)
        assert -1.0 <= particle.vx < 1.0
        assert -1.0 <= particle.vy < 1.0


def test_particles_move_and_expire():
    system = particles.ParticleSystem(rng=random.Random(4))
    system.spawn_all([ParticleSpawn(x=10.0, y=10.0, color="#9ca3af")])
    first = system.particles()[0]
    start = (first.x, first.y)

    system.step()
    assert (first.x, first.y) == (start[0] + first.vx, start[1] + first.vy)

    for _ in range(17):
        system.step()
    assert len(system.particles()) == 8

    for _ in range(3):
        system.step()
    assert system.particles() == []


def test_clear_drops_everything():
    system = particles.ParticleSystem(burst_size=3)
    system.spawn(ParticleSpawn(x=0.0, y=0.0, color="#fff"))
    system.clear()
    assert system.particles() == []
