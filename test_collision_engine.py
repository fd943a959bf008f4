from __future__ import annotations

import pytest

import collision_engine
import config
import entity_field
import player_state
from gameplay_models import Direction, EntityKind, SoundEffect


@pytest.fixture
def rig():
    rules = config.GameRules()
    profile = config.AppConfig().difficulty("easy")
    field = entity_field.EntityField(rules)
    player = player_state.PlayerState(rules)
    run_state = collision_engine.RunState.for_run(rules, profile)
    engine = collision_engine.CollisionEngine(rules, profile)
    return rules, profile, field, player, run_state, engine


def test_collectible_in_lane_is_consumed(rig):
    _rules, _profile, field, player, run_state, engine = rig
    player.attempt_move(Direction.LEFT)
    field.add_entity(EntityKind.COLLECTIBLE, 0, 80.0)

    outcome = engine.resolve(field, player, run_state)

    assert field.entities() == []
    assert run_state.score == 1
    assert run_state.lives == 3
    assert outcome.sounds == [SoundEffect.COLLECT]
    assert len(outcome.particle_spawns) == 1
    assert outcome.particle_spawns[0].y == 80.0
    assert outcome.particle_spawns[0].color == "#fb923c"


def test_tolerance_is_strict(rig):
    _rules, _profile, field, player, run_state, engine = rig
    field.add_entity(EntityKind.COLLECTIBLE, 1, 72.0)
    field.add_entity(EntityKind.COLLECTIBLE, 1, 88.0)
    field.add_entity(EntityKind.COLLECTIBLE, 0, 80.0)

    outcome = engine.resolve(field, player, run_state)

    assert outcome.collected == 0
    assert len(field.entities()) == 3


def test_hazard_hit_stuns_and_costs_a_life(rig):
    _rules, _profile, field, player, run_state, engine = rig
    field.add_entity(EntityKind.HAZARD, 1, 82.0)

    outcome = engine.resolve(field, player, run_state)

    assert outcome.hazard_hit
    assert outcome.fatal_score is None
    assert player.is_stunned()
    assert run_state.lives == 2
    assert field.entities() == []
    assert outcome.sounds == [SoundEffect.HIT]
    assert outcome.particle_spawns[0].color == "#9ca3af"


def test_stunned_player_ignores_hazards_and_keeps_them(rig):
    _rules, _profile, field, player, run_state, engine = rig
    player.stun()
    field.add_entity(EntityKind.HAZARD, 1, 79.0)
    field.add_entity(EntityKind.HAZARD, 1, 81.0)

    for _ in range(5):
        outcome = engine.resolve(field, player, run_state)
        assert not outcome.hazard_hit
        assert outcome.sounds == []

    assert run_state.lives == 3
    assert len(field.entities()) == 2


def test_only_one_hazard_lands_per_tick(rig):
    _rules, _profile, field, player, run_state, engine = rig
    field.add_entity(EntityKind.HAZARD, 1, 78.0)
    field.add_entity(EntityKind.HAZARD, 1, 82.0)

    outcome = engine.resolve(field, player, run_state)

    assert outcome.sounds == [SoundEffect.HIT]
    assert run_state.lives == 2
    assert [entity.position for entity in field.entities()] == [82.0]


def test_collectibles_still_collected_while_stunned(rig):
    _rules, _profile, field, player, run_state, engine = rig
    player.stun()
    field.add_entity(EntityKind.COLLECTIBLE, 1, 80.0)
    field.add_entity(EntityKind.COLLECTIBLE, 1, 75.0)

    outcome = engine.resolve(field, player, run_state)

    assert outcome.collected == 2
    assert run_state.score == 2
    assert field.entities() == []


def test_fatal_hit_reports_score_at_hit():
    rules = config.GameRules(max_lives=1)
    profile = config.AppConfig().difficulty("easy")
    field = entity_field.EntityField(rules)
    player = player_state.PlayerState(rules)
    run_state = collision_engine.RunState.for_run(rules, profile)
    run_state.score = 7
    engine = collision_engine.CollisionEngine(rules, profile)
    field.add_entity(EntityKind.HAZARD, 1, 80.0)

    outcome = engine.resolve(field, player, run_state)

    assert outcome.fatal_score == 7
    assert run_state.lives == 0


def test_lives_never_go_negative():
    run_state = collision_engine.RunState(lives=1, max_lives=3)
    assert run_state.apply_hazard_hit()
    assert not run_state.apply_hazard_hit()
    assert run_state.lives == 0


def test_speed_increases_on_every_fifth_collectible_only():
    profile = config.AppConfig().difficulty("medium")
    run_state = collision_engine.RunState.for_run(config.GameRules(), profile)
    speeds = []

    for _ in range(15):
        before = run_state.scroll_speed
        sped_up = run_state.apply_collect(speed_up_every=5, speed_increment=profile.speed_increment)
        assert run_state.scroll_speed >= before
        assert sped_up == (run_state.score % 5 == 0)
        speeds.append(run_state.scroll_speed)

    assert run_state.speed_ups == 3
    assert run_state.scroll_speed == pytest.approx(profile.base_speed + 3 * profile.speed_increment)
    assert speeds[3] == pytest.approx(profile.base_speed)
    assert speeds[4] == pytest.approx(profile.base_speed + profile.speed_increment)
    assert speeds[8] == pytest.approx(profile.base_speed + profile.speed_increment)
    assert speeds[9] == pytest.approx(profile.base_speed + 2 * profile.speed_increment)


def test_particle_x_is_lane_center(rig):
    _rules, _profile, _field, _player, _run_state, engine = rig
    assert engine.lane_center_x(0) == pytest.approx(100.0 / 6.0)
    assert engine.lane_center_x(2) == pytest.approx(500.0 / 6.0)
