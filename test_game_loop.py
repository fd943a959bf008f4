from __future__ import annotations

import random

import pytest

import config
from conftest import DriverRig
from gameplay_models import Direction, EntityKind, MusicContext, RunPhase, SoundEffect


def test_start_run_resets_and_begins_ticking(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)

    snapshot = rig.driver.snapshot()
    assert rig.driver.phase() == RunPhase.RUNNING
    assert snapshot.score == 0
    assert snapshot.lives == 3
    assert snapshot.lane == 1
    assert snapshot.scroll_speed == pytest.approx(0.4)
    assert rig.scheduler.pending_frame_count() == 1
    assert rig.sequencer.context() == MusicContext.PLAYING
    assert rig.sounds == [SoundEffect.JUMP]

    rig.scheduler.run_frames(5)
    assert rig.driver.run_state().tick == 5


def test_collectible_in_player_lane(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.driver.request_move(Direction.LEFT)
    rig.place(EntityKind.COLLECTIBLE, 0, 80.0)

    snapshot = rig.driver.tick()

    assert snapshot.score == 1
    assert snapshot.lives == 3
    assert snapshot.entities == ()
    assert SoundEffect.COLLECT in rig.sounds
    assert len(snapshot.particle_spawns) == 1


def test_fatal_hit_defers_game_over_with_score_at_hit(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(max_lives=1))
    rig.driver.start_run(easy)
    rig.driver.run_state().score = 3
    rig.driver.request_move(Direction.RIGHT)
    rig.place(EntityKind.HAZARD, 2, 82.0)

    snapshot = rig.driver.tick()

    assert snapshot.is_stunned
    assert snapshot.lives == 0
    assert snapshot.game_over is None
    assert rig.driver.phase() == RunPhase.RUNNING
    assert rig.driver.is_game_over_pending()

    # Score changes during the grace period do not leak into the signal.
    rig.place(EntityKind.COLLECTIBLE, 2, 80.0)
    assert rig.driver.tick().score == 4

    rig.scheduler.advance(0.09)
    assert rig.game_overs == []

    rig.scheduler.advance(0.02)
    assert len(rig.game_overs) == 1
    assert rig.game_overs[0].final_score == 3
    assert rig.driver.phase() == RunPhase.GAME_OVER
    assert rig.driver.snapshot().game_over == rig.game_overs[0]
    assert rig.sounds[-1] == SoundEffect.WIN
    assert rig.sequencer.context() == MusicContext.MENU

    rig.scheduler.advance(5.0)
    rig.scheduler.run_frames(10)
    assert len(rig.game_overs) == 1
    assert rig.scheduler.pending_frame_count() == 0


def test_game_over_fires_once_even_with_more_hazards(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(max_lives=1, stun_ticks=1))
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()

    assert rig.driver.run_state().lives == 0
    rig.scheduler.advance(1.0)
    assert len(rig.game_overs) == 1


def test_invulnerability_window(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(stun_ticks=30))
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()
    assert rig.driver.run_state().lives == 2

    for _ in range(10):
        rig.place(EntityKind.HAZARD, 1, 79.0)
        rig.driver.tick()

    assert rig.driver.run_state().lives == 2
    assert rig.sounds.count(SoundEffect.HIT) == 1
    touching = [entity for entity in rig.driver.snapshot().entities if entity.kind == EntityKind.HAZARD]
    assert len(touching) == 10


def test_stun_expires_and_allows_moves_again(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(stun_ticks=3))
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()

    rig.driver.request_move(Direction.LEFT)
    assert rig.driver.snapshot().lane == 1

    rig.driver.tick()
    rig.driver.tick()
    assert not rig.driver.snapshot().is_stunned
    rig.driver.request_move(Direction.LEFT)
    assert rig.driver.snapshot().lane == 0


def test_boundary_moves_are_silent_no_ops(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.driver.request_move(Direction.RIGHT)
    jumps = rig.sounds.count(SoundEffect.JUMP)
    published = len(rig.snapshots)

    for _ in range(4):
        rig.driver.request_move(Direction.RIGHT)

    assert rig.driver.snapshot().lane == 2
    assert rig.sounds.count(SoundEffect.JUMP) == jumps
    assert len(rig.snapshots) == published


def test_moves_ignored_while_paused_or_idle(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.request_move(Direction.LEFT)
    assert rig.driver.snapshot().lane == 1

    rig.driver.start_run(easy)
    rig.driver.pause()
    rig.driver.request_move(Direction.LEFT)
    assert rig.driver.snapshot().lane == 1


def test_pause_suspends_ticks_and_music_together(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.scheduler.run_frames(3)

    rig.driver.pause()
    cursor = rig.sequencer.cursor()
    assert rig.driver.phase() == RunPhase.PAUSED
    assert rig.scheduler.pending_frame_count() == 0
    assert rig.scheduler.pending_timer_count() == 0
    assert not rig.sequencer.is_scheduled()

    rig.scheduler.advance(10.0)
    rig.scheduler.run_frames(10)
    assert rig.driver.run_state().tick == 3
    assert rig.sequencer.cursor() == cursor

    rig.driver.resume()
    rig.driver.resume()
    assert rig.scheduler.pending_frame_count() == 1
    assert rig.scheduler.pending_timer_count() == 1
    assert rig.sequencer.cursor() == (cursor + 1) % 13

    rig.scheduler.run_frames(2)
    assert rig.driver.run_state().tick == 5


def test_pause_holds_pending_game_over(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(max_lives=1))
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()

    rig.driver.pause()
    rig.scheduler.advance(1.0)
    assert rig.game_overs == []

    rig.driver.resume()
    rig.scheduler.advance(0.2)
    assert len(rig.game_overs) == 1
    assert rig.game_overs[0].final_score == 0


def test_exit_run_tears_down_and_cancels_callbacks(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(max_lives=1))
    rig.driver.start_run(easy)
    rig.driver.request_move(Direction.LEFT)
    rig.place(EntityKind.COLLECTIBLE, 0, 80.0)
    rig.driver.tick()
    rig.place(EntityKind.HAZARD, 0, 80.0)
    rig.driver.tick()
    assert rig.driver.is_game_over_pending()

    rig.driver.exit_run()

    snapshot = rig.driver.snapshot()
    assert rig.driver.phase() == RunPhase.IDLE
    assert snapshot.score == 0
    assert snapshot.lives == 1
    assert snapshot.lane == 1
    assert snapshot.entities == ()
    assert not snapshot.is_stunned
    assert rig.scheduler.pending_frame_count() == 0
    assert rig.sequencer.context() == MusicContext.MENU

    rig.scheduler.advance(2.0)
    rig.scheduler.run_frames(5)
    assert rig.game_overs == []
    assert rig.driver.tick().tick == 0


def test_new_run_after_exit_applies_new_profile(make_rig, app_config):
    rig: DriverRig = make_rig()
    rig.driver.start_run(app_config.difficulty("easy"))
    rig.scheduler.run_frames(20)
    rig.driver.exit_run()

    hard = app_config.difficulty("hard")
    rig.driver.start_run(hard)
    snapshot = rig.driver.snapshot()
    assert snapshot.tick == 0
    assert snapshot.difficulty == "hard"
    assert rig.driver.profile() == hard
    assert snapshot.scroll_speed == pytest.approx(hard.base_speed)
    assert rig.scheduler.pending_frame_count() == 1


def test_restart_without_exit_does_not_double_schedule(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.driver.start_run(easy)
    assert rig.scheduler.pending_frame_count() == 1
    rig.scheduler.run_frames(4)
    assert rig.driver.run_state().tick == 4


def test_speed_steps_at_multiples_of_five(make_rig, app_config):
    medium = app_config.difficulty("medium")
    rig: DriverRig = make_rig()
    rig.driver.start_run(medium)
    speed_changes = []

    for _ in range(15):
        before = rig.driver.run_state().scroll_speed
        rig.place(EntityKind.COLLECTIBLE, 1, 80.0)
        snapshot = rig.driver.tick()
        if snapshot.scroll_speed != before:
            speed_changes.append(snapshot.score)

    assert speed_changes == [5, 10, 15]
    assert rig.driver.run_state().scroll_speed == pytest.approx(medium.base_speed + 3 * medium.speed_increment)


def test_toggle_mute_silences_effects(make_rig, easy):
    rig: DriverRig = make_rig()
    assert rig.driver.toggle_mute() is True
    buffers = len(rig.output.buffers)

    rig.driver.start_run(easy)
    rig.driver.request_move(Direction.LEFT)
    assert len(rig.output.buffers) == buffers
    assert SoundEffect.JUMP in rig.sounds

    assert rig.driver.toggle_mute() is False


def test_snapshot_is_immutable(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 0, 10.0)
    snapshot = rig.driver.tick()

    with pytest.raises(AttributeError):
        snapshot.score = 10  # type: ignore[misc]
    with pytest.raises(AttributeError):
        snapshot.entities[0].position = 0.0  # type: ignore[misc]
    assert rig.driver.field().entities()[0].position == pytest.approx(10.0)


def test_invariants_hold_over_a_long_random_run(app_config):
    for seed in (1, 2, 3):
        rig = DriverRig(rng=random.Random(seed))
        mover = random.Random(seed + 100)
        rig.driver.start_run(app_config.difficulty("hard"))

        last_score = 0
        last_speed = rig.driver.run_state().scroll_speed
        for _ in range(3000):
            if mover.random() < 0.05:
                rig.driver.request_move(mover.choice([Direction.LEFT, Direction.RIGHT]))
            rig.scheduler.run_frame()
            snapshot = rig.driver.snapshot()
            assert 0 <= snapshot.lane < 3
            assert 0 <= snapshot.lives <= 3
            assert snapshot.score >= last_score
            assert snapshot.scroll_speed >= last_speed
            assert snapshot.is_stunned == (snapshot.stun_ticks_remaining > 0)
            for entity in snapshot.entities:
                assert 0 <= entity.lane < 3
                assert entity.position < 120.0
            last_score = snapshot.score
            last_speed = snapshot.scroll_speed

        assert len(rig.game_overs) <= 1


def test_exit_after_game_over_keeps_menu_melody_running(make_rig, easy):
    rig: DriverRig = make_rig(rules=config.GameRules(max_lives=1))
    rig.driver.start_run(easy)
    rig.place(EntityKind.HAZARD, 1, 80.0)
    rig.driver.tick()
    rig.scheduler.advance(0.11)
    assert rig.driver.phase() == RunPhase.GAME_OVER
    assert rig.sequencer.context() == MusicContext.MENU

    rig.scheduler.advance(2.42)
    cursor = rig.sequencer.cursor()
    emitted = rig.sequencer.notes_emitted()

    rig.driver.exit_run()

    assert rig.driver.phase() == RunPhase.IDLE
    assert rig.sequencer.context() == MusicContext.MENU
    assert rig.sequencer.cursor() == cursor
    assert rig.sequencer.notes_emitted() == emitted
    assert rig.scheduler.pending_timer_count() == 1


def test_exit_while_idle_in_menu_does_not_restart_melody(make_rig):
    rig: DriverRig = make_rig()
    rig.driver.enter_menu()
    rig.scheduler.advance(1.3)
    assert rig.sequencer.cursor() == 2

    rig.driver.exit_run()
    rig.driver.enter_menu()

    assert rig.sequencer.cursor() == 2
    assert rig.sequencer.notes_emitted() == 2


def test_exit_from_paused_run_switches_to_menu_from_first_note(make_rig, easy):
    rig: DriverRig = make_rig()
    rig.driver.start_run(easy)
    rig.scheduler.advance(0.7)
    rig.driver.pause()

    rig.driver.exit_run()

    assert rig.sequencer.context() == MusicContext.MENU
    assert rig.sequencer.cursor() == 1
    assert rig.scheduler.pending_timer_count() == 1
