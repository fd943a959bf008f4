# -*- coding: utf-8 -*-
########################
# game_loop.py
########################
# Purpose:
# - Game loop driver. Owns the per-run simulation state and ties EntityField, PlayerState and
#   CollisionEngine together once per frame.
# - Exposes the run controls used by the presentation layer: start_run, request_move, pause,
#   resume, exit_run, toggle_mute.
# - Publishes an immutable GameSnapshot after every tick and every accepted move.
#
# Design notes:
# - No Qt usage. Frames and timers come from an injected task_scheduler.TaskScheduler.
# - At most one pending frame handle. It is cleared before the tick runs and re-armed after,
#   so a tick never overlaps itself and pause/resume never double-schedule.
# - Speed is in percent of track per tick. Variable frame intervals do not change the simulation.
# - Pause suspends the frame chain, the music note chain and a pending game-over grace timer.
# - exit_run cancels every pending callback before tearing the run down.
# - Tick order: spawn, scroll, collide, stun countdown.
#
########################
# Interfaces:
# Public classes:
# - class GameLoopDriver
#   - __init__(*, scheduler, synthesizer, sequencer, rules: Optional[GameRules] = None, rng=None)
#   - phase() -> RunPhase
#   - profile() -> Optional[DifficultyProfile]
#   - run_state() -> collision_engine.RunState
#   - player() -> player_state.PlayerState
#   - field() -> entity_field.EntityField
#   - add_snapshot_listener(callback) -> None
#   - add_game_over_listener(callback) -> None
#   - add_sound_listener(callback) -> None
#   - enter_menu() -> None
#   - start_run(profile: DifficultyProfile) -> None
#   - request_move(direction: Direction) -> None
#   - pause() -> None
#   - resume() -> None
#   - toggle_pause() -> None
#   - exit_run() -> None
#   - toggle_mute() -> bool
#   - tick() -> GameSnapshot
#   - snapshot() -> GameSnapshot
#
# Inputs:
# - Direction intents (from input_router via the harness), difficulty profile, frame callbacks.
#
# Outputs:
# - GameSnapshot, GameOverEvent and SoundEffect notifications.
# - ToneSynthesizer.play_effect and MusicSequencer context changes.
#
########################

from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional, Sequence, Tuple

import collision_engine
import config
import entity_field
import gameplay_models
import music_sequencer
import player_state
import task_scheduler
import tone_synth

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[gameplay_models.GameSnapshot], None]
GameOverListener = Callable[[gameplay_models.GameOverEvent], None]
SoundListener = Callable[[gameplay_models.SoundEffect], None]


class GameLoopDriver:
    def __init__(
        self,
        *,
        scheduler: task_scheduler.TaskScheduler,
        synthesizer: tone_synth.ToneSynthesizer,
        sequencer: music_sequencer.MusicSequencer,
        rules: Optional[config.GameRules] = None,
        rng: Optional[entity_field.RandomSource] = None,
    ) -> None:
        self._scheduler = scheduler
        self._synthesizer = synthesizer
        self._sequencer = sequencer
        self._rules = rules if rules is not None else config.GameRules()
        self._rng = rng if rng is not None else random.Random()

        self._phase = gameplay_models.RunPhase.IDLE
        self._profile: Optional[config.DifficultyProfile] = None
        self._field = entity_field.EntityField(self._rules)
        self._player = player_state.PlayerState(self._rules)
        self._run_state = collision_engine.RunState(
            lives=int(self._rules.max_lives),
            max_lives=int(self._rules.max_lives),
        )
        self._collision: Optional[collision_engine.CollisionEngine] = None

        self._frame_task: Optional[task_scheduler.ScheduledTask] = None
        self._game_over_task: Optional[task_scheduler.ScheduledTask] = None
        self._pending_game_over: Optional[gameplay_models.GameOverEvent] = None
        self._game_over: Optional[gameplay_models.GameOverEvent] = None
        self._particle_spawns: Tuple[gameplay_models.ParticleSpawn, ...] = ()

        self._snapshot_listeners: List[SnapshotListener] = []
        self._game_over_listeners: List[GameOverListener] = []
        self._sound_listeners: List[SoundListener] = []

    # -----------------
    # Accessors
    # -----------------

    def phase(self) -> gameplay_models.RunPhase:
        return self._phase

    def profile(self) -> Optional[config.DifficultyProfile]:
        return self._profile

    def run_state(self) -> collision_engine.RunState:
        return self._run_state

    def player(self) -> player_state.PlayerState:
        return self._player

    def field(self) -> entity_field.EntityField:
        return self._field

    def is_tick_scheduled(self) -> bool:
        return self._frame_task is not None and self._frame_task.is_active()

    def is_game_over_pending(self) -> bool:
        return self._pending_game_over is not None

    def add_snapshot_listener(self, callback: SnapshotListener) -> None:
        self._snapshot_listeners.append(callback)

    def add_game_over_listener(self, callback: GameOverListener) -> None:
        self._game_over_listeners.append(callback)

    def add_sound_listener(self, callback: SoundListener) -> None:
        self._sound_listeners.append(callback)

    # -----------------
    # Run controls
    # -----------------

    def enter_menu(self) -> None:
        self._sequencer.play(gameplay_models.MusicContext.MENU)

    def start_run(self, profile: config.DifficultyProfile) -> None:
        self._cancel_pending_callbacks()
        self._reset_run_state(profile)
        self._phase = gameplay_models.RunPhase.RUNNING
        logger.info(
            "Run started: difficulty=%s speed=%.2f spawn_interval=%d",
            profile.name,
            profile.base_speed,
            profile.spawn_interval,
        )

        self._emit_sound(gameplay_models.SoundEffect.JUMP)
        self._sequencer.play(gameplay_models.MusicContext.PLAYING)
        self._arm_frame()
        self._publish(self._build_snapshot(particle_spawns=()))

    def request_move(self, direction: gameplay_models.Direction) -> None:
        direction = gameplay_models.Direction(direction)
        if self._phase not in (gameplay_models.RunPhase.RUNNING, gameplay_models.RunPhase.PAUSED):
            return

        is_paused = self._phase == gameplay_models.RunPhase.PAUSED
        if not self._player.attempt_move(direction, is_paused=is_paused):
            return

        self._emit_sound(gameplay_models.SoundEffect.JUMP)
        self._publish(self._build_snapshot(particle_spawns=()))

    def pause(self) -> None:
        if self._phase != gameplay_models.RunPhase.RUNNING:
            return
        self._phase = gameplay_models.RunPhase.PAUSED
        self._cancel_frame()
        self._cancel_game_over_timer()
        self._sequencer.pause()
        logger.info("Run paused at tick %d", self._run_state.tick)
        self._publish(self._build_snapshot(particle_spawns=()))

    def resume(self) -> None:
        if self._phase != gameplay_models.RunPhase.PAUSED:
            return
        self._phase = gameplay_models.RunPhase.RUNNING
        self._sequencer.resume()
        self._arm_frame()
        if self._pending_game_over is not None and self._game_over_task is None:
            self._arm_game_over_timer()
        logger.info("Run resumed at tick %d", self._run_state.tick)
        self._publish(self._build_snapshot(particle_spawns=()))

    def toggle_pause(self) -> None:
        if self._phase == gameplay_models.RunPhase.RUNNING:
            self.pause()
        elif self._phase == gameplay_models.RunPhase.PAUSED:
            self.resume()

    def exit_run(self) -> None:
        self._cancel_pending_callbacks()
        if self._phase != gameplay_models.RunPhase.IDLE:
            logger.info("Run exited at tick %d with score %d", self._run_state.tick, self._run_state.score)
        self._reset_run_state(self._profile)
        self._phase = gameplay_models.RunPhase.IDLE
        self._sequencer.play(gameplay_models.MusicContext.MENU)
        self._publish(self._build_snapshot(particle_spawns=()))

    def toggle_mute(self) -> bool:
        return self._synthesizer.toggle_muted()

    # -----------------
    # Simulation
    # -----------------

    def tick(self) -> gameplay_models.GameSnapshot:
        if self._phase != gameplay_models.RunPhase.RUNNING or self._profile is None or self._collision is None:
            return self.snapshot()

        run_state = self._run_state
        run_state.tick += 1

        self._field.maybe_spawn(run_state.tick, self._profile, self._rng)
        self._field.advance(run_state.scroll_speed)
        outcome = self._collision.resolve(self._field, self._player, run_state)
        self._player.tick()

        if outcome.sped_up:
            logger.debug("Scroll speed now %.3f at score %d", run_state.scroll_speed, run_state.score)
        for sound in outcome.sounds:
            self._emit_sound(sound)

        if outcome.fatal_score is not None and self._pending_game_over is None and self._game_over is None:
            self._pending_game_over = gameplay_models.GameOverEvent(
                final_score=int(outcome.fatal_score),
                tick=int(run_state.tick),
            )
            self._arm_game_over_timer()

        self._particle_spawns = tuple(outcome.particle_spawns)
        snapshot = self.snapshot()
        self._publish(snapshot)
        return snapshot

    def snapshot(self) -> gameplay_models.GameSnapshot:
        return self._build_snapshot(particle_spawns=self._particle_spawns)

    # -----------------
    # Internals
    # -----------------

    def _build_snapshot(
        self,
        *,
        particle_spawns: Sequence[gameplay_models.ParticleSpawn],
    ) -> gameplay_models.GameSnapshot:
        run_state = self._run_state
        return gameplay_models.GameSnapshot(
            phase=self._phase,
            tick=int(run_state.tick),
            score=int(run_state.score),
            lives=int(run_state.lives),
            max_lives=int(run_state.max_lives),
            lane=self._player.lane(),
            is_stunned=self._player.is_stunned(),
            stun_ticks_remaining=self._player.stun_ticks_remaining(),
            is_jumping=self._player.is_jumping(),
            scroll_speed=float(run_state.scroll_speed),
            difficulty=self._profile.name if self._profile is not None else "",
            entities=self._field.views(),
            particle_spawns=tuple(particle_spawns),
            game_over=self._game_over,
        )

    def _reset_run_state(self, profile: Optional[config.DifficultyProfile]) -> None:
        self._profile = profile
        self._field.reset()
        self._player.reset()
        if profile is not None:
            self._run_state = collision_engine.RunState.for_run(self._rules, profile)
            self._collision = collision_engine.CollisionEngine(self._rules, profile)
        else:
            self._run_state = collision_engine.RunState(
                lives=int(self._rules.max_lives),
                max_lives=int(self._rules.max_lives),
            )
            self._collision = None
        self._pending_game_over = None
        self._game_over = None
        self._particle_spawns = ()

    def _publish(self, snapshot: gameplay_models.GameSnapshot) -> None:
        for listener in list(self._snapshot_listeners):
            listener(snapshot)

    def _emit_sound(self, sound: gameplay_models.SoundEffect) -> None:
        self._synthesizer.play_effect(sound)
        for listener in list(self._sound_listeners):
            listener(sound)

    def _arm_frame(self) -> None:
        if self.is_tick_scheduled():
            return
        self._frame_task = self._scheduler.request_frame(self._on_frame)

    def _cancel_frame(self) -> None:
        task = self._frame_task
        self._frame_task = None
        if task is not None:
            task.cancel()

    def _on_frame(self) -> None:
        self._frame_task = None
        self.tick()
        if self._phase == gameplay_models.RunPhase.RUNNING:
            self._arm_frame()

    def _arm_game_over_timer(self) -> None:
        self._game_over_task = self._scheduler.call_later(
            float(self._rules.game_over_delay_seconds),
            self._on_game_over_due,
        )

    def _cancel_game_over_timer(self) -> None:
        task = self._game_over_task
        self._game_over_task = None
        if task is not None:
            task.cancel()

    def _cancel_pending_callbacks(self) -> None:
        self._cancel_frame()
        self._cancel_game_over_timer()

    def _on_game_over_due(self) -> None:
        self._game_over_task = None
        event = self._pending_game_over
        if event is None or self._phase != gameplay_models.RunPhase.RUNNING:
            return

        self._pending_game_over = None
        self._game_over = event
        self._phase = gameplay_models.RunPhase.GAME_OVER
        self._cancel_frame()
        logger.info("Game over: score %d after %d ticks", event.final_score, event.tick)

        self._emit_sound(gameplay_models.SoundEffect.WIN)
        self._sequencer.play(gameplay_models.MusicContext.MENU)
        self._publish(self._build_snapshot(particle_spawns=()))
        for listener in list(self._game_over_listeners):
            listener(event)
