from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import numpy as np
import pytest

import config
import game_loop
import gameplay_models
import music_sequencer
import task_scheduler
import tone_synth


class RecordingOutput:
    def __init__(self) -> None:
        self.buffers: List[Tuple[np.ndarray, int]] = []

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        self.buffers.append((samples, int(sample_rate)))


class ScriptedRandom:
    """Returns the scripted values in order, then the fallback forever."""

    def __init__(self, values: Optional[List[float]] = None, *, fallback: float = 0.99) -> None:
        self._values = list(values or [])
        self._fallback = float(fallback)

    def random(self) -> float:
        if self._values:
            return self._values.pop(0)
        return self._fallback


class DriverRig:
    def __init__(
        self,
        *,
        rules: Optional[config.GameRules] = None,
        rng=None,
    ) -> None:
        self.rules = rules if rules is not None else config.GameRules()
        self.scheduler = task_scheduler.ManualTaskScheduler()
        self.output = RecordingOutput()
        self.synthesizer = tone_synth.ToneSynthesizer(self.output, sample_rate=8000)
        self.sequencer = music_sequencer.MusicSequencer(self.scheduler, self.synthesizer)
        # Fallback 0.99 makes every spawn a hazard in the last lane unless a test scripts otherwise.
        self.driver = game_loop.GameLoopDriver(
            scheduler=self.scheduler,
            synthesizer=self.synthesizer,
            sequencer=self.sequencer,
            rules=self.rules,
            rng=rng if rng is not None else ScriptedRandom(),
        )
        self.snapshots: List[gameplay_models.GameSnapshot] = []
        self.sounds: List[gameplay_models.SoundEffect] = []
        self.game_overs: List[gameplay_models.GameOverEvent] = []
        self.driver.add_snapshot_listener(self.snapshots.append)
        self.driver.add_sound_listener(self.sounds.append)
        self.driver.add_game_over_listener(self.game_overs.append)

    def place(self, kind: gameplay_models.EntityKind, lane: int, position_after_tick: float) -> gameplay_models.Entity:
        """Place an entity so that it sits at position_after_tick once the next tick scrolls it."""
        speed = self.driver.run_state().scroll_speed
        return self.driver.field().add_entity(kind, lane, position_after_tick - speed)


@pytest.fixture
def app_config() -> config.AppConfig:
    return config.AppConfig()


@pytest.fixture
def easy(app_config: config.AppConfig) -> config.DifficultyProfile:
    return app_config.difficulty("easy")


@pytest.fixture
def make_rig() -> Callable[..., DriverRig]:
    def factory(**kwargs) -> DriverRig:
        return DriverRig(**kwargs)

    return factory


@pytest.fixture
def recording_output() -> RecordingOutput:
    return RecordingOutput()
