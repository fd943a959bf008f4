# -*- coding: utf-8 -*-
########################
# tone_synth.py
########################
# Purpose:
# - Software tone synthesizer for the game's sound effects and background melody notes.
# - Renders mono float32 sample buffers with numpy and hands them to an injected AudioOutput.
# - Owns the shared mute flag read by the sound effect path and by MusicSequencer.
#
# Design notes:
# - No Qt usage and no audio device access here. The device is an AudioOutput collaborator
#   (audio_output.PygameAudioOutput in the app, a recording fake in tests).
# - Sound effect buffers are rendered once and cached; melody notes are rendered per note.
# - Playback is fire-and-forget. A failing device write is logged and dropped.
#
########################
# Interfaces:
# Public enums:
# - Waveform: SINE | TRIANGLE | SQUARE
#
# Public protocols:
# - AudioOutput: play(samples: numpy.ndarray, sample_rate: int) -> None
#
# Public classes:
# - class ToneSynthesizer
#   - __init__(output: AudioOutput, *, sample_rate: int = 22050, master_volume: float = 1.0, muted: bool = False)
#   - is_muted() -> bool
#   - set_muted(muted: bool) -> None
#   - toggle_muted() -> bool
#   - render_sweep(...) -> numpy.ndarray
#   - render_note(frequency, duration_seconds, *, waveform, volume) -> numpy.ndarray
#   - render_effect(effect: SoundEffect) -> numpy.ndarray
#   - play_effect(effect: SoundEffect) -> bool
#   - play_tone(frequency, duration_seconds, *, waveform, volume) -> bool
#
# Inputs:
# - SoundEffect requests from GameLoopDriver, note requests from MusicSequencer.
#
# Outputs:
# - Sample buffers written to the AudioOutput.
#
########################

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Protocol

import numpy as np

import gameplay_models

logger = logging.getLogger(__name__)

# C5 E5 G5 C6
WIN_ARPEGGIO_HZ = (523.25, 659.25, 783.99, 1046.50)


class Waveform(str, Enum):
    SINE = "sine"
    TRIANGLE = "triangle"
    SQUARE = "square"


class AudioOutput(Protocol):
    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        ...


def _ramp(start: float, end: float, count: int, *, exponential: bool) -> np.ndarray:
    if count <= 0:
        return np.zeros(0, dtype=np.float64)
    position = np.linspace(0.0, 1.0, count, endpoint=False)
    if exponential and start > 0.0 and end > 0.0:
        return start * np.power(end / start, position)
    return start + (end - start) * position


def _oscillate(waveform: Waveform, phase: np.ndarray) -> np.ndarray:
    if waveform == Waveform.SINE:
        return np.sin(phase)
    if waveform == Waveform.SQUARE:
        return np.sign(np.sin(phase))
    cycle = (phase / (2.0 * np.pi)) % 1.0
    return 2.0 * np.abs(2.0 * cycle - 1.0) - 1.0


class ToneSynthesizer:
    def __init__(
        self,
        output: AudioOutput,
        *,
        sample_rate: int = 22050,
        master_volume: float = 1.0,
        muted: bool = False,
    ) -> None:
        self._output = output
        self._sample_rate = int(sample_rate)
        self._master_volume = float(master_volume)
        self._muted = bool(muted)
        self._effect_cache: Dict[gameplay_models.SoundEffect, np.ndarray] = {}

    def is_muted(self) -> bool:
        return self._muted

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        logger.info("Audio %s", "muted" if self._muted else "unmuted")

    def toggle_muted(self) -> bool:
        self.set_muted(not self._muted)
        return self._muted

    def _sample_count(self, duration_seconds: float) -> int:
        return max(0, int(round(float(duration_seconds) * self._sample_rate)))

    def render_sweep(
        self,
        *,
        waveform: Waveform,
        start_hz: float,
        end_hz: float,
        duration_seconds: float,
        start_gain: float,
        end_gain: float,
        exponential: bool,
    ) -> np.ndarray:
        count = self._sample_count(duration_seconds)
        frequency = _ramp(float(start_hz), float(end_hz), count, exponential=exponential)
        gain = _ramp(float(start_gain), float(end_gain), count, exponential=exponential)
        phase = 2.0 * np.pi * np.cumsum(frequency) / float(self._sample_rate)
        return (_oscillate(waveform, phase) * gain).astype(np.float32)

    def render_note(
        self,
        frequency: float,
        duration_seconds: float,
        *,
        waveform: Waveform,
        volume: float,
        edge_seconds: float = 0.05,
    ) -> np.ndarray:
        """Render a held note with a linear attack and release of edge_seconds each."""
        count = self._sample_count(duration_seconds)
        t = np.arange(count, dtype=np.float64) / float(self._sample_rate)
        wave = _oscillate(waveform, 2.0 * np.pi * float(frequency) * t)

        edge_count = min(self._sample_count(edge_seconds), count // 2)
        envelope = np.full(count, float(volume), dtype=np.float64)
        if edge_count > 0:
            envelope[:edge_count] = np.linspace(0.0, float(volume), edge_count, endpoint=False)
            envelope[count - edge_count:] = np.linspace(float(volume), 0.0, edge_count)
        return (wave * envelope).astype(np.float32)

    def _render_win(self) -> np.ndarray:
        note_seconds = 0.3
        spacing_seconds = 0.1
        total = self._sample_count(spacing_seconds * (len(WIN_ARPEGGIO_HZ) - 1) + note_seconds)
        buffer = np.zeros(total, dtype=np.float32)
        for index, frequency in enumerate(WIN_ARPEGGIO_HZ):
            note = self.render_sweep(
                waveform=Waveform.TRIANGLE,
                start_hz=frequency,
                end_hz=frequency,
                duration_seconds=note_seconds,
                start_gain=0.2,
                end_gain=0.01,
                exponential=True,
            )
            offset = self._sample_count(spacing_seconds * index)
            end = min(total, offset + len(note))
            buffer[offset:end] += note[: end - offset]
        return buffer

    def render_effect(self, effect: gameplay_models.SoundEffect) -> np.ndarray:
        effect = gameplay_models.SoundEffect(effect)
        cached = self._effect_cache.get(effect)
        if cached is not None:
            return cached

        if effect == gameplay_models.SoundEffect.COLLECT:
            samples = self.render_sweep(
                waveform=Waveform.SINE, start_hz=600.0, end_hz=1200.0, duration_seconds=0.1,
                start_gain=0.3, end_gain=0.01, exponential=True,
            )
        elif effect == gameplay_models.SoundEffect.HIT:
            samples = self.render_sweep(
                waveform=Waveform.SQUARE, start_hz=150.0, end_hz=50.0, duration_seconds=0.3,
                start_gain=0.3, end_gain=0.01, exponential=True,
            )
        elif effect == gameplay_models.SoundEffect.JUMP:
            samples = self.render_sweep(
                waveform=Waveform.TRIANGLE, start_hz=200.0, end_hz=300.0, duration_seconds=0.1,
                start_gain=0.1, end_gain=0.01, exponential=False,
            )
        else:
            samples = self._render_win()

        self._effect_cache[effect] = samples
        return samples

    def _write(self, samples: np.ndarray) -> bool:
        scaled = np.clip(samples * self._master_volume, -1.0, 1.0).astype(np.float32)
        try:
            self._output.play(scaled, self._sample_rate)
        except Exception as exc:
            logger.warning("Audio output failed: %s", exc)
            return False
        return True

    def play_effect(self, effect: gameplay_models.SoundEffect) -> bool:
        if self._muted:
            return False
        return self._write(self.render_effect(effect))

    def play_tone(
        self,
        frequency: float,
        duration_seconds: float,
        *,
        waveform: Waveform = Waveform.SINE,
        volume: float = 0.05,
    ) -> bool:
        return self._write(self.render_note(frequency, duration_seconds, waveform=waveform, volume=volume))


def _run_unit_tests() -> None:
    class _Recorder:
        def __init__(self) -> None:
            self.buffers = []

        def play(self, samples: np.ndarray, sample_rate: int) -> None:
            self.buffers.append((samples, sample_rate))

    recorder = _Recorder()
    synth = ToneSynthesizer(recorder, sample_rate=8000)

    assert synth.play_effect(gameplay_models.SoundEffect.COLLECT)
    assert len(recorder.buffers[0][0]) == 800
    assert float(np.max(np.abs(recorder.buffers[0][0]))) <= 0.3 + 1e-6

    synth.set_muted(True)
    assert not synth.play_effect(gameplay_models.SoundEffect.HIT)
    assert len(recorder.buffers) == 1

    win = synth.render_effect(gameplay_models.SoundEffect.WIN)
    assert len(win) == 4800

    note = synth.render_note(440.0, 0.5, waveform=Waveform.TRIANGLE, volume=0.03)
    assert abs(float(note[0])) < 1e-6
    assert float(np.max(np.abs(note))) <= 0.03 + 1e-6


if __name__ == "__main__":
    _run_unit_tests()
    print("tone_synth.py: ok")
