# -*- coding: utf-8 -*-
########################
# audio_output.py
########################
# Purpose:
# - Audio device collaborators for tone_synth.ToneSynthesizer.
#
# Design notes:
# - The pygame mixer is the only shared output device. It is opened once, by PygameAudioOutput.
# - SDL may open the device at a different rate or channel count than requested. The opened
#   format is read back from pygame.mixer.get_init() and every buffer is converted to it.
# - Writes are fire-and-forget: every buffer becomes a Sound played on a free mixer channel.
# - NullAudioOutput is the fallback when no device can be opened (headless, CI, no sound card).
#
########################
# Interfaces:
# Public exceptions:
# - class AudioDeviceError(RuntimeError)
#
# Public functions:
# - resample(samples: numpy.ndarray, from_rate: int, to_rate: int) -> numpy.ndarray
# - to_pcm16(samples: numpy.ndarray, channels: int) -> numpy.ndarray
#
# Public classes:
# - class PygameAudioOutput
#   - __init__(*, sample_rate: int = 22050, channels: int = 16)
#   - sample_rate() -> int
#   - output_channels() -> int
#   - play(samples: numpy.ndarray, sample_rate: int) -> None
#   - close() -> None
# - class NullAudioOutput
#   - play(samples: numpy.ndarray, sample_rate: int) -> None
#   - buffers_dropped() -> int
#
########################

from __future__ import annotations

import logging
import os

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

logger = logging.getLogger(__name__)

PCM16_FORMAT = -16


class AudioDeviceError(RuntimeError):
    """Raised when the mixer device cannot be opened or opened in an unusable format."""


def resample(samples: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Linear-interpolation resample of a mono buffer. Duration is preserved."""
    source = np.asarray(samples, dtype=np.float32)
    from_rate = int(from_rate)
    to_rate = int(to_rate)
    if from_rate == to_rate or len(source) == 0:
        return source
    target_count = max(1, int(round(len(source) * to_rate / float(from_rate))))
    source_times = np.arange(len(source), dtype=np.float64) / float(from_rate)
    target_times = np.arange(target_count, dtype=np.float64) / float(to_rate)
    return np.interp(target_times, source_times, source).astype(np.float32)


def to_pcm16(samples: np.ndarray, channels: int) -> np.ndarray:
    """Float mono in [-1, 1] to the int16 array layout pygame.sndarray expects for the mixer."""
    pcm = np.clip(np.asarray(samples, dtype=np.float32) * 32767.0, -32767, 32767).astype(np.int16)
    if int(channels) == 1:
        return np.ascontiguousarray(pcm)
    return np.ascontiguousarray(np.repeat(pcm[:, np.newaxis], int(channels), axis=1))


class PygameAudioOutput:
    def __init__(self, *, sample_rate: int = 22050, channels: int = 16) -> None:
        try:
            pygame.mixer.pre_init(int(sample_rate), PCM16_FORMAT, 2, 512)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(int(channels))
        except pygame.error as exc:
            raise AudioDeviceError(f"Failed to open audio device: {exc}") from exc

        opened = pygame.mixer.get_init()
        if opened is None:
            raise AudioDeviceError("Audio device reported no mixer after init")
        opened_rate, opened_format, opened_channels = opened
        if int(opened_format) != PCM16_FORMAT:
            pygame.mixer.quit()
            raise AudioDeviceError(f"Audio device opened with unsupported sample format {opened_format}")

        self._sample_rate = int(opened_rate)
        self._output_channels = int(opened_channels)
        if self._sample_rate != int(sample_rate):
            logger.info("Requested %d Hz, device opened at %d Hz; buffers will be resampled", sample_rate, self._sample_rate)
        logger.info("Audio output opened at %d Hz, %d channel(s)", self._sample_rate, self._output_channels)

    def sample_rate(self) -> int:
        return self._sample_rate

    def output_channels(self) -> int:
        return self._output_channels

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        mono = resample(samples, int(sample_rate), self._sample_rate)
        if len(mono) == 0:
            return
        sound = pygame.sndarray.make_sound(to_pcm16(mono, self._output_channels))
        sound.play()

    def close(self) -> None:
        if pygame.mixer.get_init():
            pygame.mixer.quit()
            logger.info("Audio output closed")


class NullAudioOutput:
    def __init__(self) -> None:
        self._buffers_dropped = 0

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        self._buffers_dropped += 1

    def buffers_dropped(self) -> int:
        return self._buffers_dropped

    def close(self) -> None:
        return None
