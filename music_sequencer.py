# -*- coding: utf-8 -*-
########################
# music_sequencer.py
########################
# Purpose:
# - Background music sequencer. Emits one melody note at a time through ToneSynthesizer and
#   re-arms itself after each note's duration.
#
# Design notes:
# - No Qt usage. Timing comes from an injected task_scheduler.TaskScheduler.
# - Exactly one live note handle at a time. play/stop/pause cancel it before anything else.
# - Mute suppresses the tone, not the schedule: the cursor keeps advancing while muted.
# - pause keeps context and cursor; resume re-arms from the same cursor.
# - stop clears the context but not the cursor. Only play with a new context resets the cursor.
# - Never touches simulation state.
#
########################
# Interfaces:
# Public dataclasses:
# - MelodyNote(frequency_hz: float, beats: float)
# - Voice(waveform: Waveform, volume: float)
#
# Public constants:
# - MENU_MELODY, PLAYING_MELODY, MELODIES, DEFAULT_TEMPOS_BPM, VOICES
#
# Public classes:
# - class MusicSequencer
#   - __init__(scheduler: TaskScheduler, synthesizer: ToneSynthesizer, *, tempos_bpm: Optional[dict] = None)
#   - context() -> Optional[MusicContext]
#   - cursor() -> int
#   - is_scheduled() -> bool
#   - play(context: MusicContext) -> None
#   - stop() -> None
#   - pause() -> None
#   - resume() -> None
#   - note_duration_seconds(note: MelodyNote) -> float
#
# Inputs:
# - Context changes from GameLoopDriver, mute flag from ToneSynthesizer.
#
# Outputs:
# - ToneSynthesizer.play_tone calls.
#
########################

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import gameplay_models
import task_scheduler
import tone_synth

logger = logging.getLogger(__name__)

C4 = 261.63
D4 = 293.66
E4 = 329.63
F4 = 349.23
G4 = 392.00
A4 = 440.00


@dataclass(frozen=True)
class MelodyNote:
    frequency_hz: float
    beats: float


@dataclass(frozen=True)
class Voice:
    waveform: tone_synth.Waveform
    volume: float


MENU_MELODY: Tuple[MelodyNote, ...] = (
    MelodyNote(C4, 2),
    MelodyNote(E4, 2),
    MelodyNote(G4, 2),
    MelodyNote(E4, 2),
    MelodyNote(C4, 2),
    MelodyNote(G4, 2),
)

PLAYING_MELODY: Tuple[MelodyNote, ...] = (
    MelodyNote(C4, 1),
    MelodyNote(D4, 1),
    MelodyNote(E4, 1),
    MelodyNote(C4, 1),
    MelodyNote(E4, 1),
    MelodyNote(F4, 1),
    MelodyNote(G4, 2),
    MelodyNote(G4, 1),
    MelodyNote(A4, 1),
    MelodyNote(G4, 1),
    MelodyNote(F4, 1),
    MelodyNote(E4, 1),
    MelodyNote(C4, 1),
)

MELODIES: Dict[gameplay_models.MusicContext, Tuple[MelodyNote, ...]] = {
    gameplay_models.MusicContext.MENU: MENU_MELODY,
    gameplay_models.MusicContext.PLAYING: PLAYING_MELODY,
}

DEFAULT_TEMPOS_BPM: Dict[gameplay_models.MusicContext, float] = {
    gameplay_models.MusicContext.MENU: 100.0,
    gameplay_models.MusicContext.PLAYING: 180.0,
}

VOICES: Dict[gameplay_models.MusicContext, Voice] = {
    gameplay_models.MusicContext.MENU: Voice(tone_synth.Waveform.SINE, 0.05),
    gameplay_models.MusicContext.PLAYING: Voice(tone_synth.Waveform.TRIANGLE, 0.03),
}


class MusicSequencer:
    def __init__(
        self,
        scheduler: task_scheduler.TaskScheduler,
        synthesizer: tone_synth.ToneSynthesizer,
        *,
        tempos_bpm: Optional[Dict[gameplay_models.MusicContext, float]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._synthesizer = synthesizer
        self._tempos_bpm = dict(DEFAULT_TEMPOS_BPM)
        if tempos_bpm:
            self._tempos_bpm.update(tempos_bpm)
        self._context: Optional[gameplay_models.MusicContext] = None
        self._melody: Tuple[MelodyNote, ...] = ()
        self._bpm = 120.0
        self._cursor = 0
        self._pending: Optional[task_scheduler.ScheduledTask] = None
        self._notes_emitted = 0

    def context(self) -> Optional[gameplay_models.MusicContext]:
        return self._context

    def cursor(self) -> int:
        return int(self._cursor)

    def bpm(self) -> float:
        return float(self._bpm)

    def notes_emitted(self) -> int:
        return int(self._notes_emitted)

    def is_scheduled(self) -> bool:
        return self._pending is not None and self._pending.is_active()

    def note_duration_seconds(self, note: MelodyNote) -> float:
        return float(note.beats) * (60.0 / float(self._bpm))

    def play(self, context: gameplay_models.MusicContext) -> None:
        requested = gameplay_models.MusicContext(context)
        if self._context == requested and self.is_scheduled():
            return

        self.stop()
        self._context = requested
        self._melody = MELODIES[requested]
        self._bpm = float(self._tempos_bpm[requested])
        self._cursor = 0
        logger.info("Music context %s at %.0f bpm", requested.value, self._bpm)
        self._schedule_next_note()

    def stop(self) -> None:
        self._cancel_pending()
        self._context = None

    def pause(self) -> None:
        self._cancel_pending()

    def resume(self) -> None:
        if self._context is None or not self._melody:
            return
        if self.is_scheduled():
            return
        self._schedule_next_note()

    def _cancel_pending(self) -> None:
        pending = self._pending
        self._pending = None
        if pending is not None:
            pending.cancel()

    def _on_note_due(self) -> None:
        self._pending = None
        self._schedule_next_note()

    def _schedule_next_note(self) -> None:
        if self._context is None or not self._melody:
            return

        note = self._melody[self._cursor]
        duration_seconds = self.note_duration_seconds(note)

        if not self._synthesizer.is_muted():
            voice = VOICES[self._context]
            self._synthesizer.play_tone(
                note.frequency_hz,
                duration_seconds,
                waveform=voice.waveform,
                volume=voice.volume,
            )
        self._notes_emitted += 1
        logger.debug("Note %d of %s: %.2f Hz for %.3fs", self._cursor, self._context.value, note.frequency_hz, duration_seconds)

        self._cursor = (self._cursor + 1) % len(self._melody)
        self._pending = self._scheduler.call_later(duration_seconds, self._on_note_due)


def _run_unit_tests() -> None:
    class _Recorder:
        def __init__(self) -> None:
            self.count = 0

        def play(self, samples, sample_rate: int) -> None:
            self.count += 1

    scheduler = task_scheduler.ManualTaskScheduler()
    recorder = _Recorder()
    sequencer = MusicSequencer(scheduler, tone_synth.ToneSynthesizer(recorder, sample_rate=8000))

    sequencer.play(gameplay_models.MusicContext.MENU)
    assert sequencer.cursor() == 1
    assert recorder.count == 1

    scheduler.advance(1.2)
    assert sequencer.cursor() == 2
    sequencer.pause()
    scheduler.advance(10.0)
    assert sequencer.cursor() == 2
    sequencer.resume()
    assert sequencer.cursor() == 3
    assert scheduler.pending_timer_count() == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("music_sequencer.py: ok")
