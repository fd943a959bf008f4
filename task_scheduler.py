# -*- coding: utf-8 -*-
########################
# task_scheduler.py
########################
# Purpose:
# - Scheduling contract shared by the game loop and the music sequencer.
# - Provides a deterministic fake clock (ManualTaskScheduler) for tests and headless runs.
#
# Design notes:
# - No Qt usage. The Qt-backed implementation lives in qt_scheduler.py.
# - Every scheduled callback is represented by a cancellable handle. Callers keep at most one live
#   handle per chain and replace it atomically, so pause/resume/cancel never double-schedule.
# - Cancelling a handle that already fired or was already cancelled is a no-op.
#
########################
# Interfaces:
# Public protocols:
# - ScheduledTask
#   - cancel() -> None
#   - is_active() -> bool
# - TaskScheduler
#   - now() -> float
#   - call_later(delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask
#   - request_frame(callback: Callable[[], None]) -> ScheduledTask
#
# Public classes:
# - class ManualTaskScheduler(TaskScheduler)
#   - advance(seconds: float) -> int
#   - run_frame() -> int
#   - run_frames(count: int) -> int
#   - pending_timer_count() -> int
#   - pending_frame_count() -> int
#
# Inputs:
# - Callbacks from GameLoopDriver and MusicSequencer.
#
# Outputs:
# - Callback invocations in deterministic order: due time, then registration order.
#
########################

from __future__ import annotations

import itertools
from typing import Callable, List, Protocol, runtime_checkable


@runtime_checkable
class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...

    def is_active(self) -> bool:
        ...


@runtime_checkable
class TaskScheduler(Protocol):
    def now(self) -> float:
        ...

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        ...

    def request_frame(self, callback: Callable[[], None]) -> ScheduledTask:
        ...


class _ManualTask:
    def __init__(self, *, due_seconds: float, sequence: int, callback: Callable[[], None]) -> None:
        self.due_seconds = float(due_seconds)
        self.sequence = int(sequence)
        self.callback = callback
        self._is_active = True

    def cancel(self) -> None:
        self._is_active = False

    def is_active(self) -> bool:
        return self._is_active

    def fire(self) -> None:
        if not self._is_active:
            return
        self._is_active = False
        self.callback()


class ManualTaskScheduler:
    """Fake clock scheduler.

    Timers only fire from advance(). Frame requests only fire from run_frame(), which runs the
    requests that were pending when it was called; a callback that requests another frame gets
    it on the next run_frame() call. This mirrors a display refresh primitive.
    """

    def __init__(self, *, start_seconds: float = 0.0, frame_interval_seconds: float = 1.0 / 60.0) -> None:
        self._now_seconds = float(start_seconds)
        self._frame_interval_seconds = float(frame_interval_seconds)
        self._sequence = itertools.count()
        self._timers: List[_ManualTask] = []
        self._frames: List[_ManualTask] = []

    def now(self) -> float:
        return float(self._now_seconds)

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _ManualTask:
        delay = float(delay_seconds)
        if delay < 0.0:
            raise ValueError(f"delay_seconds must be non-negative, got {delay}")
        task = _ManualTask(due_seconds=self._now_seconds + delay, sequence=next(self._sequence), callback=callback)
        self._timers.append(task)
        return task

    def request_frame(self, callback: Callable[[], None]) -> _ManualTask:
        task = _ManualTask(due_seconds=self._now_seconds, sequence=next(self._sequence), callback=callback)
        self._frames.append(task)
        return task

    def pending_timer_count(self) -> int:
        return sum(1 for task in self._timers if task.is_active())

    def pending_frame_count(self) -> int:
        return sum(1 for task in self._frames if task.is_active())

    def _next_due_timer(self, until_seconds: float):
        best = None
        for task in self._timers:
            if not task.is_active() or task.due_seconds > until_seconds:
                continue
            if best is None or (task.due_seconds, task.sequence) < (best.due_seconds, best.sequence):
                best = task
        return best

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order. Returns the number fired."""
        target = self._now_seconds + float(seconds)
        fired = 0
        while True:
            task = self._next_due_timer(target)
            if task is None:
                break
            self._now_seconds = max(self._now_seconds, task.due_seconds)
            task.fire()
            fired += 1
        self._now_seconds = target
        self._timers = [task for task in self._timers if task.is_active()]
        return fired

    def run_frame(self) -> int:
        """Fire the frame requests pending right now, then advance the clock by one frame interval."""
        pending = [task for task in self._frames if task.is_active()]
        self._frames = []
        fired = 0
        for task in pending:
            if task.is_active():
                task.fire()
                fired += 1
        self.advance(self._frame_interval_seconds)
        return fired

    def run_frames(self, count: int) -> int:
        fired = 0
        for _ in range(int(count)):
            fired += self.run_frame()
        return fired


def _run_unit_tests() -> None:
    scheduler = ManualTaskScheduler()
    calls: List[str] = []

    scheduler.call_later(0.2, lambda: calls.append("b"))
    scheduler.call_later(0.1, lambda: calls.append("a"))
    cancelled = scheduler.call_later(0.15, lambda: calls.append("x"))
    cancelled.cancel()

    assert scheduler.advance(0.05) == 0
    assert scheduler.advance(0.2) == 2
    assert calls == ["a", "b"]

    def chained() -> None:
        calls.append("frame")
        scheduler.request_frame(chained)

    scheduler.request_frame(chained)
    scheduler.run_frames(3)
    assert calls.count("frame") == 3
    assert scheduler.pending_frame_count() == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("task_scheduler.py: ok")
