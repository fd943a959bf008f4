# -*- coding: utf-8 -*-
########################
# qt_scheduler.py
########################
# Purpose:
# - Qt event loop implementation of task_scheduler.TaskScheduler.
# - Drives the game loop tick and the music sequencer note chain in the real application.
#
# Design notes:
# - Gameplay logic must not depend on this module. GameLoopDriver and MusicSequencer only see the
#   TaskScheduler protocol, so tests use ManualTaskScheduler instead.
# - Each task owns one single-shot QTimer. Cancel stops the timer and releases it.
# - Frame requests are single-shot timers at the configured frame interval, the closest Qt widgets
#   get to a display refresh callback.
#
########################
# Interfaces:
# Public classes:
# - class QtTaskScheduler(PyQt6.QtCore.QObject)
#   - now() -> float
#   - call_later(delay_seconds: float, callback) -> QtScheduledTask
#   - request_frame(callback) -> QtScheduledTask
#   - pending_task_count() -> int
#   - cancel_all() -> None
#
# Inputs:
# - Callbacks from GameLoopDriver and MusicSequencer.
#
# Outputs:
# - Callback invocations on the Qt GUI thread.
#
########################

from __future__ import annotations

import time
from typing import Callable, Optional, Set

from PyQt6.QtCore import QObject, QTimer, Qt


class QtScheduledTask:
    def __init__(self, owner: "QtTaskScheduler", timer: QTimer) -> None:
        self._owner = owner
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        timer.stop()
        self._owner._release(self, timer)

    def is_active(self) -> bool:
        return self._timer is not None

    def _fire(self, callback: Callable[[], None]) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        self._owner._release(self, timer)
        callback()


class QtTaskScheduler(QObject):
    def __init__(self, *, frame_interval_ms: int = 16, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._frame_interval_ms = max(1, int(frame_interval_ms))
        self._live_tasks: Set[QtScheduledTask] = set()

    def now(self) -> float:
        return float(time.monotonic())

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> QtScheduledTask:
        delay = float(delay_seconds)
        if delay < 0.0:
            raise ValueError(f"delay_seconds must be non-negative, got {delay}")
        return self._start_task(int(round(delay * 1000.0)), callback)

    def request_frame(self, callback: Callable[[], None]) -> QtScheduledTask:
        return self._start_task(self._frame_interval_ms, callback)

    def pending_task_count(self) -> int:
        return len(self._live_tasks)

    def cancel_all(self) -> None:
        for task in list(self._live_tasks):
            task.cancel()

    def _start_task(self, interval_ms: int, callback: Callable[[], None]) -> QtScheduledTask:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        task = QtScheduledTask(self, timer)
        timer.timeout.connect(lambda: task._fire(callback))
        self._live_tasks.add(task)
        timer.start(max(0, int(interval_ms)))
        return task

    def _release(self, task: QtScheduledTask, timer: QTimer) -> None:
        self._live_tasks.discard(task)
        timer.deleteLater()
