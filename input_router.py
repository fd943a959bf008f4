# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for gameplay input.
# - Translates QKeyEvent into gameplay_models.Direction intents and pause toggles.
#
# Design notes:
# - This must be the only gameplay key source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
# - The router never checks stun or pause. GameLoopDriver.request_move owns those rules.
#
########################
# Interfaces:
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - moveRequested(gameplay_models.Direction)
#     - pauseToggled()
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - clear_pressed_keys() -> None
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - Direction intents consumed by GameLoopDriver.request_move.
#
########################

from __future__ import annotations

from typing import Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

import gameplay_models


def _build_default_key_to_direction_map() -> Dict[int, gameplay_models.Direction]:
    """
    Default lane change mapping.

    Accepted keys:
      - Arrow keys: Left, Right
      - A and D
    """
    key_to_direction: Dict[int, gameplay_models.Direction] = {}

    def bind(key_constant: Qt.Key, direction: gameplay_models.Direction) -> None:
        key_to_direction[int(key_constant.value)] = direction

    bind(Qt.Key.Key_Left, gameplay_models.Direction.LEFT)
    bind(Qt.Key.Key_Right, gameplay_models.Direction.RIGHT)
    bind(Qt.Key.Key_A, gameplay_models.Direction.LEFT)
    bind(Qt.Key.Key_D, gameplay_models.Direction.RIGHT)

    return key_to_direction


def _build_default_pause_keys() -> Set[int]:
    return {int(Qt.Key.Key_Escape.value), int(Qt.Key.Key_P.value)}


class InputRouter(QObject):
    """
    Central keyboard router for gameplay input.

    This object never applies game rules. Its only job is to:
      - map keys to lane change directions
      - emit a pause toggle for the pause keys
    """

    moveRequested = pyqtSignal(object)
    pauseToggled = pyqtSignal()

    def __init__(
        self,
        parent: Optional[QObject] = None,
        key_to_direction_map: Optional[Dict[int, gameplay_models.Direction]] = None,
    ) -> None:
        super().__init__(parent)

        self._key_to_direction: Dict[int, gameplay_models.Direction] = (
            dict(key_to_direction_map) if key_to_direction_map is not None else _build_default_key_to_direction_map()
        )
        self._pause_keys: Set[int] = _build_default_pause_keys()

        # Press tracking for debounce and focus loss handling.
        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    def _is_game_key(self, key_code: int) -> bool:
        return key_code in self._key_to_direction or key_code in self._pause_keys

    # ------------------------------------------------------------------
    # Public API used by gameplay_harness
    # ------------------------------------------------------------------

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())

        # Holding a key must not hop across every lane.
        if event.isAutoRepeat():
            if self._is_game_key(key_code):
                self._ignored_presses += 1
                return True
            return False

        if key_code in self._pressed_keys:
            if self._is_game_key(key_code):
                self._ignored_presses += 1
                return True
            return False

        self._pressed_keys.add(key_code)

        if key_code in self._pause_keys:
            self._total_presses += 1
            self.pauseToggled.emit()
            return True

        direction = self._key_to_direction.get(key_code)
        if direction is None:
            return False

        self._total_presses += 1
        self.moveRequested.emit(direction)
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key release.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())

        if event.isAutoRepeat():
            return self._is_game_key(key_code)

        self._pressed_keys.discard(key_code)
        return self._is_game_key(key_code)

    def clear_pressed_keys(self) -> None:
        """
        Clear pressed state for all keys.

        Called by the harness on focus loss or window deactivation.
        """
        self._pressed_keys.clear()

    @property
    def key_to_direction_map(self) -> Dict[int, gameplay_models.Direction]:
        return dict(self._key_to_direction)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


def _run_unit_tests() -> None:
    router = InputRouter()

    assert router.key_to_direction_map[int(Qt.Key.Key_A.value)] == gameplay_models.Direction.LEFT
    assert router.key_to_direction_map[int(Qt.Key.Key_Left.value)] == gameplay_models.Direction.LEFT
    assert router.key_to_direction_map[int(Qt.Key.Key_D.value)] == gameplay_models.Direction.RIGHT
    assert int(Qt.Key.Key_Up.value) not in router.key_to_direction_map


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
