# -*- coding: utf-8 -*-
########################
# player_state.py
########################
# Purpose:
# - Player lane position and stun state machine.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - States: Normal (stun_ticks_remaining == 0) and Stunned (stun_ticks_remaining > 0).
#   is_stunned is derived from the counter so the two can never disagree.
# - attempt_move is the only lane mutator. Blocked moves and moves into the edge are no-ops.
#
########################
# Interfaces:
# Public classes:
# - class PlayerState
#   - __init__(rules: config.GameRules)
#   - lane() -> int
#   - is_stunned() -> bool
#   - stun_ticks_remaining() -> int
#   - is_jumping() -> bool
#   - reset() -> None
#   - attempt_move(direction: Direction, *, is_paused: bool = False) -> bool
#   - stun() -> None
#   - tick() -> None
#
# Inputs:
# - Direction intents from GameLoopDriver, hazard hits from CollisionEngine.
#
# Outputs:
# - True from attempt_move when the lane changed (the "moved" side effect).
#
########################

from __future__ import annotations

from typing import Optional

import config
import gameplay_models


class PlayerState:
    def __init__(self, rules: Optional[config.GameRules] = None) -> None:
        self._rules = rules if rules is not None else config.GameRules()
        self._lane = int(self._rules.start_lane)
        self._stun_ticks_remaining = 0
        self._jump_ticks_remaining = 0

    def lane(self) -> int:
        return int(self._lane)

    def is_stunned(self) -> bool:
        return self._stun_ticks_remaining > 0

    def stun_ticks_remaining(self) -> int:
        return int(self._stun_ticks_remaining)

    def is_jumping(self) -> bool:
        return self._jump_ticks_remaining > 0

    def reset(self) -> None:
        self._lane = int(self._rules.start_lane)
        self._stun_ticks_remaining = 0
        self._jump_ticks_remaining = 0

    def attempt_move(self, direction: gameplay_models.Direction, *, is_paused: bool = False) -> bool:
        step = gameplay_models.Direction(direction).step
        if self.is_stunned() or is_paused:
            return False

        last_lane = int(self._rules.lanes) - 1
        new_lane = min(last_lane, max(0, self._lane + step))
        if new_lane == self._lane:
            return False

        self._lane = new_lane
        self._jump_ticks_remaining = int(self._rules.jump_cue_ticks)
        return True

    def stun(self) -> None:
        self._stun_ticks_remaining = int(self._rules.stun_ticks)
        self._jump_ticks_remaining = 0

    def tick(self) -> None:
        if self._stun_ticks_remaining > 0:
            self._stun_ticks_remaining -= 1
        if self._jump_ticks_remaining > 0:
            self._jump_ticks_remaining -= 1


def _run_unit_tests() -> None:
    player = PlayerState()
    assert player.lane() == 1
    assert player.attempt_move(gameplay_models.Direction.LEFT)
    assert not player.attempt_move(gameplay_models.Direction.LEFT)
    assert player.lane() == 0

    player.stun()
    assert player.is_stunned()
    assert not player.attempt_move(gameplay_models.Direction.RIGHT)
    for _ in range(60):
        player.tick()
    assert not player.is_stunned()
    assert not player.attempt_move(gameplay_models.Direction.RIGHT, is_paused=True)
    assert player.attempt_move(gameplay_models.Direction.RIGHT)


if __name__ == "__main__":
    _run_unit_tests()
    print("player_state.py: ok")
