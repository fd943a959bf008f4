# -*- coding: utf-8 -*-
########################
# gameplay_harness.py
########################
# Purpose:
# - Gameplay harness window for local play and iteration.
# - Integrates QtTaskScheduler + ToneSynthesizer + MusicSequencer + GameLoopDriver + InputRouter +
#   ParticleSystem behind a minimal text board.
#
# Design notes:
# - The board is a plain monospace text view. Art, layout and menu screens are not this module's job.
# - GameLoopDriver is the single owner of run state. The controller only relays intents in and
#   snapshots out (as Qt signals).
# - Particles are simulated here, on the presentation side, from snapshot spawn requests.
# - A missing audio device is not fatal: the controller falls back to NullAudioOutput.
#
########################
# Interfaces:
# Public dataclasses:
# - HarnessState(difficulty: str, last_error: str, last_final_score: Optional[int], runs_finished: int)
#
# Public functions:
# - render_board_text(snapshot: GameSnapshot, *, lanes: int, player_row: float, rows: int = 12) -> str
# - main() -> int
#
# Public classes:
# - class GameplayHarnessController(PyQt6.QtCore.QObject)
#   - Signals: snapshotUpdated(GameSnapshot), gameOver(GameOverEvent)
#   - Owns the gameplay pipeline and exposes the handlers used by the harness window.
# - class GameplayHarnessWindow(PyQt6.QtWidgets.QMainWindow)
#
# Inputs:
# - Keyboard input (InputRouter handles QKeyEvent) and harness buttons.
#
# Outputs:
# - Board text, status text, audio.
#
########################

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, runtime_checkable

import gameplay_models

logger = logging.getLogger(__name__)


@dataclass
class HarnessState:
    difficulty: str = "easy"
    last_error: str = ""
    last_final_score: Optional[int] = None
    runs_finished: int = 0


def render_board_text(
    snapshot: gameplay_models.GameSnapshot,
    *,
    lanes: int,
    player_row: float,
    rows: int = 12,
) -> str:
    """Render the track as rows of lane cells, top of track first."""
    row_height = 100.0 / float(rows)
    grid: List[List[str]] = [["." for _ in range(int(lanes))] for _ in range(int(rows))]

    def row_for(position: float) -> Optional[int]:
        if position < 0.0 or position >= 100.0:
            return None
        return min(int(rows) - 1, int(position // row_height))

    for entity in snapshot.entities:
        row = row_for(float(entity.position))
        if row is None:
            continue
        grid[row][int(entity.lane)] = "C" if entity.kind == gameplay_models.EntityKind.COLLECTIBLE else "X"

    player_grid_row = row_for(float(player_row))
    if player_grid_row is not None:
        grid[player_grid_row][int(snapshot.lane)] = "r" if snapshot.is_stunned else "R"

    hearts = "*" * int(snapshot.lives) + "-" * max(0, int(snapshot.max_lives) - int(snapshot.lives))
    header = f"score {snapshot.score:<4d} lives [{hearts}] speed {snapshot.scroll_speed:.2f}"
    lines = [header] + ["|" + " ".join(row) + "|" for row in grid]
    return "\n".join(lines)


@runtime_checkable
class HarnessUiProtocol(Protocol):
    """UI contract used by GameplayHarnessController.

    Attribute based, so callers can pass any object whose attributes point at existing widgets.

    Required attributes for wiring:
    - difficulty_combo: QComboBox-like (currentText() -> str, addItems(list), setCurrentText(str))
    - start_button, pause_button, resume_button, exit_button, mute_button: QPushButton-like objects
      exposing .clicked signal.
    - status_label, board_label: QLabel-like objects with setText(str) -> None
    """

    difficulty_combo: Any
    start_button: Any
    pause_button: Any
    resume_button: Any
    exit_button: Any
    mute_button: Any
    status_label: Any
    board_label: Any


class GameplayHarnessController:  # QObject subclass, defined lazily inside Qt import block
    pass


def _create_controller_class():
    from PyQt6.QtCore import QEvent, QObject, pyqtSignal
    from PyQt6.QtGui import QKeyEvent

    import audio_output
    import config
    import game_loop
    import input_router
    import music_sequencer
    import particles
    import qt_scheduler
    import tone_synth

    def _open_audio_output(sample_rate: int, state: HarnessState):
        try:
            return audio_output.PygameAudioOutput(sample_rate=sample_rate)
        except audio_output.AudioDeviceError as exc:
            state.last_error = str(exc)
            logger.warning("%s; continuing without sound", exc)
            return audio_output.NullAudioOutput()

    class _GameplayHarnessController(QObject):
        snapshotUpdated = pyqtSignal(object)
        gameOver = pyqtSignal(object)

        def __init__(
            self,
            *,
            app_config: config.AppConfig,
            output: Optional[tone_synth.AudioOutput] = None,
            ui: Optional[HarnessUiProtocol] = None,
            parent: Optional[QObject] = None,
        ) -> None:
            super().__init__(parent)
            self._config = app_config
            self._state = HarnessState(difficulty=app_config.default_difficulty)
            self._ui: Optional[HarnessUiProtocol] = None

            audio_settings = app_config.audio
            self._output = output if output is not None else _open_audio_output(audio_settings.sample_rate, self._state)
            self._scheduler = qt_scheduler.QtTaskScheduler(
                frame_interval_ms=app_config.game.frame_interval_ms,
                parent=self,
            )
            self._synthesizer = tone_synth.ToneSynthesizer(
                self._output,
                sample_rate=audio_settings.sample_rate,
                master_volume=audio_settings.master_volume,
                muted=audio_settings.muted,
            )
            self._sequencer = music_sequencer.MusicSequencer(
                self._scheduler,
                self._synthesizer,
                tempos_bpm={
                    gameplay_models.MusicContext.MENU: audio_settings.menu_bpm,
                    gameplay_models.MusicContext.PLAYING: audio_settings.playing_bpm,
                },
            )
            self._driver = game_loop.GameLoopDriver(
                scheduler=self._scheduler,
                synthesizer=self._synthesizer,
                sequencer=self._sequencer,
                rules=app_config.game,
            )
            self._driver.add_snapshot_listener(self._on_snapshot)
            self._driver.add_game_over_listener(self._on_game_over)

            self._particles = particles.ParticleSystem()
            self._last_tick = -1

            self._router = input_router.InputRouter(parent=self)
            self._router.moveRequested.connect(self._driver.request_move)
            self._router.pauseToggled.connect(self._driver.toggle_pause)

            if ui is not None:
                self.attach_ui(ui)

            self._driver.enter_menu()

        def attach_ui(self, ui: HarnessUiProtocol) -> None:
            self._ui = ui

            self._ui.start_button.clicked.connect(self._on_start_clicked)
            self._ui.pause_button.clicked.connect(self._driver.pause)
            self._ui.resume_button.clicked.connect(self._driver.resume)
            self._ui.exit_button.clicked.connect(self._driver.exit_run)
            self._ui.mute_button.clicked.connect(self._on_mute_clicked)

            self._sync_ui_from_snapshot(self._driver.snapshot())

        def shutdown(self) -> None:
            self._driver.exit_run()
            self._sequencer.stop()
            self._scheduler.cancel_all()
            close = getattr(self._output, "close", None)
            if close is not None:
                close()

        # -----------------
        # Event filter (shared)
        # -----------------

        def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
            if event.type() == QEvent.Type.KeyPress and isinstance(event, QKeyEvent):
                if self._router.handle_key_press(event):
                    return True
            if event.type() == QEvent.Type.KeyRelease and isinstance(event, QKeyEvent):
                if self._router.handle_key_release(event):
                    return True
            if event.type() in (QEvent.Type.WindowDeactivate, QEvent.Type.FocusOut):
                self._router.clear_pressed_keys()
            return super().eventFilter(watched, event)

        # -----------------
        # Core operations
        # -----------------

        def start_run(self, difficulty: Optional[str] = None) -> None:
            name = (difficulty or self._state.difficulty or self._config.default_difficulty).strip().lower()
            profile = self._config.difficulty(name)
            self._state.difficulty = profile.name
            self._particles.clear()
            self._last_tick = -1
            self._driver.start_run(profile)

        # -----------------
        # Handlers
        # -----------------

        def _on_start_clicked(self) -> None:
            difficulty_text = self._state.difficulty
            if self._ui is not None:
                difficulty_text = str(self._ui.difficulty_combo.currentText())
            self.start_run(difficulty_text)

        def _on_mute_clicked(self) -> None:
            muted = self._driver.toggle_mute()
            if self._ui is not None:
                self._ui.mute_button.setText("Unmute" if muted else "Mute")

        def _on_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
            if snapshot.tick != self._last_tick:
                self._last_tick = snapshot.tick
                self._particles.step()
            self._particles.spawn_all(snapshot.particle_spawns)
            self._sync_ui_from_snapshot(snapshot)
            self.snapshotUpdated.emit(snapshot)

        def _on_game_over(self, event: gameplay_models.GameOverEvent) -> None:
            self._state.last_final_score = int(event.final_score)
            self._state.runs_finished += 1
            self.gameOver.emit(event)

        def _status_text(self, snapshot: gameplay_models.GameSnapshot) -> str:
            phase = snapshot.phase
            if phase == gameplay_models.RunPhase.IDLE:
                text = "Menu: pick a difficulty and press Start"
            elif phase == gameplay_models.RunPhase.PAUSED:
                text = "Paused (P or Esc to resume)"
            elif phase == gameplay_models.RunPhase.GAME_OVER and snapshot.game_over is not None:
                text = f"Good job! Final score {snapshot.game_over.final_score}"
            else:
                text = f"Playing {snapshot.difficulty}"
            if self._state.last_error:
                text += f"  (audio: {self._state.last_error})"
            return text

        def _sync_ui_from_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
            if self._ui is None:
                return
            self._ui.status_label.setText(self._status_text(snapshot))
            self._ui.board_label.setText(
                render_board_text(
                    snapshot,
                    lanes=int(self._config.game.lanes),
                    player_row=float(self._config.game.player_row),
                )
            )

    return _GameplayHarnessController


class GameplayHarnessWindow:
    pass


def _create_window_class():
    from PyQt6.QtGui import QFont
    from PyQt6.QtWidgets import (
        QComboBox,
        QHBoxLayout,
        QLabel,
        QMainWindow,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )

    import config

    class _DefaultHarnessUi:
        def __init__(self, *, difficulty_names: List[str], initial_difficulty: str, parent: QWidget) -> None:
            self.root_widget = QWidget(parent)
            self.root_layout = QVBoxLayout(self.root_widget)

            self.controls = QWidget(self.root_widget)
            self.controls_layout = QHBoxLayout(self.controls)

            self.difficulty_combo = QComboBox(self.controls)
            self.difficulty_combo.addItems(list(difficulty_names))
            self.difficulty_combo.setCurrentText(initial_difficulty)

            self.start_button = QPushButton("Start", self.controls)
            self.pause_button = QPushButton("Pause", self.controls)
            self.resume_button = QPushButton("Resume", self.controls)
            self.exit_button = QPushButton("Exit", self.controls)
            self.mute_button = QPushButton("Mute", self.controls)

            self.controls_layout.addWidget(QLabel("Difficulty:", self.controls))
            self.controls_layout.addWidget(self.difficulty_combo)
            for button in (self.start_button, self.pause_button, self.resume_button, self.exit_button, self.mute_button):
                self.controls_layout.addWidget(button)

            self.status_label = QLabel("", self.root_widget)
            self.board_label = QLabel("", self.root_widget)
            board_font = QFont("Monospace")
            board_font.setStyleHint(QFont.StyleHint.TypeWriter)
            board_font.setPointSize(16)
            self.board_label.setFont(board_font)

            self.root_layout.addWidget(self.controls)
            self.root_layout.addWidget(self.board_label, stretch=1)
            self.root_layout.addWidget(self.status_label)

    class _GameplayHarnessWindow(QMainWindow):
        def __init__(self, *, app_config: Optional[config.AppConfig] = None, ui: Optional[HarnessUiProtocol] = None) -> None:
            super().__init__()
            self.setWindowTitle("Little Bunny Hop")

            resolved_config = app_config if app_config is not None else config.AppConfig()
            self._controller = GameplayHarnessController(app_config=resolved_config, parent=self)

            if ui is None:
                default_ui = _DefaultHarnessUi(
                    difficulty_names=resolved_config.difficulty_names(),
                    initial_difficulty=resolved_config.default_difficulty,
                    parent=self,
                )
                self.setCentralWidget(default_ui.root_widget)
                self._controller.attach_ui(default_ui)  # type: ignore[arg-type]
            else:
                self._controller.attach_ui(ui)

            # Buttons would otherwise swallow the arrow keys.
            self.installEventFilter(self._controller)
            for child in self.findChildren(QWidget):
                child.installEventFilter(self._controller)

        def closeEvent(self, event) -> None:  # noqa: N802
            self._controller.shutdown()
            super().closeEvent(event)

    return _GameplayHarnessWindow


def load_qt_classes() -> None:
    global GameplayHarnessController, GameplayHarnessWindow
    GameplayHarnessController = _create_controller_class()
    GameplayHarnessWindow = _create_window_class()


def _run_chunk_tests() -> None:
    import config
    import game_loop
    import music_sequencer
    import task_scheduler
    import tone_synth

    class _Recorder:
        def __init__(self) -> None:
            self.count = 0

        def play(self, samples, sample_rate: int) -> None:
            self.count += 1

    class _Scripted:
        def __init__(self, values: List[float]) -> None:
            self._values = list(values)

        def random(self) -> float:
            return self._values.pop(0) if self._values else 0.0

    rules = config.GameRules()
    scheduler = task_scheduler.ManualTaskScheduler()
    synthesizer = tone_synth.ToneSynthesizer(_Recorder(), sample_rate=8000)
    sequencer = music_sequencer.MusicSequencer(scheduler, synthesizer)
    # Every spawn is a collectible in lane 1.
    driver = game_loop.GameLoopDriver(
        scheduler=scheduler,
        synthesizer=synthesizer,
        sequencer=sequencer,
        rules=rules,
        rng=_Scripted([0.0, 0.5] * 50),
    )

    snapshots: List[gameplay_models.GameSnapshot] = []
    driver.add_snapshot_listener(snapshots.append)

    profile = config.AppConfig().difficulty("easy")
    driver.start_run(profile)
    assert driver.phase() == gameplay_models.RunPhase.RUNNING

    scheduler.run_frames(400)
    assert driver.run_state().score >= 1
    assert all(0 <= snap.lane < rules.lanes for snap in snapshots)

    driver.pause()
    paused_tick = driver.run_state().tick
    scheduler.run_frames(10)
    assert driver.run_state().tick == paused_tick
    driver.resume()
    scheduler.run_frames(1)
    assert driver.run_state().tick == paused_tick + 1

    board = render_board_text(driver.snapshot(), lanes=rules.lanes, player_row=rules.player_row)
    assert "R" in board

    driver.exit_run()
    assert driver.phase() == gameplay_models.RunPhase.IDLE
    assert driver.run_state().score == 0
    assert sequencer.context() == gameplay_models.MusicContext.MENU


def run_gui(app_config=None) -> int:
    import sys

    from PyQt6.QtWidgets import QApplication

    load_qt_classes()
    app = QApplication(sys.argv)
    window = GameplayHarnessWindow(app_config=app_config)
    window.resize(520, 640)
    window.show()
    return int(app.exec())


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--run-tests",
        action="store_true",
        help="Run pure logic tests (no Qt).",
    )
    return parser


def main() -> int:
    args = build_argument_parser().parse_args()
    if args.run_tests:
        _run_chunk_tests()
        print("Chunk tests passed.")
        return 0
    return run_gui()


if __name__ == "__main__":
    raise SystemExit(main())
