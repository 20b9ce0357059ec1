# -*- coding: utf-8 -*-
########################
# gameplay_harness.py
########################
# Purpose:
# - Gameplay harness window for local testing and iteration.
# - Acts as the external frame driver: QTimer + QElapsedTimer -> FrameClock -> SessionController.frame.
# - Integrates InputRouter + ActivationGate + SessionController + a debug playfield view.
#
# Design notes:
# - The view paints collision bodies as flat rectangles. It is a debugging aid, not game art.
# - The view is the GeometryProvider: the session reads the widget size every frame.
# - Qt classes are built lazily so `--run-tests` runs the pure logic tests without a display.
#
########################
# Interfaces:
# Public dataclasses:
# - HarnessState(seed: Optional[int], last_score: int, rounds_played: int, best_score: int, status_text: str)
#
# Public functions:
# - create_harness_window(*, app_config: Optional[AppConfig] = None, seed: Optional[int] = None) -> QMainWindow
# - run_all_unit_tests() -> None
# - main() -> int
#
# Inputs:
# - Keyboard and mouse activate input (InputRouter handles QKeyEvent / QMouseEvent).
# - Frame timer ticks.
#
# Outputs:
# - Visible debug playfield, score and phase text.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import argparse
import random
from typing import Any, Optional


@dataclass
class HarnessState:
    seed: Optional[int] = None
    last_score: int = 0
    rounds_played: int = 0
    best_score: int = 0
    status_text: str = "Press SPACE or click to start"


_READY_TEXT = "Press SPACE or click to start"
_ENDED_TEXT = "GAME OVER\n\nPress SPACE or click\nto restart"


def _create_window_class():
    from PyQt6.QtCore import QElapsedTimer, QEvent, QObject, QRectF, Qt, QTimer
    from PyQt6.QtGui import QColor, QFont, QPainter, QPen
    from PyQt6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

    import activation_gate
    import config as config_module
    import frame_clock
    import gameplay_models
    import input_router
    import session_controller
    from logger import get_logger

    logger = get_logger("harness")

    class _PlayfieldView(QWidget):
        def __init__(self, *, minimum_width: int, minimum_height: int, parent: Optional[QWidget] = None) -> None:
            super().__init__(parent)
            self.setMinimumSize(int(minimum_width), int(minimum_height))
            self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
            self._snapshot: Optional[gameplay_models.SessionSnapshot] = None
            self._score_font = QFont()
            self._score_font.setPointSize(28)
            self._score_font.setBold(True)
            self._message_font = QFont()
            self._message_font.setPointSize(14)

        def playfield_size(self) -> tuple[float, float]:
            return (float(self.width()), float(self.height()))

        def set_snapshot(self, snapshot: gameplay_models.SessionSnapshot) -> None:
            self._snapshot = snapshot
            self.update()

        def paintEvent(self, event) -> None:  # noqa: N802
            painter = QPainter(self)
            try:
                painter.fillRect(self.rect(), QColor(78, 192, 202))
                snapshot = self._snapshot
                if snapshot is None:
                    return

                ground_line = snapshot.metrics.ground_line
                painter.fillRect(
                    QRectF(0.0, ground_line, float(self.width()), snapshot.metrics.ground_height),
                    QColor(139, 115, 85),
                )

                painter.setPen(QPen(QColor(0, 0, 0), 2))
                for item in snapshot.obstacles:
                    color = QColor(90, 156, 60) if item.scored else QColor(113, 197, 78)
                    for body in (item.top_body, item.bottom_body):
                        painter.fillRect(self._rect_for(body), color)
                        painter.drawRect(self._rect_for(body))

                character = snapshot.character
                body_color = QColor(255, 215, 0) if character.alive else QColor(139, 0, 0)
                painter.fillRect(self._rect_for(character.body), body_color)
                painter.drawRect(self._rect_for(character.body))

                painter.setPen(QPen(QColor(255, 255, 255), 1))
                painter.setFont(self._score_font)
                painter.drawText(
                    QRectF(0.0, 20.0, float(self.width()), 60.0),
                    int(Qt.AlignmentFlag.AlignHCenter.value),
                    str(snapshot.score),
                )

                message = ""
                if snapshot.phase is gameplay_models.Phase.READY:
                    message = _READY_TEXT
                elif snapshot.phase is gameplay_models.Phase.ENDED:
                    message = _ENDED_TEXT
                if message:
                    painter.setFont(self._message_font)
                    painter.drawText(
                        QRectF(20.0, 0.0, float(self.width()) - 40.0, float(self.height())),
                        int(Qt.AlignmentFlag.AlignCenter.value),
                        message,
                    )
            finally:
                painter.end()

        @staticmethod
        def _rect_for(body: gameplay_models.Body) -> QRectF:
            return QRectF(body.left, body.top, body.width, body.height)

    class _HarnessListener:
        def __init__(self, window: "_GameplayHarnessWindow") -> None:
            self._window = window

        def on_score_changed(self, new_score: int) -> None:
            self._window.state.last_score = int(new_score)
            self._window.state.best_score = max(self._window.state.best_score, int(new_score))
            self._window.set_status(f"Score {new_score}")

        def on_ended(self) -> None:
            self._window.state.rounds_played += 1
            self._window.router.clear_pressed_keys()
            self._window.set_status(
                f"Ended with {self._window.state.last_score} (best {self._window.state.best_score})"
            )

        def on_reset(self) -> None:
            self._window.state.last_score = 0
            self._window.set_status(_READY_TEXT)

    class _GameplayHarnessWindow(QMainWindow):
        def __init__(self, *, app_config: config_module.AppConfig, seed: Optional[int]) -> None:
            super().__init__()
            self.setWindowTitle("flapgap harness")

            resolved_seed = seed if seed is not None else app_config.harness.seed
            if resolved_seed is None:
                resolved_seed = random.SystemRandom().randrange(0, 2**31)
            self._state = HarnessState(seed=int(resolved_seed))

            root = QWidget(self)
            layout = QVBoxLayout(root)
            self._view = _PlayfieldView(
                minimum_width=int(app_config.playfield.width),
                minimum_height=int(app_config.playfield.height),
                parent=root,
            )
            self._status_label = QLabel(_READY_TEXT, root)
            self._seed_label = QLabel(f"seed: {self._state.seed}", root)
            layout.addWidget(self._view, stretch=1)
            layout.addWidget(self._status_label)
            layout.addWidget(self._seed_label)
            self.setCentralWidget(root)

            self._gate = activation_gate.ActivationGate()
            self._router = input_router.InputRouter(self._gate, parent=self)
            self._clock = frame_clock.FrameClock(max_frame_ms=app_config.harness.max_frame_ms)

            self._session = session_controller.SessionController(
                tuning=config_module.to_tuning(app_config),
                scaling=config_module.to_scaling(app_config),
                geometry=self._view,
                seed=self._state.seed,
                gate=self._gate,
            )
            self._session.add_listener(_HarnessListener(self))
            self._view.set_snapshot(self._session.snapshot())

            self._elapsed = QElapsedTimer()
            self._elapsed.start()
            self._frame_timer = QTimer(self)
            self._frame_timer.setInterval(int(app_config.harness.frame_interval_ms))
            self._frame_timer.timeout.connect(self._on_frame)
            self._frame_timer.start()

            self.installEventFilter(self)
            self._view.installEventFilter(self)
            logger.info("Harness started with seed %d", self._state.seed)

        @property
        def state(self) -> HarnessState:
            return self._state

        @property
        def router(self) -> input_router.InputRouter:
            return self._router

        @property
        def session(self) -> session_controller.SessionController:
            return self._session

        def set_status(self, text: str) -> None:
            self._state.status_text = str(text)
            self._status_label.setText(self._state.status_text)

        def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
            event_type = event.type()
            if event_type == QEvent.Type.KeyPress:
                if self._router.handle_key_press(event):  # type: ignore[arg-type]
                    return True
            elif event_type == QEvent.Type.KeyRelease:
                if self._router.handle_key_release(event):  # type: ignore[arg-type]
                    return True
            elif event_type == QEvent.Type.MouseButtonPress and watched is self._view:
                if self._router.handle_mouse_press(event):  # type: ignore[arg-type]
                    return True
            elif event_type in (QEvent.Type.WindowDeactivate, QEvent.Type.FocusOut):
                self._router.clear_pressed_keys()
            return super().eventFilter(watched, event)

        def _on_frame(self) -> None:
            dt_ms = self._clock.update(float(self._elapsed.elapsed()))
            self._session.frame(dt_ms)
            self._session.clear_recent_events()
            self._view.set_snapshot(self._session.snapshot())

    return _GameplayHarnessWindow


def create_harness_window(*, app_config: Optional[Any] = None, seed: Optional[int] = None):
    import config as config_module

    resolved_config = app_config if app_config is not None else config_module.get_config()[0]
    window_class = _create_window_class()
    return window_class(app_config=resolved_config, seed=seed)


def run_all_unit_tests() -> None:
    import activation_gate
    import character
    import config
    import frame_clock
    import gameplay_models
    import input_router
    import logger
    import obstacle
    import playfield
    import replay
    import session_controller

    for module in (
        gameplay_models,
        playfield,
        character,
        obstacle,
        frame_clock,
        activation_gate,
        session_controller,
        replay,
        config,
        logger,
        input_router,
    ):
        module._run_unit_tests()


def _run_gui(seed: Optional[int]) -> int:
    from PyQt6.QtWidgets import QApplication
    import sys

    app = QApplication(sys.argv)
    window = create_harness_window(seed=seed)
    window.show()
    return int(app.exec())


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--run-tests",
        action="store_true",
        help="Run pure logic tests (no window).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for gap placement.")
    return parser


def main() -> int:
    args = build_argument_parser().parse_args()
    if args.run_tests:
        run_all_unit_tests()
        print("flapgap self tests passed.")
        return 0
    return _run_gui(args.seed)


if __name__ == "__main__":
    raise SystemExit(main())
