# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard and mouse listener for the activate action.
# - Translates Qt key and button presses into ActivationGate requests and emits a Qt signal.
#
# Design notes:
# - This must be the only activate input source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses while held.
# - The gate coalesces presses between frames; the router never touches the session directly.
# - Only QtCore is imported at module level so the router can be exercised without a display.
#
########################
# Interfaces:
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - activateRequested()
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - handle_mouse_press(event: QMouseEvent) -> bool
#     - clear_pressed_keys() -> None
#     - reset_stats() -> None
#
# Inputs:
# - Raw QKeyEvent / QMouseEvent from the Qt event loop.
#
# Outputs:
# - ActivationGate.request() calls consumed by SessionController.frame.
#
########################

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal

import activation_gate

if TYPE_CHECKING:
    from PyQt6.QtGui import QKeyEvent, QMouseEvent


def _build_default_activate_keys() -> Set[int]:
    """
    Default activate keys.

    Accepted keys:
      - Space
      - Up arrow
      - W
    """
    return {
        int(Qt.Key.Key_Space.value),
        int(Qt.Key.Key_Up.value),
        int(Qt.Key.Key_W.value),
    }


class InputRouter(QObject):
    """
    Central input router for the activate action.

    This object never interprets game phase. Its only job is to:
      - recognise activate keys and the left mouse button
      - debounce auto repeat and held keys
      - forward one gate request per real press
    """

    activateRequested = pyqtSignal()

    def __init__(
        self,
        gate: activation_gate.ActivationGate,
        parent: Optional[QObject] = None,
        activate_keys: Optional[Iterable[int]] = None,
    ) -> None:
        super().__init__(parent)

        self._gate = gate
        self._activate_keys: Set[int] = (
            {int(key) for key in activate_keys} if activate_keys is not None else _build_default_activate_keys()
        )

        # Press tracking for debounce and focus loss handling.
        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API used by gameplay_harness
    # ------------------------------------------------------------------

    def handle_key_press(self, event: "QKeyEvent") -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())
        if key_code not in self._activate_keys:
            return False

        if event.isAutoRepeat() or key_code in self._pressed_keys:
            self._ignored_presses += 1
            return True

        self._pressed_keys.add(key_code)
        self._forward_press()
        return True

    def handle_key_release(self, event: "QKeyEvent") -> bool:
        key_code = int(event.key())
        if key_code not in self._activate_keys:
            return False
        if not event.isAutoRepeat():
            self._pressed_keys.discard(key_code)
        return True

    def handle_mouse_press(self, event: "QMouseEvent") -> bool:
        if event.button() != Qt.MouseButton.LeftButton:
            return False
        self._forward_press()
        return True

    def clear_pressed_keys(self) -> None:
        """
        Clear pressed state for all keys.

        Called by the harness on focus loss or window deactivation.
        """
        self._pressed_keys.clear()

    def reset_stats(self) -> None:
        self._total_presses = 0
        self._ignored_presses = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _forward_press(self) -> None:
        self._total_presses += 1
        self._gate.request()
        self.activateRequested.emit()

    @property
    def activate_keys(self) -> Set[int]:
        return set(self._activate_keys)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


class _FakeKeyEvent:
    def __init__(self, key_code: int, auto_repeat: bool = False) -> None:
        self._key_code = key_code
        self._auto_repeat = auto_repeat

    def key(self) -> int:
        return self._key_code

    def isAutoRepeat(self) -> bool:  # noqa: N802
        return self._auto_repeat


class _FakeMouseEvent:
    def __init__(self, button: Qt.MouseButton) -> None:
        self._button = button

    def button(self) -> Qt.MouseButton:
        return self._button


def _run_unit_tests() -> None:
    gate = activation_gate.ActivationGate()
    router = InputRouter(gate)

    space = int(Qt.Key.Key_Space.value)
    letter_q = int(Qt.Key.Key_Q.value)

    assert router.handle_key_press(_FakeKeyEvent(space))
    assert router.handle_key_press(_FakeKeyEvent(space, auto_repeat=True))
    assert router.handle_key_press(_FakeKeyEvent(space))
    assert router.total_presses == 1
    assert router.ignored_presses == 2
    assert gate.consume()

    assert router.handle_key_release(_FakeKeyEvent(space))
    assert router.handle_key_press(_FakeKeyEvent(space))
    assert router.total_presses == 2

    assert not router.handle_key_press(_FakeKeyEvent(letter_q))
    assert router.handle_mouse_press(_FakeMouseEvent(Qt.MouseButton.LeftButton))
    assert not router.handle_mouse_press(_FakeMouseEvent(Qt.MouseButton.RightButton))
    assert gate.total_requests == 3
    assert gate.consume()
    assert not gate.consume()


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
