# -*- coding: utf-8 -*-
########################
# frame_clock.py
########################
# Purpose:
# - Converts host timestamps into per-frame deltas for the session pipeline.
# - Single source of frame time for the harness frame driver.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic.
# - Deltas are clamped to non-negative; a timestamp going backwards yields 0.
# - Deltas are capped at max_frame_ms so a stalled host (window drag, breakpoint)
#   does not tunnel the character through the ground in one step.
#
########################
# Interfaces:
# Public dataclasses:
# - FrameSnapshot(last_timestamp_ms: Optional[float], last_delta_ms: float, frame_count: int)
#
# Public classes:
# - class FrameClock
#   - __init__(max_frame_ms: float = 100.0)
#   - update(timestamp_ms: float) -> float
#   - reset() -> None
#   - last_delta_ms() -> float
#   - frame_count() -> int
#   - snapshot() -> FrameSnapshot
#
# Inputs:
# - Monotonic host timestamps in milliseconds (QElapsedTimer in the harness).
#
# Outputs:
# - dt_ms passed to SessionController.frame.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FrameSnapshot:
    last_timestamp_ms: Optional[float]
    last_delta_ms: float
    frame_count: int


class FrameClock:
    def __init__(self, max_frame_ms: float = 100.0) -> None:
        if float(max_frame_ms) <= 0.0:
            raise ValueError(f"max_frame_ms must be positive, got {max_frame_ms!r}")
        self._max_frame_ms = float(max_frame_ms)
        self._last_timestamp_ms: Optional[float] = None
        self._last_delta_ms = 0.0
        self._frame_count = 0

    def update(self, timestamp_ms: float) -> float:
        value = float(timestamp_ms)
        if self._last_timestamp_ms is None:
            delta = 0.0
        else:
            delta = value - self._last_timestamp_ms
            if delta < 0.0:
                delta = 0.0
            if delta > self._max_frame_ms:
                delta = self._max_frame_ms
        self._last_timestamp_ms = value
        self._last_delta_ms = delta
        self._frame_count += 1
        return delta

    def reset(self) -> None:
        self._last_timestamp_ms = None
        self._last_delta_ms = 0.0
        self._frame_count = 0

    def last_delta_ms(self) -> float:
        return float(self._last_delta_ms)

    def frame_count(self) -> int:
        return int(self._frame_count)

    def snapshot(self) -> FrameSnapshot:
        return FrameSnapshot(
            last_timestamp_ms=self._last_timestamp_ms,
            last_delta_ms=self.last_delta_ms(),
            frame_count=self.frame_count(),
        )


def _run_unit_tests() -> None:
    clock = FrameClock(max_frame_ms=50.0)
    assert clock.update(1000.0) == 0.0
    assert abs(clock.update(1016.0) - 16.0) < 1e-9
    assert clock.update(1010.0) == 0.0
    assert clock.update(2000.0) == 50.0
    assert clock.frame_count() == 4

    snap = clock.snapshot()
    assert snap.last_timestamp_ms == 2000.0
    assert snap.last_delta_ms == 50.0

    clock.reset()
    assert clock.snapshot().last_timestamp_ms is None
    assert clock.update(5.0) == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("frame_clock.py: ok")
