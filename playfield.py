# -*- coding: utf-8 -*-
########################
# playfield.py
########################
# Purpose:
# - Playfield geometry helpers for the gameplay core.
# - Derives ground height, gap size and gap range from the current playfield size.
#
# Design notes:
# - No Qt usage. The host owns the real size and exposes it through GeometryProvider.
# - Derived values scale with height relative to a base height, clamped to fixed bounds.
#
########################
# Interfaces:
# Public dataclasses:
# - PlayfieldScaling(base_height, ground_height, min_ground_height, max_ground_height,
#                    gap_size, min_gap_size, max_gap_size, min_gap_y_floor, min_gap_y_ratio,
#                    max_gap_y_ratio, gap_bottom_margin)
# - StaticPlayfield(width: float, height: float)
#
# Public classes:
# - class GeometryProvider(Protocol)
#   - playfield_size() -> tuple[float, float]
#
# Public functions:
# - compute_metrics(width: float, height: float, scaling: PlayfieldScaling) -> PlayfieldMetrics
#
# Inputs:
# - Playfield width and height in pixels.
#
# Outputs:
# - PlayfieldMetrics consumed by SessionController.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple, runtime_checkable

import gameplay_models


@runtime_checkable
class GeometryProvider(Protocol):
    def playfield_size(self) -> Tuple[float, float]:
        ...


@dataclass(frozen=True)
class StaticPlayfield:
    width: float = 400.0
    height: float = 600.0

    def playfield_size(self) -> Tuple[float, float]:
        return (float(self.width), float(self.height))


@dataclass(frozen=True)
class PlayfieldScaling:
    base_height: float = 600.0
    ground_height: float = 100.0
    min_ground_height: float = 80.0
    max_ground_height: float = 120.0
    gap_size: float = 150.0
    min_gap_size: float = 120.0
    max_gap_size: float = 200.0
    min_gap_y_floor: float = 100.0
    min_gap_y_ratio: float = 0.2
    max_gap_y_ratio: float = 0.7
    gap_bottom_margin: float = 50.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(float(low), min(float(value), float(high)))


def compute_metrics(width: float, height: float, scaling: PlayfieldScaling) -> gameplay_models.PlayfieldMetrics:
    width_value = float(width)
    height_value = float(height)
    if width_value <= 0.0 or height_value <= 0.0:
        raise ValueError(f"Playfield size must be positive, got {width_value!r} x {height_value!r}")

    scale = height_value / float(scaling.base_height)

    ground_height = _clamp(scaling.ground_height * scale, scaling.min_ground_height, scaling.max_ground_height)
    gap_size = _clamp(scaling.gap_size * scale, scaling.min_gap_size, scaling.max_gap_size)
    min_gap_y = max(float(scaling.min_gap_y_floor), height_value * float(scaling.min_gap_y_ratio))
    max_gap_y = min(
        height_value - ground_height - gap_size - float(scaling.gap_bottom_margin),
        height_value * float(scaling.max_gap_y_ratio),
    )

    return gameplay_models.PlayfieldMetrics(
        width=width_value,
        height=height_value,
        ground_height=float(ground_height),
        gap_size=float(gap_size),
        min_gap_y=float(min_gap_y),
        max_gap_y=float(max_gap_y),
    )


def _run_unit_tests() -> None:
    scaling = PlayfieldScaling()

    metrics = compute_metrics(400.0, 600.0, scaling)
    assert metrics.ground_height == 100.0
    assert metrics.gap_size == 150.0
    assert metrics.min_gap_y == 120.0
    assert metrics.max_gap_y == 300.0
    assert metrics.ground_line == 500.0

    tall = compute_metrics(400.0, 1200.0, scaling)
    assert tall.ground_height == 120.0
    assert tall.gap_size == 200.0
    assert tall.min_gap_y == 240.0
    assert tall.max_gap_y == 830.0

    assert StaticPlayfield(320.0, 480.0).playfield_size() == (320.0, 480.0)
    assert isinstance(StaticPlayfield(), GeometryProvider)

    try:
        compute_metrics(0.0, 600.0, scaling)
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for empty playfield")


if __name__ == "__main__":
    _run_unit_tests()
    print("playfield.py: ok")
