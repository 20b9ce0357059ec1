# -*- coding: utf-8 -*-
########################
# obstacle.py
########################
# Purpose:
# - One paired top/bottom barrier moving left at constant speed.
# - Exposes its collidable regions, a one-way scored flag and an off-screen test.
#
# Design notes:
# - No Qt usage. Pure data and motion.
# - x is the horizontal center shared by both halves.
# - Gap center and gap size are fixed at creation.
# - Each obstacle carries obstacle_gravity on top of world gravity. The sum must be exactly zero,
#   so the track is horizontal only; a tuning that does not cancel raises ValueError.
#
########################
# Interfaces:
# Public classes:
# - class Obstacle
#   - __init__(x: float, gap_center_y: float, gap_size: float = DEFAULT_GAP_SIZE, *, tuning: GameplayTuning)
#   - x, gap_center_y, gap_size, width, speed, vertical_acceleration (read-only properties)
#   - advance(dt_ms: float) -> None
#   - freeze() -> None
#   - is_off_screen() -> bool
#   - has_scored() -> bool
#   - mark_scored() -> None
#   - top_body(ceiling: float = 0.0) -> Body
#   - bottom_body(ground_line: float) -> Body
#   - snapshot(ground_line: float) -> ObstacleSnapshot
#
# Preconditions:
# - gap_size > 0 and smaller than the usable playfield height (checked by SessionController).
#
########################

from __future__ import annotations

from typing import Optional

import gameplay_models


DEFAULT_GAP_SIZE = 150.0


class Obstacle:
    def __init__(
        self,
        x: float,
        gap_center_y: float,
        gap_size: float = DEFAULT_GAP_SIZE,
        *,
        tuning: Optional[gameplay_models.GameplayTuning] = None,
    ) -> None:
        resolved_tuning = tuning or gameplay_models.GameplayTuning()
        self._x = float(x)
        self._gap_center_y = float(gap_center_y)
        self._gap_size = float(gap_size)
        self._width = float(resolved_tuning.obstacle_width)
        self._speed = float(resolved_tuning.obstacle_speed)
        self._vertical_acceleration = float(resolved_tuning.gravity) + float(resolved_tuning.obstacle_gravity)
        if self._vertical_acceleration != 0.0:
            raise ValueError(
                "obstacle_gravity must cancel gravity, net vertical acceleration is "
                f"{self._vertical_acceleration!r}"
            )
        self._scored = False

    @property
    def x(self) -> float:
        return self._x

    @property
    def gap_center_y(self) -> float:
        return self._gap_center_y

    @property
    def gap_size(self) -> float:
        return self._gap_size

    @property
    def width(self) -> float:
        return self._width

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def vertical_acceleration(self) -> float:
        return self._vertical_acceleration

    def advance(self, dt_ms: float) -> None:
        dt_value = float(dt_ms)
        if dt_value < 0.0:
            raise ValueError(f"dt_ms must be non-negative, got {dt_value!r}")
        self._x += self._speed * (dt_value / 1000.0)

    def freeze(self) -> None:
        self._speed = 0.0

    def is_off_screen(self) -> bool:
        return self._x + self._width / 2.0 < 0.0

    def has_scored(self) -> bool:
        return self._scored

    def mark_scored(self) -> None:
        self._scored = True

    def gap_top(self) -> float:
        return self._gap_center_y - self._gap_size / 2.0

    def gap_bottom(self) -> float:
        return self._gap_center_y + self._gap_size / 2.0

    def top_body(self, ceiling: float = 0.0) -> gameplay_models.Body:
        half_width = self._width / 2.0
        return gameplay_models.Body(
            left=self._x - half_width,
            top=float(ceiling),
            right=self._x + half_width,
            bottom=self.gap_top(),
        )

    def bottom_body(self, ground_line: float) -> gameplay_models.Body:
        half_width = self._width / 2.0
        return gameplay_models.Body(
            left=self._x - half_width,
            top=self.gap_bottom(),
            right=self._x + half_width,
            bottom=float(ground_line),
        )

    def snapshot(self, ground_line: float) -> gameplay_models.ObstacleSnapshot:
        return gameplay_models.ObstacleSnapshot(
            x=self._x,
            gap_center_y=self._gap_center_y,
            gap_size=self._gap_size,
            scored=self._scored,
            top_body=self.top_body(),
            bottom_body=self.bottom_body(ground_line),
        )


def _run_unit_tests() -> None:
    tuning = gameplay_models.GameplayTuning()

    obstacle = Obstacle(450.0, 300.0, tuning=tuning)
    assert obstacle.gap_size == DEFAULT_GAP_SIZE
    assert obstacle.vertical_acceleration == 0.0
    obstacle_y = obstacle.gap_center_y
    obstacle.advance(500.0)
    assert abs(obstacle.x - 350.0) < 1e-9
    assert obstacle.gap_center_y == obstacle_y

    obstacle.freeze()
    obstacle.advance(500.0)
    assert abs(obstacle.x - 350.0) < 1e-9

    # Gravity that is not cancelled is rejected.
    try:
        Obstacle(450.0, 300.0, tuning=gameplay_models.GameplayTuning(obstacle_gravity=-900.0))
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for uncancelled obstacle gravity")
    weightless = gameplay_models.GameplayTuning(gravity=0.0, obstacle_gravity=0.0)
    assert Obstacle(0.0, 300.0, tuning=weightless).vertical_acceleration == 0.0

    # Off-screen uses the right edge.
    assert Obstacle(-90.0, 300.0, tuning=tuning).is_off_screen()
    assert not Obstacle(-30.0, 300.0, tuning=tuning).is_off_screen()

    # Regions around the gap.
    regions = Obstacle(200.0, 300.0, 150.0, tuning=tuning)
    top = regions.top_body()
    bottom = regions.bottom_body(500.0)
    assert (top.top, top.bottom) == (0.0, 225.0)
    assert (bottom.top, bottom.bottom) == (375.0, 500.0)
    assert (top.left, top.right) == (160.0, 240.0)

    inside = gameplay_models.Body.from_center(200.0, 300.0, 12.0, 12.0)
    assert not gameplay_models.bodies_overlap(inside, top)
    assert not gameplay_models.bodies_overlap(inside, bottom)

    regions.mark_scored()
    regions.mark_scored()
    assert regions.has_scored()
    assert regions.snapshot(500.0).scored


if __name__ == "__main__":
    _run_unit_tests()
    print("obstacle.py: ok")
