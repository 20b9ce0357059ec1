# -*- coding: utf-8 -*-
########################
# character.py
########################
# Purpose:
# - The player-controlled body: gravity-driven vertical motion and a single upward impulse.
# - Tracks alive/dead state and a cosmetic rotation derived from vertical velocity.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Time deltas are milliseconds; physics constants are per second.
# - Rotation is presentation only. It never feeds back into position or velocity.
# - Once dead, nothing moves until reset().
#
########################
# Interfaces:
# Public classes:
# - class Character
#   - __init__(x: float, y: float, tuning: gameplay_models.GameplayTuning)
#   - x, y, velocity_y, rotation, alive (read-only properties)
#   - apply_impulse() -> None
#   - advance(dt_ms: float) -> None
#   - mark_dead() -> None
#   - reset(x: float, y: float) -> None
#   - body() -> gameplay_models.Body
#   - bottom() -> float
#   - snapshot() -> gameplay_models.CharacterSnapshot
#
# Inputs:
# - Elapsed frame time from SessionController.tick.
#
# Outputs:
# - Position and velocity read by SessionController for ground and overlap checks.
#
########################

from __future__ import annotations

import gameplay_models


class Character:
    def __init__(self, x: float, y: float, tuning: gameplay_models.GameplayTuning) -> None:
        self._tuning = tuning
        self._x = float(x)
        self._y = float(y)
        self._velocity_y = 0.0
        self._rotation = 0.0
        self._alive = True

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def velocity_y(self) -> float:
        return self._velocity_y

    @property
    def rotation(self) -> float:
        return self._rotation

    @property
    def alive(self) -> bool:
        return self._alive

    def apply_impulse(self) -> None:
        if not self._alive:
            return
        # Overwrite, never add: repeated flaps do not stack.
        self._velocity_y = float(self._tuning.flap_velocity)
        self._rotation = float(self._tuning.flap_tilt)

    def advance(self, dt_ms: float) -> None:
        dt_value = float(dt_ms)
        if dt_value < 0.0:
            raise ValueError(f"dt_ms must be non-negative, got {dt_value!r}")
        if not self._alive:
            return

        dt_seconds = dt_value / 1000.0
        self._velocity_y += float(self._tuning.gravity) * dt_seconds
        self._y += self._velocity_y * dt_seconds

        max_tilt = float(self._tuning.max_tilt)
        tilt = self._velocity_y * float(self._tuning.tilt_scale)
        self._rotation = max(-max_tilt, min(tilt, max_tilt))

        if self._y < 0.0:
            self._y = 0.0
            self._velocity_y = 0.0

    def mark_dead(self) -> None:
        self._alive = False

    def reset(self, x: float, y: float) -> None:
        self._alive = True
        self._x = float(x)
        self._y = float(y)
        self._velocity_y = 0.0
        self._rotation = 0.0

    def body(self) -> gameplay_models.Body:
        return gameplay_models.Body.from_center(
            self._x,
            self._y,
            self._tuning.character_half_width,
            self._tuning.character_half_height,
        )

    def bottom(self) -> float:
        return self._y + float(self._tuning.character_half_height)

    def snapshot(self) -> gameplay_models.CharacterSnapshot:
        return gameplay_models.CharacterSnapshot(
            x=self._x,
            y=self._y,
            velocity_y=self._velocity_y,
            rotation=self._rotation,
            alive=self._alive,
            body=self.body(),
        )


def _run_unit_tests() -> None:
    tuning = gameplay_models.GameplayTuning()
    character = Character(100.0, 300.0, tuning)

    # Impulse overwrites velocity.
    character.apply_impulse()
    character.apply_impulse()
    assert character.velocity_y == tuning.flap_velocity

    # One second of gravity from rest: v = 1000, y += 1000.
    character.reset(100.0, 0.0)
    character.advance(1000.0)
    assert abs(character.velocity_y - 1000.0) < 1e-9
    assert abs(character.y - 1000.0) < 1e-9
    assert abs(character.rotation - 1.0) < 1e-9

    # Top clamp zeroes velocity.
    character.reset(100.0, 5.0)
    character.apply_impulse()
    character.advance(100.0)
    assert character.y == 0.0
    assert character.velocity_y == 0.0

    # Dead characters do not move or flap.
    character.reset(100.0, 200.0)
    character.mark_dead()
    character.mark_dead()
    character.apply_impulse()
    character.advance(500.0)
    assert character.y == 200.0
    assert character.velocity_y == 0.0
    assert not character.alive

    character.reset(50.0, 60.0)
    snap = character.snapshot()
    assert (snap.x, snap.y, snap.velocity_y, snap.rotation, snap.alive) == (50.0, 60.0, 0.0, 0.0, True)
    assert character.bottom() == 72.0

    try:
        character.advance(-1.0)
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for negative dt")


if __name__ == "__main__":
    _run_unit_tests()
    print("character.py: ok")
