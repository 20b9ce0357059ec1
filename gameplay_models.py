# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the session pipeline.
# - Defines phases, collision bodies, playfield metrics, tuning and snapshots.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Screen coordinates: y grows downward, 0 is the playfield ceiling.
#
########################
# Interfaces:
# Public enums:
# - class Phase(enum.Enum): READY | PLAYING | ENDED
#
# Public dataclasses:
# - Body(left: float, top: float, right: float, bottom: float)
#   - from_center(center_x, center_y, half_width, half_height) -> Body
# - PlayfieldMetrics(width, height, ground_height, gap_size, min_gap_y, max_gap_y)
#   - ground_line -> float
#   - usable_height -> float
# - GameplayTuning(gravity, flap_velocity, ..., spawn_interval_ms, clearance, ...)
#   - validate() -> None
# - CharacterSnapshot, ObstacleSnapshot, SessionSnapshot
# - SessionEvent(kind: str, score: int, frame_index: int)
#
# Public functions:
# - bodies_overlap(first: Body, second: Body) -> bool
#
# Inputs/Outputs:
# - These types are exchanged between Character, Obstacle, SessionController,
#   the replay runner and the Qt harness.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Tuple


class Phase(enum.Enum):
    READY = "ready"
    PLAYING = "playing"
    ENDED = "ended"


@dataclass(frozen=True)
class Body:
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_center(cls, center_x: float, center_y: float, half_width: float, half_height: float) -> "Body":
        return cls(
            left=float(center_x) - float(half_width),
            top=float(center_y) - float(half_height),
            right=float(center_x) + float(half_width),
            bottom=float(center_y) + float(half_height),
        )

    @property
    def width(self) -> float:
        return float(self.right - self.left)

    @property
    def height(self) -> float:
        return float(self.bottom - self.top)


def bodies_overlap(first: Body, second: Body) -> bool:
    """Strict axis-aligned overlap. Bodies that only touch along an edge do not overlap."""
    if first.right <= second.left or second.right <= first.left:
        return False
    if first.bottom <= second.top or second.bottom <= first.top:
        return False
    return True


@dataclass(frozen=True)
class PlayfieldMetrics:
    width: float
    height: float
    ground_height: float
    gap_size: float
    min_gap_y: float
    max_gap_y: float

    @property
    def ground_line(self) -> float:
        return float(self.height - self.ground_height)

    @property
    def usable_height(self) -> float:
        return float(self.height - self.ground_height)


@dataclass(frozen=True)
class GameplayTuning:
    # Character physics (pixels, seconds)
    gravity: float = 1000.0
    flap_velocity: float = -350.0
    flap_tilt: float = -0.3
    tilt_scale: float = 0.001
    max_tilt: float = 20.0
    character_half_width: float = 12.0
    character_half_height: float = 12.0
    character_start_x: float = 100.0

    # Obstacles
    obstacle_speed: float = -200.0
    obstacle_width: float = 80.0
    obstacle_gravity: float = -1000.0
    spawn_interval_ms: float = 1500.0
    spawn_margin: float = 50.0
    clearance: float = 30.0

    def validate(self) -> None:
        if float(self.spawn_interval_ms) <= 0.0:
            raise ValueError(f"spawn_interval_ms must be positive, got {self.spawn_interval_ms!r}")
        if float(self.obstacle_speed) >= 0.0:
            raise ValueError(f"obstacle_speed must be negative (leftward), got {self.obstacle_speed!r}")
        if float(self.obstacle_width) <= 0.0:
            raise ValueError(f"obstacle_width must be positive, got {self.obstacle_width!r}")
        if float(self.gravity) + float(self.obstacle_gravity) != 0.0:
            raise ValueError(
                "obstacle_gravity must exactly cancel gravity "
                f"(gravity={self.gravity!r}, obstacle_gravity={self.obstacle_gravity!r})"
            )
        if float(self.flap_velocity) >= 0.0:
            raise ValueError(f"flap_velocity must be negative (upward), got {self.flap_velocity!r}")
        if float(self.max_tilt) < 0.0:
            raise ValueError(f"max_tilt must be non-negative, got {self.max_tilt!r}")
        if float(self.character_half_width) <= 0.0 or float(self.character_half_height) <= 0.0:
            raise ValueError("character half extents must be positive")
        if float(self.clearance) < 0.0:
            raise ValueError(f"clearance must be non-negative, got {self.clearance!r}")


@dataclass(frozen=True)
class CharacterSnapshot:
    x: float
    y: float
    velocity_y: float
    rotation: float
    alive: bool
    body: Body


@dataclass(frozen=True)
class ObstacleSnapshot:
    x: float
    gap_center_y: float
    gap_size: float
    scored: bool
    top_body: Body
    bottom_body: Body


@dataclass(frozen=True)
class SessionSnapshot:
    phase: Phase
    score: int
    spawn_timer_ms: float
    frame_index: int
    metrics: PlayfieldMetrics
    character: CharacterSnapshot
    obstacles: Tuple[ObstacleSnapshot, ...]


@dataclass(frozen=True)
class SessionEvent:
    kind: str  # "score" | "ended" | "reset"
    score: int
    frame_index: int


def _run_unit_tests() -> None:
    body = Body.from_center(100.0, 50.0, 12.0, 12.0)
    assert (body.left, body.top, body.right, body.bottom) == (88.0, 38.0, 112.0, 62.0)
    assert body.width == 24.0 and body.height == 24.0

    # Touching edges are not an overlap.
    assert not bodies_overlap(Body(0.0, 0.0, 10.0, 10.0), Body(10.0, 0.0, 20.0, 10.0))
    assert not bodies_overlap(Body(0.0, 0.0, 10.0, 10.0), Body(0.0, 10.0, 10.0, 20.0))
    assert bodies_overlap(Body(0.0, 0.0, 10.0, 10.0), Body(9.0, 9.0, 20.0, 20.0))

    metrics = PlayfieldMetrics(width=400.0, height=600.0, ground_height=100.0, gap_size=150.0, min_gap_y=120.0, max_gap_y=300.0)
    assert metrics.ground_line == 500.0

    GameplayTuning().validate()
    try:
        GameplayTuning(spawn_interval_ms=0.0).validate()
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for non-positive spawn interval")

    try:
        GameplayTuning(gravity=900.0).validate()
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for uncancelled obstacle gravity")


if __name__ == "__main__":
    _run_unit_tests()
    print("gameplay_models.py: ok")
