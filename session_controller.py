# -*- coding: utf-8 -*-
########################
# session_controller.py
########################
# Purpose:
# - Orchestrates one game session: Ready -> Playing -> Ended -> Ready.
# - Owns the character, the obstacle collection, the spawn timer and the score.
# - Applies the ground and overlap rules that end a round, and the pass rule that scores.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - tick(dt_ms) is the gameplay step and is only legal while Playing.
#   frame(dt_ms) is the host entrypoint: safe in every phase, consumes at most one
#   pending activation, then ticks if Playing.
# - Obstacles are kept in spawn order. Collision and scoring checks follow that order and
#   the first colliding obstacle ends the round; later obstacles are not evaluated.
# - Recent SessionEvents are kept for hosts to drain each frame, bounded to the newest
#   RECENT_EVENT_LIMIT records.
# - Randomness comes from an injected random.Random so runs are replayable from a seed.
# - Playfield size is read from the GeometryProvider every frame; derived metrics are
#   recomputed when it changes. Existing obstacles keep their gap.
#
########################
# Interfaces:
# Public exceptions:
# - class SessionContractError(RuntimeError)
# - class SessionConfigError(ValueError)
#
# Public classes:
# - class SessionListener(Protocol)
#   - on_score_changed(new_score: int) -> None
#   - on_ended() -> None
#   - on_reset() -> None
# - class SessionController
#   - __init__(*, tuning=None, geometry=None, scaling=None, rng=None, seed=None,
#              overlap_test=None, gate=None, listeners=None)
#   - phase() -> Phase
#   - score() -> int
#   - spawn_timer_ms() -> float
#   - frame_index() -> int
#   - metrics() -> PlayfieldMetrics
#   - character -> Character
#   - obstacles() -> list[Obstacle]
#   - add_listener(listener) / remove_listener(listener)
#   - activate() -> None
#   - request_activate() -> None
#   - tick(dt_ms: float) -> None
#   - frame(dt_ms: float) -> None
#   - snapshot() -> SessionSnapshot
#   - recent_events() -> list[SessionEvent]
#   - clear_recent_events() -> None
#
# Inputs:
# - Frame deltas (milliseconds) from a frame driver and activate input.
#
# Outputs:
# - Listener callbacks and SessionEvent records for hosts, the harness and replays.
#
########################

from __future__ import annotations

import random
from collections import deque
from typing import Callable, Deque, List, Optional, Protocol, Tuple, runtime_checkable

import activation_gate
import character as character_module
import gameplay_models
import obstacle as obstacle_module
import playfield
from logger import get_logger, session_fields


logger = get_logger("session")

# Hosts that never drain recent_events() only keep the newest records.
RECENT_EVENT_LIMIT = 256

OverlapTest = Callable[[gameplay_models.Body, gameplay_models.Body], bool]


class SessionContractError(RuntimeError):
    """Raised when the controller is driven outside its contract (tick while not Playing, negative dt)."""


class SessionConfigError(ValueError):
    """Raised when tuning or playfield geometry cannot produce a playable session."""


@runtime_checkable
class SessionListener(Protocol):
    def on_score_changed(self, new_score: int) -> None:
        ...

    def on_ended(self) -> None:
        ...

    def on_reset(self) -> None:
        ...


class SessionController:
    def __init__(
        self,
        *,
        tuning: Optional[gameplay_models.GameplayTuning] = None,
        geometry: Optional[playfield.GeometryProvider] = None,
        scaling: Optional[playfield.PlayfieldScaling] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        overlap_test: Optional[OverlapTest] = None,
        gate: Optional[activation_gate.ActivationGate] = None,
        listeners: Optional[List[SessionListener]] = None,
    ) -> None:
        self._tuning = tuning or gameplay_models.GameplayTuning()
        try:
            self._tuning.validate()
        except ValueError as exc:
            raise SessionConfigError(f"Invalid gameplay tuning: {exc}") from exc

        self._geometry: playfield.GeometryProvider = geometry or playfield.StaticPlayfield()
        self._scaling = scaling or playfield.PlayfieldScaling()
        self._rng = rng if rng is not None else random.Random(seed)
        self._overlap_test: OverlapTest = overlap_test or gameplay_models.bodies_overlap
        self._gate = gate or activation_gate.ActivationGate()
        self._listeners: List[SessionListener] = list(listeners or [])

        self._playfield_size: Optional[Tuple[float, float]] = None
        self._metrics = self._refresh_metrics()

        self._phase = gameplay_models.Phase.READY
        self._score = 0
        self._spawn_timer_ms = 0.0
        self._frame_index = 0
        self._obstacles: List[obstacle_module.Obstacle] = []
        self._recent_events: Deque[gameplay_models.SessionEvent] = deque(maxlen=RECENT_EVENT_LIMIT)

        start_x, start_y = self._initial_character_position()
        self._character = character_module.Character(start_x, start_y, self._tuning)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def phase(self) -> gameplay_models.Phase:
        return self._phase

    def score(self) -> int:
        return int(self._score)

    def spawn_timer_ms(self) -> float:
        return float(self._spawn_timer_ms)

    def frame_index(self) -> int:
        return int(self._frame_index)

    def metrics(self) -> gameplay_models.PlayfieldMetrics:
        return self._metrics

    def tuning(self) -> gameplay_models.GameplayTuning:
        return self._tuning

    @property
    def character(self) -> character_module.Character:
        return self._character

    @property
    def gate(self) -> activation_gate.ActivationGate:
        return self._gate

    def obstacles(self) -> List[obstacle_module.Obstacle]:
        return list(self._obstacles)

    def recent_events(self) -> List[gameplay_models.SessionEvent]:
        return list(self._recent_events)

    def clear_recent_events(self) -> None:
        self._recent_events.clear()

    def add_listener(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def activate(self) -> None:
        if self._phase is gameplay_models.Phase.READY:
            self._phase = gameplay_models.Phase.PLAYING
            self._spawn_timer_ms = 0.0
            self._character.apply_impulse()
            logger.debug("Round started at frame %d", self._frame_index)
        elif self._phase is gameplay_models.Phase.PLAYING:
            self._character.apply_impulse()
        else:
            self._restart()

    def request_activate(self) -> None:
        self._gate.request()

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def frame(self, dt_ms: float) -> None:
        self._frame_index += 1
        dt_value = max(0.0, float(dt_ms))
        self._refresh_metrics()

        if self._gate.consume():
            self.activate()

        if self._phase is gameplay_models.Phase.PLAYING:
            self.tick(dt_value)

    def tick(self, dt_ms: float) -> None:
        if self._phase is not gameplay_models.Phase.PLAYING:
            raise SessionContractError(f"tick() requires Playing, current phase is {self._phase.value}")
        dt_value = float(dt_ms)
        if dt_value < 0.0:
            raise SessionContractError(f"tick() requires a non-negative dt_ms, got {dt_value!r}")

        metrics = self._refresh_metrics()

        self._character.advance(dt_value)
        if self._character.bottom() >= metrics.ground_line:
            self._end_round("ground")
            return

        self._spawn_timer_ms += dt_value
        if self._spawn_timer_ms >= float(self._tuning.spawn_interval_ms):
            self._spawn_obstacle(metrics)
            self._spawn_timer_ms = 0.0

        character_body = self._character.body()
        pass_line = self._character.x - float(self._tuning.clearance)
        survivors: List[obstacle_module.Obstacle] = []

        for index, current in enumerate(self._obstacles):
            current.advance(dt_value)
            if current.is_off_screen():
                continue
            survivors.append(current)

            if self._overlap_test(character_body, current.top_body()) or self._overlap_test(
                character_body, current.bottom_body(metrics.ground_line)
            ):
                survivors.extend(self._obstacles[index + 1:])
                self._obstacles = survivors
                self._end_round("obstacle")
                return

            if not current.has_scored() and current.x < pass_line:
                current.mark_scored()
                self._score += 1
                self._record_event("score")
                for listener in list(self._listeners):
                    listener.on_score_changed(self._score)

        self._obstacles = survivors

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> gameplay_models.SessionSnapshot:
        ground_line = self._metrics.ground_line
        return gameplay_models.SessionSnapshot(
            phase=self._phase,
            score=self.score(),
            spawn_timer_ms=self.spawn_timer_ms(),
            frame_index=self.frame_index(),
            metrics=self._metrics,
            character=self._character.snapshot(),
            obstacles=tuple(item.snapshot(ground_line) for item in self._obstacles),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _initial_character_position(self) -> Tuple[float, float]:
        return (float(self._tuning.character_start_x), float(self._metrics.height) / 2.0)

    def _refresh_metrics(self) -> gameplay_models.PlayfieldMetrics:
        size = self._geometry.playfield_size()
        current_size = (float(size[0]), float(size[1]))
        if current_size == self._playfield_size:
            return self._metrics

        try:
            metrics = playfield.compute_metrics(current_size[0], current_size[1], self._scaling)
        except ValueError as exc:
            raise SessionConfigError(str(exc)) from exc

        if metrics.gap_size <= 0.0 or metrics.gap_size >= metrics.usable_height:
            raise SessionConfigError(
                f"Gap size {metrics.gap_size:.1f} does not fit the usable playfield height {metrics.usable_height:.1f}"
            )
        if metrics.min_gap_y > metrics.max_gap_y:
            raise SessionConfigError(
                f"Empty gap range [{metrics.min_gap_y:.1f}, {metrics.max_gap_y:.1f}] for playfield height {metrics.height:.1f}"
            )

        if self._playfield_size is not None:
            logger.debug("Playfield resized to %.0fx%.0f", current_size[0], current_size[1])
        self._playfield_size = current_size
        self._metrics = metrics
        return metrics

    def _spawn_obstacle(self, metrics: gameplay_models.PlayfieldMetrics) -> None:
        gap_center_y = self._rng.uniform(metrics.min_gap_y, metrics.max_gap_y)
        spawned = obstacle_module.Obstacle(
            metrics.width + float(self._tuning.spawn_margin),
            gap_center_y,
            metrics.gap_size,
            tuning=self._tuning,
        )
        self._obstacles.append(spawned)
        logger.debug(
            "Spawned obstacle gap_y=%.1f",
            gap_center_y,
            extra=session_fields(frame=self._frame_index, live=len(self._obstacles)),
        )

    def _end_round(self, reason: str) -> None:
        self._phase = gameplay_models.Phase.ENDED
        self._character.mark_dead()
        for item in self._obstacles:
            item.freeze()
        logger.info(
            "Round ended (%s)",
            reason,
            extra=session_fields(frame=self._frame_index, score=self._score),
        )
        self._record_event("ended")
        for listener in list(self._listeners):
            listener.on_ended()

    def _restart(self) -> None:
        self._score = 0
        self._spawn_timer_ms = 0.0
        self._obstacles.clear()
        start_x, start_y = self._initial_character_position()
        self._character.reset(start_x, start_y)
        self._phase = gameplay_models.Phase.READY
        logger.debug("Session reset")
        self._record_event("reset")
        for listener in list(self._listeners):
            listener.on_reset()

    def _record_event(self, kind: str) -> None:
        self._recent_events.append(
            gameplay_models.SessionEvent(kind=kind, score=self.score(), frame_index=self.frame_index())
        )


class _ListRecorder:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, int]] = []

    def on_score_changed(self, new_score: int) -> None:
        self.calls.append(("score", int(new_score)))

    def on_ended(self) -> None:
        self.calls.append(("ended", -1))

    def on_reset(self) -> None:
        self.calls.append(("reset", -1))


class _MutablePlayfield:
    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def playfield_size(self) -> Tuple[float, float]:
        return (self.width, self.height)


def _run_unit_tests() -> None:
    weightless = gameplay_models.GameplayTuning(gravity=0.0, obstacle_gravity=0.0, spawn_margin=1000.0)

    # Spawn interval: one 1500 ms tick spawns, two 700 ms ticks do not.
    controller = SessionController(tuning=weightless, seed=7)
    controller.activate()
    controller.tick(1500.0)
    assert controller.phase() is gameplay_models.Phase.PLAYING
    assert len(controller.obstacles()) == 1
    assert controller.spawn_timer_ms() == 0.0
    gap_y = controller.obstacles()[0].gap_center_y
    assert controller.metrics().min_gap_y <= gap_y <= controller.metrics().max_gap_y

    controller = SessionController(tuning=weightless, seed=7)
    controller.activate()
    controller.tick(700.0)
    controller.tick(700.0)
    assert len(controller.obstacles()) == 0
    assert abs(controller.spawn_timer_ms() - 1400.0) < 1e-9

    # Ground: starting just above the ground line ends on the next tick.
    recorder = _ListRecorder()
    controller = SessionController(seed=1, listeners=[recorder])
    ground_line = controller.metrics().ground_line
    controller.character.reset(100.0, ground_line - 1.0)
    controller.activate()
    controller.tick(16.0)
    assert controller.phase() is gameplay_models.Phase.ENDED
    assert not controller.character.alive
    assert recorder.calls == [("ended", -1)]

    # Falling without input eventually hits the ground.
    controller = SessionController(seed=1)
    controller.activate()
    for _ in range(1000):
        if controller.phase() is not gameplay_models.Phase.PLAYING:
            break
        controller.tick(16.0)
    assert controller.phase() is gameplay_models.Phase.ENDED
    assert controller.character.bottom() >= controller.metrics().ground_line

    # Gap pass: a body inside the gap never overlaps; scoring once past the clearance line.
    recorder = _ListRecorder()
    controller = SessionController(seed=3, listeners=[recorder])
    controller.activate()
    controller._obstacles.append(obstacle_module.Obstacle(71.0, 300.0, 150.0, tuning=controller.tuning()))
    controller.tick(10.0)
    assert controller.phase() is gameplay_models.Phase.PLAYING
    assert controller.score() == 1
    assert controller.obstacles()[0].has_scored()
    controller.tick(10.0)
    assert controller.score() == 1
    assert recorder.calls == [("score", 1)]

    # First colliding obstacle ends the round; later obstacles are not advanced.
    controller = SessionController(seed=3)
    controller.activate()
    first = obstacle_module.Obstacle(100.0, 150.0, 150.0, tuning=controller.tuning())
    second = obstacle_module.Obstacle(110.0, 150.0, 150.0, tuning=controller.tuning())
    controller._obstacles.extend([first, second])
    controller.tick(1.0)
    assert controller.phase() is gameplay_models.Phase.ENDED
    assert first.speed == 0.0 and second.speed == 0.0
    assert second.x == 110.0
    assert len(controller.obstacles()) == 2

    # tick outside Playing and negative dt are contract violations.
    for bad_call in (lambda: controller.tick(16.0), lambda: SessionController().tick(16.0)):
        try:
            bad_call()
        except SessionContractError:
            pass
        else:
            raise AssertionError("Expected SessionContractError for tick outside Playing")
    playing = SessionController()
    playing.activate()
    try:
        playing.tick(-1.0)
    except SessionContractError:
        pass
    else:
        raise AssertionError("Expected SessionContractError for negative dt")

    # Restart clears everything and resets the character.
    recorder = _ListRecorder()
    controller.add_listener(recorder)
    controller.activate()
    assert controller.phase() is gameplay_models.Phase.READY
    assert controller.score() == 0
    assert controller.obstacles() == []
    snap = controller.character.snapshot()
    assert (snap.x, snap.y, snap.velocity_y, snap.rotation, snap.alive) == (100.0, 300.0, 0.0, 0.0, True)
    assert recorder.calls == [("reset", -1)]
    assert [event.kind for event in controller.recent_events()] == ["ended", "reset"]

    # Restart after a scoring round returns to score 0 with a fresh spawn timer.
    recorder = _ListRecorder()
    controller = SessionController(seed=3, listeners=[recorder])
    controller.activate()
    controller._obstacles.append(obstacle_module.Obstacle(71.0, 300.0, 150.0, tuning=controller.tuning()))
    controller.tick(10.0)
    assert controller.score() == 1
    assert controller.spawn_timer_ms() == 10.0
    controller.character.reset(100.0, controller.metrics().ground_line - 1.0)
    controller.tick(16.0)
    assert controller.phase() is gameplay_models.Phase.ENDED
    assert len(controller.obstacles()) == 1
    controller.activate()
    assert controller.phase() is gameplay_models.Phase.READY
    assert controller.score() == 0
    assert controller.spawn_timer_ms() == 0.0
    assert controller.obstacles() == []
    assert recorder.calls == [("score", 1), ("ended", -1), ("reset", -1)]

    # Obstacles past the left edge are dropped oldest first and never score.
    controller = SessionController(seed=4)
    controller.activate()
    older = obstacle_module.Obstacle(-35.0, 300.0, 150.0, tuning=controller.tuning())
    newer = obstacle_module.Obstacle(300.0, 300.0, 150.0, tuning=controller.tuning())
    controller._obstacles.extend([older, newer])
    controller.tick(100.0)
    assert controller.phase() is gameplay_models.Phase.PLAYING
    assert controller.obstacles() == [newer]
    assert controller.score() == 0
    assert not older.has_scored()
    assert abs(newer.x - 280.0) < 1e-9

    # Undrained events keep only the newest records.
    controller = SessionController(seed=6)
    ground_line = controller.metrics().ground_line
    for _ in range(RECENT_EVENT_LIMIT):
        controller.character.reset(100.0, ground_line - 1.0)
        controller.activate()
        controller.tick(16.0)
        assert controller.phase() is gameplay_models.Phase.ENDED
        controller.activate()
    kept_events = controller.recent_events()
    assert len(kept_events) == RECENT_EVENT_LIMIT
    assert [event.kind for event in kept_events[-2:]] == ["ended", "reset"]
    controller.clear_recent_events()
    assert controller.recent_events() == []

    # Several requests between frames collapse into one activate.
    controller = SessionController(seed=5)
    controller.request_activate()
    controller.request_activate()
    controller.frame(16.0)
    assert controller.phase() is gameplay_models.Phase.PLAYING
    controller.character.reset(100.0, 1000.0)
    controller.frame(16.0)
    assert controller.phase() is gameplay_models.Phase.ENDED
    controller.request_activate()
    controller.request_activate()
    controller.frame(16.0)
    assert controller.phase() is gameplay_models.Phase.READY
    controller.frame(-5.0)
    assert controller.phase() is gameplay_models.Phase.READY

    # Resize recomputes metrics.
    geometry = _MutablePlayfield(400.0, 600.0)
    controller = SessionController(geometry=geometry, seed=2)
    geometry.height = 1200.0
    controller.frame(16.0)
    assert controller.metrics().ground_line == 1080.0

    # Configuration violations.
    for bad_kwargs in (
        {"tuning": gameplay_models.GameplayTuning(spawn_interval_ms=0.0)},
        {"geometry": playfield.StaticPlayfield(400.0, 150.0)},
    ):
        try:
            SessionController(**bad_kwargs)
        except SessionConfigError:
            pass
        else:
            raise AssertionError(f"Expected SessionConfigError for {bad_kwargs!r}")

    # Same seed and inputs produce the same session.
    def run(seed: int) -> gameplay_models.SessionSnapshot:
        session = SessionController(seed=seed)
        for frame_number in range(900):
            if frame_number % 22 == 0:
                session.request_activate()
            session.frame(16.0)
        return session.snapshot()

    assert run(11) == run(11)


if __name__ == "__main__":
    _run_unit_tests()
    print("session_controller.py: ok")
