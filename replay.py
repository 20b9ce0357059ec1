# -*- coding: utf-8 -*-
########################
# replay.py
########################
# Purpose:
# - Deterministic headless runner for scripted frame sequences.
# - Loads replay scripts (JSON), drives SessionController.frame and summarizes the outcome.
#
# Design notes:
# - No Qt usage. Same seed + same script + same tuning always yields the same result.
# - Activations are requested through the controller's gate before each frame, exactly as the
#   harness InputRouter does, so replays exercise the host path rather than tick() directly.
# - Scripts are a first class format; malformed scripts raise ReplayScriptError.
#
########################
# Interfaces:
# Public exceptions:
# - class ReplayScriptError(ValueError)
#
# Public dataclasses:
# - ReplayFrame(dt_ms: float, activate: bool)
# - ReplayScript(seed: int, width: float, height: float, frames: tuple[ReplayFrame, ...])
# - ReplayResult(final: SessionSnapshot, events: tuple[SessionEvent, ...], ended_frame: Optional[int],
#                max_score: int, frames_run: int)
#
# Public functions:
# - parse_script(payload: dict) -> ReplayScript
# - load_script(path: pathlib.Path) -> ReplayScript
# - build_flap_script(*, frames: int, dt_ms: float, flap_every: int, seed: int, ...) -> ReplayScript
# - run_replay(script: ReplayScript, *, tuning=None, scaling=None, stop_on_end=False) -> ReplayResult
# - result_to_payload(result: ReplayResult) -> dict
# - main() -> int
#
########################
# Smoke Tests:
#   - python replay.py --frames 600 --flap-every 22 --seed 7
########################

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import gameplay_models
import playfield
import session_controller
from logger import setup_logging


class ReplayScriptError(ValueError):
    """Raised when a replay script cannot be parsed or validated."""


@dataclass(frozen=True)
class ReplayFrame:
    dt_ms: float
    activate: bool = False


@dataclass(frozen=True)
class ReplayScript:
    seed: int
    width: float
    height: float
    frames: Tuple[ReplayFrame, ...]


@dataclass(frozen=True)
class ReplayResult:
    final: gameplay_models.SessionSnapshot
    events: Tuple[gameplay_models.SessionEvent, ...]
    ended_frame: Optional[int]
    max_score: int
    frames_run: int


def _parse_frame(raw_frame: Any, index: int) -> ReplayFrame:
    if isinstance(raw_frame, dict):
        dt_value = raw_frame.get("dt_ms")
        activate_value = raw_frame.get("activate", False)
    elif isinstance(raw_frame, (list, tuple)) and len(raw_frame) == 2:
        dt_value, activate_value = raw_frame
    else:
        raise ReplayScriptError(f"Frame {index} must be an object or a [dt_ms, activate] pair")

    if isinstance(dt_value, bool) or not isinstance(dt_value, (int, float)):
        raise ReplayScriptError(f"Frame {index} dt_ms must be a number, got {dt_value!r}")
    if float(dt_value) < 0.0:
        raise ReplayScriptError(f"Frame {index} dt_ms must be non-negative, got {dt_value!r}")
    if not isinstance(activate_value, bool):
        raise ReplayScriptError(f"Frame {index} activate must be a boolean, got {activate_value!r}")

    return ReplayFrame(dt_ms=float(dt_value), activate=bool(activate_value))


def parse_script(payload: Dict[str, Any]) -> ReplayScript:
    if not isinstance(payload, dict):
        raise ReplayScriptError("Replay script root must be a JSON object")

    seed_value = payload.get("seed", 0)
    if isinstance(seed_value, bool) or not isinstance(seed_value, int):
        raise ReplayScriptError(f"seed must be an integer, got {seed_value!r}")

    width_value = payload.get("width", 400.0)
    height_value = payload.get("height", 600.0)
    for name, value in (("width", width_value), ("height", height_value)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or float(value) <= 0.0:
            raise ReplayScriptError(f"{name} must be a positive number, got {value!r}")

    raw_frames = payload.get("frames")
    if not isinstance(raw_frames, list):
        raise ReplayScriptError("frames must be a list")

    frames = tuple(_parse_frame(raw_frame, index) for index, raw_frame in enumerate(raw_frames))
    return ReplayScript(seed=int(seed_value), width=float(width_value), height=float(height_value), frames=frames)


def load_script(path: Path) -> ReplayScript:
    try:
        raw_text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ReplayScriptError(f"Failed to read replay script: {path}. Error: {exc}") from exc
    try:
        payload = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ReplayScriptError(f"Replay script is not valid JSON: {path}. Error: {exc}") from exc
    return parse_script(payload)


def build_flap_script(
    *,
    frames: int,
    dt_ms: float,
    flap_every: int,
    seed: int,
    width: float = 400.0,
    height: float = 600.0,
) -> ReplayScript:
    """Regular-cadence script: activate on frame 0 and every flap_every frames after it."""
    if int(frames) < 0:
        raise ReplayScriptError(f"frames must be non-negative, got {frames!r}")
    if int(flap_every) <= 0:
        raise ReplayScriptError(f"flap_every must be positive, got {flap_every!r}")
    built = tuple(
        ReplayFrame(dt_ms=float(dt_ms), activate=(index % int(flap_every) == 0))
        for index in range(int(frames))
    )
    return ReplayScript(seed=int(seed), width=float(width), height=float(height), frames=built)


def run_replay(
    script: ReplayScript,
    *,
    tuning: Optional[gameplay_models.GameplayTuning] = None,
    scaling: Optional[playfield.PlayfieldScaling] = None,
    stop_on_end: bool = False,
) -> ReplayResult:
    controller = session_controller.SessionController(
        tuning=tuning,
        geometry=playfield.StaticPlayfield(script.width, script.height),
        scaling=scaling,
        seed=script.seed,
    )

    events: List[gameplay_models.SessionEvent] = []
    ended_frame: Optional[int] = None
    max_score = 0
    frames_run = 0

    for replay_frame in script.frames:
        if replay_frame.activate:
            controller.request_activate()
        controller.frame(replay_frame.dt_ms)
        frames_run += 1

        frame_events = controller.recent_events()
        controller.clear_recent_events()
        events.extend(frame_events)
        max_score = max(max_score, controller.score())

        if ended_frame is None and any(event.kind == "ended" for event in frame_events):
            ended_frame = controller.frame_index()
            if stop_on_end:
                break

    return ReplayResult(
        final=controller.snapshot(),
        events=tuple(events),
        ended_frame=ended_frame,
        max_score=max_score,
        frames_run=frames_run,
    )


def result_to_payload(result: ReplayResult) -> Dict[str, Any]:
    final = result.final
    return {
        "ok": True,
        "phase": final.phase.value,
        "score": final.score,
        "max_score": result.max_score,
        "frames_run": result.frames_run,
        "ended_frame": result.ended_frame,
        "obstacles": len(final.obstacles),
        "character": {
            "x": final.character.x,
            "y": final.character.y,
            "velocity_y": final.character.velocity_y,
            "alive": final.character.alive,
        },
        "events": [
            {"kind": event.kind, "score": event.score, "frame": event.frame_index}
            for event in result.events
        ],
    }


def _run_unit_tests() -> None:
    script = parse_script(
        {
            "seed": 3,
            "frames": [{"dt_ms": 16, "activate": True}, [16, False], {"dt_ms": 16.5}],
        }
    )
    assert script.seed == 3
    assert script.frames == (
        ReplayFrame(16.0, True),
        ReplayFrame(16.0, False),
        ReplayFrame(16.5, False),
    )

    for bad_payload in (
        {"frames": "nope"},
        {"frames": [{"dt_ms": -1}]},
        {"frames": [[16, 1]]},
        {"seed": "x", "frames": []},
        {"height": 0, "frames": []},
    ):
        try:
            parse_script(bad_payload)
        except ReplayScriptError:
            pass
        else:
            raise AssertionError(f"Expected ReplayScriptError for {bad_payload!r}")

    # No input: the round never starts.
    idle = run_replay(ReplayScript(seed=1, width=400.0, height=600.0, frames=(ReplayFrame(16.0),) * 10))
    assert idle.final.phase is gameplay_models.Phase.READY
    assert idle.events == ()

    # One activation then free fall: the round ends on the ground with no score.
    falling = build_flap_script(frames=200, dt_ms=16.0, flap_every=1000, seed=1)
    fall_result = run_replay(falling, stop_on_end=True)
    assert fall_result.final.phase is gameplay_models.Phase.ENDED
    assert fall_result.ended_frame == fall_result.frames_run
    assert [event.kind for event in fall_result.events] == ["ended"]

    # Determinism.
    cadence = build_flap_script(frames=1200, dt_ms=16.0, flap_every=22, seed=9)
    first = run_replay(cadence)
    second = run_replay(cadence)
    assert first == second
    scores = [event.score for event in first.events if event.kind == "score"]
    assert scores == sorted(scores)

    payload = result_to_payload(first)
    assert payload["frames_run"] == 1200
    json.dumps(payload)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a deterministic headless flapgap session.")
    parser.add_argument("--script", type=Path, default=None, help="Replay script JSON file.")
    parser.add_argument("--frames", type=int, default=600, help="Frames for a generated script.")
    parser.add_argument("--dt-ms", type=float, default=16.0, help="Frame delta for a generated script.")
    parser.add_argument("--flap-every", type=int, default=22, help="Activate every N frames in a generated script.")
    parser.add_argument("--seed", type=int, default=0, help="Seed for a generated script.")
    parser.add_argument("--stop-on-end", action="store_true", help="Stop at the first ended round.")
    parser.add_argument("--run-tests", action="store_true", help="Run pure logic tests.")
    return parser


def main() -> int:
    args = build_argument_parser().parse_args()
    if args.run_tests:
        _run_unit_tests()
        print("replay.py: ok")
        return 0

    try:
        import config as config_module

        app_config, _config_path = config_module.get_config()
        setup_logging(app_config.logging.level, app_config.logging.file)
        if args.script is not None:
            script = load_script(args.script)
        else:
            script = build_flap_script(
                frames=args.frames,
                dt_ms=args.dt_ms,
                flap_every=args.flap_every,
                seed=args.seed,
                width=app_config.playfield.width,
                height=app_config.playfield.height,
            )
        result = run_replay(
            script,
            tuning=config_module.to_tuning(app_config),
            scaling=config_module.to_scaling(app_config),
            stop_on_end=bool(args.stop_on_end),
        )
    except Exception as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    print(json.dumps(result_to_payload(result), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
