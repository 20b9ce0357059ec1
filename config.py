"""
config.py

Typed configuration loading and validation for flapgap.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If FLAPGAP_CONFIG_PATH is set, that file is used.
- Otherwise flapgap searches these paths in order and uses the first one that exists:
  1) ./flapgap_config.json (current working directory)
  2) <user config dir>/flapgap/flapgap/flapgap_config.json
- If none exists, the built-in defaults are used.

Example config file (flapgap_config.json)
{
  "physics": {
    "gravity": 1000.0,
    "flap_velocity": -350.0
  },
  "obstacles": {
    "spawn_interval_ms": 1500.0,
    "speed": -200.0
  },
  "playfield": {
    "width": 400,
    "height": 600
  },
  "harness": {
    "seed": 1234
  },
  "logging": {
    "level": "info"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import gameplay_models
import playfield


class PhysicsConfig(BaseModel):
    gravity: float = Field(default=1000.0, ge=0.0, description="Downward acceleration in px/s^2.")
    flap_velocity: float = Field(default=-350.0, lt=0.0, description="Vertical velocity set by a flap, px/s (negative is up).")
    flap_tilt: float = Field(default=-0.3, description="Cosmetic rotation applied on flap.")
    tilt_scale: float = Field(default=0.001, ge=0.0, description="Rotation per unit of vertical velocity.")
    max_tilt: float = Field(default=20.0, ge=0.0, description="Rotation clamp, both directions.")
    character_half_width: float = Field(default=12.0, gt=0.0)
    character_half_height: float = Field(default=12.0, gt=0.0)


class ObstacleConfig(BaseModel):
    speed: float = Field(default=-200.0, lt=0.0, description="Horizontal speed in px/s (negative is left).")
    width: float = Field(default=80.0, gt=0.0)
    spawn_interval_ms: float = Field(default=1500.0, gt=0.0, description="Time between spawns.")
    spawn_margin: float = Field(default=50.0, ge=0.0, description="Spawn distance beyond the right edge.")
    clearance: float = Field(default=30.0, ge=0.0, description="Pass margin behind the character before scoring.")


class PlayfieldConfig(BaseModel):
    width: float = Field(default=400.0, gt=0.0)
    height: float = Field(default=600.0, gt=0.0)
    character_start_x: float = Field(default=100.0, ge=0.0)
    base_height: float = Field(default=600.0, gt=0.0)
    ground_height: float = Field(default=100.0, gt=0.0)
    min_ground_height: float = Field(default=80.0, gt=0.0)
    max_ground_height: float = Field(default=120.0, gt=0.0)
    gap_size: float = Field(default=150.0, gt=0.0)
    min_gap_size: float = Field(default=120.0, gt=0.0)
    max_gap_size: float = Field(default=200.0, gt=0.0)
    min_gap_y_floor: float = Field(default=100.0, ge=0.0)
    min_gap_y_ratio: float = Field(default=0.2, ge=0.0, le=1.0)
    max_gap_y_ratio: float = Field(default=0.7, ge=0.0, le=1.0)
    gap_bottom_margin: float = Field(default=50.0, ge=0.0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "PlayfieldConfig":
        if self.min_ground_height > self.max_ground_height:
            raise ValueError("min_ground_height must not exceed max_ground_height")
        if self.min_gap_size > self.max_gap_size:
            raise ValueError("min_gap_size must not exceed max_gap_size")
        return self


class HarnessConfig(BaseModel):
    frame_interval_ms: int = Field(default=16, ge=1, le=1000, description="QTimer interval driving frames.")
    max_frame_ms: float = Field(default=100.0, gt=0.0, description="Cap for a single frame delta.")
    seed: Optional[int] = Field(default=None, description="Seed for gap placement. None picks a random seed.")


class LoggingConfig(BaseModel):
    level: str = Field(default="info", description="debug, info, warning or error")
    file: Optional[str] = Field(default=None, description="Optional NDJSON log file path.")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        allowed = {"debug", "info", "warning", "error"}
        if normalized not in allowed:
            raise ValueError("level must be one of: debug, info, warning, error")
        return normalized

    @field_validator("file")
    @classmethod
    def normalize_file(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class AppConfig(BaseModel):
    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)
    obstacles: ObstacleConfig = Field(default_factory=ObstacleConfig)
    playfield: PlayfieldConfig = Field(default_factory=PlayfieldConfig)
    harness: HarnessConfig = Field(default_factory=HarnessConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("flapgap", "flapgap"))
    return [
        Path.cwd() / "flapgap_config.json",
        config_directory / "flapgap_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("FLAPGAP_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - FLAPGAP_GRAVITY
    - FLAPGAP_FLAP_VELOCITY
    - FLAPGAP_SPAWN_INTERVAL_MS
    - FLAPGAP_OBSTACLE_SPEED
    - FLAPGAP_WIDTH
    - FLAPGAP_HEIGHT
    - FLAPGAP_SEED
    - FLAPGAP_LOG_LEVEL
    - FLAPGAP_LOG_FILE
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    physics_section = ensure_nested(updated_config, "physics")
    obstacles_section = ensure_nested(updated_config, "obstacles")
    playfield_section = ensure_nested(updated_config, "playfield")
    harness_section = ensure_nested(updated_config, "harness")
    logging_section = ensure_nested(updated_config, "logging")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    override_float("FLAPGAP_GRAVITY", physics_section, "gravity")
    override_float("FLAPGAP_FLAP_VELOCITY", physics_section, "flap_velocity")

    override_float("FLAPGAP_SPAWN_INTERVAL_MS", obstacles_section, "spawn_interval_ms")
    override_float("FLAPGAP_OBSTACLE_SPEED", obstacles_section, "speed")

    override_float("FLAPGAP_WIDTH", playfield_section, "width")
    override_float("FLAPGAP_HEIGHT", playfield_section, "height")

    override_int("FLAPGAP_SEED", harness_section, "seed")

    override_string("FLAPGAP_LOG_LEVEL", logging_section, "level")
    override_string("FLAPGAP_LOG_FILE", logging_section, "file")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "(defaults)"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_tuning(config: AppConfig) -> gameplay_models.GameplayTuning:
    physics = config.physics
    obstacles = config.obstacles
    return gameplay_models.GameplayTuning(
        gravity=float(physics.gravity),
        flap_velocity=float(physics.flap_velocity),
        flap_tilt=float(physics.flap_tilt),
        tilt_scale=float(physics.tilt_scale),
        max_tilt=float(physics.max_tilt),
        character_half_width=float(physics.character_half_width),
        character_half_height=float(physics.character_half_height),
        character_start_x=float(config.playfield.character_start_x),
        obstacle_speed=float(obstacles.speed),
        obstacle_width=float(obstacles.width),
        obstacle_gravity=-float(physics.gravity),
        spawn_interval_ms=float(obstacles.spawn_interval_ms),
        spawn_margin=float(obstacles.spawn_margin),
        clearance=float(obstacles.clearance),
    )


def to_scaling(config: AppConfig) -> playfield.PlayfieldScaling:
    section = config.playfield
    return playfield.PlayfieldScaling(
        base_height=float(section.base_height),
        ground_height=float(section.ground_height),
        min_ground_height=float(section.min_ground_height),
        max_ground_height=float(section.max_ground_height),
        gap_size=float(section.gap_size),
        min_gap_size=float(section.min_gap_size),
        max_gap_size=float(section.max_gap_size),
        min_gap_y_floor=float(section.min_gap_y_floor),
        min_gap_y_ratio=float(section.min_gap_y_ratio),
        max_gap_y_ratio=float(section.max_gap_y_ratio),
        gap_bottom_margin=float(section.gap_bottom_margin),
    )


def _run_unit_tests() -> None:
    config = AppConfig.model_validate({"logging": {"level": " DEBUG "}, "obstacles": {"spawn_interval_ms": 900}})
    assert config.logging.level == "debug"
    assert config.obstacles.spawn_interval_ms == 900.0

    tuning = to_tuning(config)
    tuning.validate()
    assert tuning.obstacle_gravity == -tuning.gravity
    assert tuning.spawn_interval_ms == 900.0

    assert to_scaling(AppConfig()) == playfield.PlayfieldScaling()
    assert to_tuning(AppConfig()) == gameplay_models.GameplayTuning()

    for bad_payload in (
        {"obstacles": {"spawn_interval_ms": 0}},
        {"physics": {"flap_velocity": 10}},
        {"logging": {"level": "loud"}},
        {"playfield": {"min_gap_size": 300}},
    ):
        try:
            AppConfig.model_validate(bad_payload)
        except ValidationError:
            pass
        else:
            raise AssertionError(f"Expected ValidationError for {bad_payload!r}")


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
