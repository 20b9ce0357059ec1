# -*- coding: utf-8 -*-
########################
# logger.py
########################
# Purpose:
# - Logging setup for flapgap hosts (window, replay runner, config dump).
# - A compact one-line console format and an optional NDJSON file for offline analysis of runs.
#
# Design notes:
# - Everything logs under the "flapgap" namespace. Modules call get_logger("<area>").
# - Gameplay records carry structured fields (frame, score, ...) via session_fields(); both
#   formatters render them.
# - Timestamps come from the record itself, so a record formats the same way every time.
# - setup_logging may be called more than once; earlier handlers are closed and replaced.
#
########################
# Interfaces:
# Public classes:
# - class NdjsonFormatter(logging.Formatter)
# - class HumanFormatter(logging.Formatter)
#
# Public functions:
# - setup_logging(level: str = "info", log_file: Optional[str] = None) -> logging.Logger
# - get_logger(name: str) -> logging.Logger
# - session_fields(**fields) -> dict
#
########################

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "flapgap"

_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _record_fields(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    fields = getattr(record, "data", None)
    if isinstance(fields, dict) and fields:
        return fields
    return None


def _short_name(record: logging.LogRecord) -> str:
    prefix = ROOT_LOGGER_NAME + "."
    if record.name.startswith(prefix):
        return record.name[len(prefix):]
    return record.name


class NdjsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        fields = _record_fields(record)
        if fields is not None:
            entry["data"] = fields
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """HH:MM:SS.mmm [L] area: message  key=value ..."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created)
        time_text = stamp.strftime("%H:%M:%S") + f".{int(record.msecs):03d}"
        line = f"{time_text} [{record.levelname[0]}] {_short_name(record)}: {record.getMessage()}"
        fields = _record_fields(record)
        if fields is not None:
            line += "  " + " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "info", log_file: Optional[str] = None) -> logging.Logger:
    normalized_level = (level or "").strip().lower()
    if normalized_level not in _LEVELS:
        raise ValueError(f"Unknown log level {level!r}. Expected one of: {', '.join(_LEVELS)}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_LEVELS[normalized_level])
    for previous_handler in list(root.handlers):
        root.removeHandler(previous_handler)
        previous_handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(HumanFormatter())
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(NdjsonFormatter())
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def session_fields(**fields: Any) -> Dict[str, Any]:
    """`extra=` payload for structured gameplay fields, e.g. logger.info(..., extra=session_fields(frame=3))."""
    return {"data": dict(fields)}


def _run_unit_tests() -> None:
    record = logging.LogRecord("flapgap.session", logging.INFO, __file__, 1, "round ended (%s)", ("ground",), None)
    record.data = {"frame": 42, "score": 3}

    payload = json.loads(NdjsonFormatter().format(record))
    assert payload["logger"] == "flapgap.session"
    assert payload["msg"] == "round ended (ground)"
    assert payload["data"] == {"frame": 42, "score": 3}

    human_line = HumanFormatter().format(record)
    assert "[I] session: round ended (ground)  frame=42 score=3" in human_line
    assert HumanFormatter().format(record) == human_line

    assert session_fields(frame=1) == {"data": {"frame": 1}}
    assert get_logger("replay").name == "flapgap.replay"

    try:
        setup_logging("loud")
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for an unknown log level")


if __name__ == "__main__":
    _run_unit_tests()
    print("logger.py: ok")
