# test_self_tests.py
from __future__ import annotations

import json
import logging
import sys

import activation_gate
import character
import config
import frame_clock
import gameplay_models
import logger
import obstacle
import playfield
import replay
import session_controller


def test_gameplay_models() -> None:
    gameplay_models._run_unit_tests()


def test_playfield() -> None:
    playfield._run_unit_tests()


def test_character() -> None:
    character._run_unit_tests()


def test_obstacle() -> None:
    obstacle._run_unit_tests()


def test_frame_clock() -> None:
    frame_clock._run_unit_tests()


def test_activation_gate() -> None:
    activation_gate._run_unit_tests()


def test_session_controller() -> None:
    session_controller._run_unit_tests()


def test_replay() -> None:
    replay._run_unit_tests()


def test_config() -> None:
    config._run_unit_tests()


def test_input_router() -> None:
    import input_router

    input_router._run_unit_tests()


def test_ndjson_formatter_emits_one_object_per_record() -> None:
    record = logging.LogRecord("flapgap.session", logging.INFO, __file__, 1, "score %d", (3,), None)
    record.data = {"frame": 12}
    line = logger.NdjsonFormatter().format(record)
    payload = json.loads(line)
    assert payload["level"] == "info"
    assert payload["logger"] == "flapgap.session"
    assert payload["msg"] == "score 3"
    assert payload["data"] == {"frame": 12}


def test_human_formatter_strips_namespace() -> None:
    record = logging.LogRecord("flapgap.harness", logging.WARNING, __file__, 1, "focus lost", (), None)
    line = logger.HumanFormatter().format(record)
    assert "[W] harness: focus lost" in line


def test_setup_logging_replaces_handlers(tmp_path) -> None:
    log_path = tmp_path / "flapgap.log"
    logger.setup_logging("debug", str(log_path))
    logger.setup_logging("warning", str(log_path))
    root = logging.getLogger("flapgap")
    try:
        assert root.level == logging.WARNING
        assert len(root.handlers) == 2
        logger.get_logger("test").warning("written")
        for handler in root.handlers:
            handler.flush()
        lines = log_path.read_text(encoding="utf-8").strip().splitlines()
        assert json.loads(lines[-1])["msg"] == "written"
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()


def test_logger() -> None:
    logger._run_unit_tests()


def test_harness_run_tests_flag(monkeypatch, capsys) -> None:
    import gameplay_harness

    monkeypatch.setattr(sys, "argv", ["gameplay_harness.py", "--run-tests"])
    assert gameplay_harness.main() == 0
    assert capsys.readouterr().out.strip() == "flapgap self tests passed."
