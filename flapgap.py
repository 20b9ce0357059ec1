"""
flapgap.py

Real entrypoint that launches the playable window.

Integration
- Loads config (file, env overrides, command line overrides)
- Configures logging
- Creates QApplication and the harness window, which drives the session frame loop
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

import config as config_module
from logger import get_logger, setup_logging

logger = get_logger("main")


def build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(description="flapgap arcade session")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file.")
    argument_parser.add_argument("--seed", type=int, default=None, help="Seed for gap placement.")
    argument_parser.add_argument("--log-level", type=str, default=None, help="Override the configured log level.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    return argument_parser


def _load_app_config(config_path: Optional[Path]) -> config_module.AppConfig:
    if config_path is not None:
        app_config, _resolved = config_module.load_config(config_path)
    else:
        app_config, _resolved = config_module.get_config()
    return app_config


def main() -> int:
    parsed_args = build_argument_parser().parse_args()

    try:
        app_config = _load_app_config(parsed_args.config)
        log_level = parsed_args.log_level or app_config.logging.level
        setup_logging(log_level, app_config.logging.file)
    except Exception as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    from PyQt6.QtWidgets import QApplication

    import gameplay_harness

    qt_application = QApplication(sys.argv)

    main_window = gameplay_harness.create_harness_window(app_config=app_config, seed=parsed_args.seed)
    main_window.resize(int(app_config.playfield.width) + 24, int(app_config.playfield.height) + 64)
    main_window.show()

    if parsed_args.fullscreen:
        main_window.showFullScreen()

    logger.info("Window shown at %dx%d", main_window.width(), main_window.height())
    return int(qt_application.exec())


if __name__ == "__main__":
    raise SystemExit(main())
