"""
bunnyhop.py

Real entrypoint that launches the game.

Integration
- Configures logging
- Loads config (file, environment, command line overrides)
- Creates QApplication and the gameplay harness window
- Starts the Qt event loop
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import config


def build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(description="Little Bunny Hop")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a bunnyhop_config.json file.")
    argument_parser.add_argument("--difficulty", default=None, help="Difficulty preselected in the menu.")
    argument_parser.add_argument("--mute", action="store_true", help="Start with audio muted.")
    argument_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for console output.",
    )
    return argument_parser


def _apply_cli_overrides(app_config: config.AppConfig, parsed_args: argparse.Namespace) -> config.AppConfig:
    updates = {}
    if parsed_args.difficulty:
        # Validates the name before the window opens.
        updates["default_difficulty"] = app_config.difficulty(parsed_args.difficulty).name
    if parsed_args.mute:
        updates["audio"] = app_config.audio.model_copy(update={"muted": True})
    if not updates:
        return app_config
    return app_config.model_copy(update=updates)


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app_config, config_path = config.load_config(parsed_args.config)
        app_config = _apply_cli_overrides(app_config, parsed_args)
    except (OSError, ValueError, config.UnknownDifficultyError) as exception:
        print(f"bunnyhop: configuration error: {exception}", file=sys.stderr)
        return 2

    logging.getLogger(__name__).info(
        "Config loaded from %s", str(config_path) if config_path is not None else "built-in defaults"
    )

    import gameplay_harness

    return gameplay_harness.run_gui(app_config)


if __name__ == "__main__":
    raise SystemExit(main())
