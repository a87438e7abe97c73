"""
Subtune - Entry point

Terminal client for Subsonic-compatible music servers.
"""

import argparse
import sys
from pathlib import Path

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtune",
        description="Subtune - Terminal client for Subsonic music servers",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml (default: project root, cwd, then ~/.config/subtune)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Play the first server playlist without the terminal UI",
    )
    return parser


def main() -> None:
    """Main entry point for the subtune command."""
    args = build_parser().parse_args()

    from .main import run

    sys.exit(run(config_path=args.config, log_level=args.log_level, headless=args.no_ui))


if __name__ == "__main__":
    main()
