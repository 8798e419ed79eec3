#!/usr/bin/env python3
"""CLI for Tutor Directory API management tasks.

Usage (from the api/ directory, next to alembic.ini):
    python -m cli <command>

Commands:
    migrate [target]    Apply migrations (default: head)
    downgrade [target]  Revert migrations (default: -1)
    current             Show current revision
    history             Show revision history
"""

import argparse
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from core.logger import configure_logging, get_logger

logger = get_logger(__name__)

API_DIR = Path(__file__).resolve().parent


def get_alembic_config(api_dir: Path | None = None) -> Config:
    """Alembic config for the migrations beside this module.

    Raises FileNotFoundError when alembic.ini or alembic/env.py is missing,
    as in a wheel install where "alembic" resolves to the library itself.
    """
    api_dir = api_dir or API_DIR
    ini_path = api_dir / "alembic.ini"
    script_location = api_dir / "alembic"
    if not ini_path.is_file() or not (script_location / "env.py").is_file():
        raise FileNotFoundError(
            f"Migrations not found under {api_dir}. "
            "Run `python -m cli` from the api/ directory of a source checkout."
        )

    cfg = Config(str(ini_path))
    # Absolute script_location so the CLI works from any working directory
    cfg.set_main_option("script_location", str(script_location))
    return cfg


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tutor Directory API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    migrate = sub.add_parser("migrate", help="Apply database migrations")
    migrate.add_argument(
        "target", nargs="?", default="head", help="Target revision (default: head)"
    )

    downgrade = sub.add_parser("downgrade", help="Revert database migrations")
    downgrade.add_argument(
        "target", nargs="?", default="-1", help="Target revision (default: -1)"
    )

    sub.add_parser("current", help="Show current revision")
    sub.add_parser("history", help="Show revision history")
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    try:
        cfg = get_alembic_config()
    except FileNotFoundError as e:
        logger.error("migrations.not_found", error=str(e))
        return 1

    match args.command:
        case "migrate":
            logger.info("migrations.upgrade.started", target=args.target)
            command.upgrade(cfg, args.target)
            logger.info("migrations.upgrade.complete", target=args.target)
        case "downgrade":
            logger.info("migrations.downgrade.started", target=args.target)
            command.downgrade(cfg, args.target)
            logger.info("migrations.downgrade.complete", target=args.target)
        case "current":
            command.current(cfg)
        case "history":
            command.history(cfg)
    return 0


if __name__ == "__main__":
    sys.exit(main())
