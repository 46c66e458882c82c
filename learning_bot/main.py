from __future__ import annotations

import argparse
import logging

import uvicorn
from telegram import Update

from learning_bot.api.app import create_app
from learning_bot.api.container import build_memory_container, build_postgres_container
from learning_bot.bot.app import create_application
from learning_bot.config import ConfigError, load_api_settings, load_bot_settings
from learning_bot.db.migrate import apply_migrations
from learning_bot.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Vocabulary learning service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    api = subparsers.add_parser("api", help="Run the HTTP backend.")
    api.add_argument(
        "--migrate",
        action="store_true",
        help="Apply SQL migrations before starting the backend.",
    )
    api.add_argument(
        "--memory",
        action="store_true",
        help="Keep data in process memory instead of PostgreSQL.",
    )

    subparsers.add_parser("bot", help="Run the Telegram bot.")
    return parser


def run_api(args: argparse.Namespace) -> None:
    try:
        settings = load_api_settings(require_database=not args.memory)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    configure_logging(settings.log_level)
    logger.info("Loaded configuration: %s", settings.safe_log_values())
    if args.memory:
        container = build_memory_container(settings)
    else:
        if args.migrate:
            applied = apply_migrations(settings.database_url)
            logger.info("Migrations applied: %s", ", ".join(applied) or "none pending")
        container = build_postgres_container(settings)

    app = create_app(container)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


def run_bot() -> None:
    try:
        settings = load_bot_settings()
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    configure_logging(settings.log_level)
    logger.info("Loaded configuration: %s", settings.safe_log_values())
    application = create_application(settings)
    application.run_polling(allowed_updates=Update.ALL_TYPES)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "api":
        run_api(args)
    else:
        run_bot()


if __name__ == "__main__":
    main()
