import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from newsletter.adapters.sqlite.migrator import SQLiteMigrator
from newsletter.api.main import create_app
from newsletter.config.loader import load_config
from newsletter.config.models import AppConfig

logger = logging.getLogger("cli")

CONFIG_DIR = "config"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config(args: argparse.Namespace) -> AppConfig:
    try:
        return load_config(Path(args.config_dir), environment=args.environment)
    except (FileNotFoundError, ValueError) as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


def setup_logging(config: AppConfig) -> None:
    logging.basicConfig(level=config.application.log_level, format=LOG_FORMAT)


def migrate(config: AppConfig) -> list[str]:
    db_path = Path(config.database.path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(str(db_path), config.database.migrations_dir)
    return asyncio.run(migrator.run_migrations())


def handle_migrate(config: AppConfig, args: argparse.Namespace) -> None:
    applied = migrate(config)
    print(f"Applied {len(applied)} migrations.")


def handle_serve(config: AppConfig, args: argparse.Namespace) -> None:
    if not args.skip_migrations:
        migrate(config)
    app = create_app(config)
    uvicorn.run(
        app,
        host=config.application.host,
        port=config.application.port,
        log_config=None,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Newsletter service CLI")
    parser.add_argument(
        "--config-dir",
        default=CONFIG_DIR,
        help="Directory holding base.yaml; a relative migrations_dir is resolved against it",
    )
    parser.add_argument(
        "--environment",
        default=None,
        help="Config environment (default: $APP_ENVIRONMENT or 'local')",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument(
        "--skip-migrations", action="store_true", help="Do not migrate before serving"
    )

    args = parser.parse_args()
    config = get_config(args)
    setup_logging(config)

    if args.command == "migrate":
        handle_migrate(config, args)
    elif args.command == "serve":
        handle_serve(config, args)


if __name__ == "__main__":
    main()
