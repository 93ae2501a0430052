import asyncio
from pathlib import Path

import pytest

from newsletter.adapters.sqlite.migrator import SQLiteMigrator
from newsletter.config.models import AppConfig

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


@pytest.fixture
def migrations_dir() -> Path:
    return MIGRATIONS_DIR


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Fresh, fully migrated SQLite database file."""
    path = str(tmp_path / "newsletter.db")
    asyncio.run(SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations())
    return path


@pytest.fixture
def app_config(db_path: str) -> AppConfig:
    return AppConfig.model_validate({
        "application": {"base_url": "http://127.0.0.1:8000"},
        "database": {"path": db_path, "max_connections": 4},
        "email_client": {
            "backend": "dev",
            "sender_email": "newsletter@example.com",
        },
    })
