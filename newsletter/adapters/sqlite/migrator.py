import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)


class SQLiteMigrator:
    """
    Applies ``*.sql`` files from a directory in filename order, once each.

    A file may hold an ``-- Down`` section; only the part before it runs.
    """

    def __init__(self, db_path: str, migrations_dir: str | Path):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    async def _ensure_migration_table(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)
        await conn.commit()

    async def applied_migrations(self, conn: aiosqlite.Connection) -> set[str]:
        async with conn.execute("SELECT filename FROM _migrations") as cursor:
            return {row[0] for row in await cursor.fetchall()}

    def pending_files(self, applied: set[str]) -> list[str]:
        if not self.migrations_dir.is_dir():
            raise FileNotFoundError(f"Migrations directory not found: {self.migrations_dir}")
        files = sorted(p.name for p in self.migrations_dir.glob("*.sql"))
        return [f for f in files if f not in applied]

    async def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the filenames applied."""
        applied_now: list[str] = []
        async with aiosqlite.connect(self.db_path) as conn:
            await conn.execute("PRAGMA foreign_keys = ON;")
            await self._ensure_migration_table(conn)
            applied = await self.applied_migrations(conn)

            for filename in self.pending_files(applied):
                logger.info(f"Applying migration: {filename}")
                await self._apply_migration(conn, filename)
                applied_now.append(filename)

        logger.info(f"All migrations applied ({len(applied_now)} new).")
        return applied_now

    def _read_up_script(self, filename: str) -> str:
        content = (self.migrations_dir / filename).read_text()
        # File starts with the Up part
        return content.split("-- Down")[0]

    async def _apply_migration(self, conn: aiosqlite.Connection, filename: str) -> None:
        script = self._read_up_script(filename)
        # Script and bookkeeping row commit together
        escaped = filename.replace("'", "''")
        try:
            await conn.executescript(
                "BEGIN;\n"
                f"{script}\n"
                f"INSERT INTO _migrations (filename) VALUES ('{escaped}');\n"
                "COMMIT;"
            )
        except aiosqlite.Error as e:
            await conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
