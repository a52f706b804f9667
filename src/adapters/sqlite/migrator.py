"""
Forward-only SQLite schema migrator.

Files in the migrations directory are applied in filename order. Each file
may carry a ``-- Down`` section; only the text before it is executed.
Applied filenames are recorded in ``_migrations`` so reruns are no-ops.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str | Path, migrations_dir: str | Path):
        self.db_path = str(db_path)
        self.migrations_dir = Path(migrations_dir)

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _ensure_migration_table(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)

    def pending(self, conn: sqlite3.Connection) -> list[Path]:
        applied = {row[0] for row in conn.execute("SELECT filename FROM _migrations")}
        return [p for p in sorted(self.migrations_dir.glob("*.sql")) if p.name not in applied]

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the filenames applied."""
        conn = self._get_connection()
        try:
            self._ensure_migration_table(conn)
            applied_now: list[str] = []
            for path in self.pending(conn):
                logger.info("Applying migration: %s", path.name)
                self._apply_migration(conn, path)
                applied_now.append(path.name)

            logger.debug("Migrations up to date (%d applied this run)", len(applied_now))
            return applied_now
        finally:
            conn.close()

    @staticmethod
    def up_script(text: str) -> str:
        return text.split(DOWN_MARKER, 1)[0]

    def _apply_migration(self, conn: sqlite3.Connection, path: Path) -> None:
        script = self.up_script(path.read_text())
        try:
            conn.executescript(script)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (path.name,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {path.name} failed: {e}") from e
