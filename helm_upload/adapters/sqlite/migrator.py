"""
Schema migrations for the repository store.

Migrations are `.sql` files applied in filename order and recorded in
`_migrations`. Only the part before `-- Down` is executed.
"""

import logging
import os
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = str(Path(__file__).parent / "migrations")
DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str = DEFAULT_MIGRATIONS_DIR):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)
        conn.commit()
        return conn

    def available_migrations(self) -> list[str]:
        return sorted(f for f in os.listdir(self.migrations_dir) if f.endswith(".sql"))

    def applied_migrations(self) -> list[str]:
        conn = self._get_connection()
        try:
            rows = conn.execute("SELECT filename FROM _migrations ORDER BY filename").fetchall()
            return [row[0] for row in rows]
        finally:
            conn.close()

    def pending_migrations(self) -> list[str]:
        applied = set(self.applied_migrations())
        return [f for f in self.available_migrations() if f not in applied]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations in order. Returns the filenames applied."""
        pending = self.pending_migrations()
        if not pending:
            return []

        conn = self._get_connection()
        try:
            for filename in pending:
                logger.info("Applying migration %s to %s", filename, self.db_path)
                self._apply(conn, filename)
        finally:
            conn.close()
        return pending

    def _up_script(self, filename: str) -> str:
        path = Path(self.migrations_dir) / filename
        return path.read_text().split(DOWN_MARKER, 1)[0]

    def _apply(self, conn: sqlite3.Connection, filename: str) -> None:
        try:
            conn.executescript(self._up_script(filename))
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
