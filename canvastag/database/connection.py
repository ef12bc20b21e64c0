"""
Database connection management for the canvastag board
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from ..config.settings import get_db_path
from ..exceptions import StorageError


class DatabaseConnection:
    """SQLite connection manager for a canvas board"""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path is not None else get_db_path()

    @contextmanager
    def get_connection(self):
        """Get a database connection with context manager"""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError("Could not open board database", path=str(self.db_path)) from e
        conn.row_factory = sqlite3.Row  # Enable column access by name

        try:
            yield conn
        finally:
            conn.close()

    def ensure_schema(self):
        """Ensure the board tables exist"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.get_connection() as conn:
            # Canvas objects as the host would enumerate them
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS canvas_objects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    host_type TEXT NOT NULL DEFAULT 'OTHER',
                    description TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )

            # Opaque per-owner key/value blobs (document registry, node tags)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS plugin_data (
                    owner_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (owner_id, key)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS selection (
                    position INTEGER PRIMARY KEY,
                    object_id TEXT NOT NULL
                )
            """
            )

            conn.execute("CREATE INDEX IF NOT EXISTS idx_plugin_data_key ON plugin_data(key)")

            conn.commit()
