"""SQLite-backed canvas so the CLI keeps a board between invocations."""

import logging
import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..database.connection import DatabaseConnection
from ..exceptions import StorageError
from .base import CanvasHost, CanvasObject, next_object_id

logger = logging.getLogger(__name__)


def _row_to_object(row: sqlite3.Row) -> CanvasObject:
    return CanvasObject(
        id=row["id"],
        name=row["name"],
        host_type=row["host_type"],
        description=row["description"],
    )


class SqliteCanvas(CanvasHost):
    """Canvas whose objects, plugin data and selection are rows in a board database."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        super().__init__()
        self._db = DatabaseConnection(Path(db_path) if db_path else None)
        self._db.ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db.db_path

    def add_object(
        self,
        name: str,
        host_type: str = "STICKY",
        object_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CanvasObject:
        with self._db.get_connection() as conn:
            if object_id is None:
                ids = [row["id"] for row in conn.execute("SELECT id FROM canvas_objects")]
                object_id = next_object_id(ids)
            try:
                conn.execute(
                    """
                    INSERT INTO canvas_objects (id, name, host_type, description)
                    VALUES (?, ?, ?, ?)
                """,
                    (object_id, name, host_type, description),
                )
            except sqlite3.IntegrityError as e:
                raise StorageError("Object id already exists", object_id=object_id) from e
            conn.commit()
        logger.debug(f"Added canvas object {object_id} ({host_type})")
        return CanvasObject(id=object_id, name=name, host_type=host_type, description=description)

    def remove_object(self, object_id: str) -> bool:
        with self._db.get_connection() as conn:
            cursor = conn.execute("DELETE FROM canvas_objects WHERE id = ?", (object_id,))
            conn.execute("DELETE FROM plugin_data WHERE owner_id = ?", (object_id,))
            conn.commit()
            removed = cursor.rowcount > 0

        if removed and object_id in self.get_selection():
            self.set_selection([oid for oid in self.get_selection() if oid != object_id])
        return removed

    def iter_objects(self) -> Iterator[CanvasObject]:
        with self._db.get_connection() as conn:
            rows = conn.execute(
                "SELECT id, name, host_type, description FROM canvas_objects ORDER BY rowid"
            ).fetchall()
        return iter([_row_to_object(row) for row in rows])

    def get_object(self, object_id: str) -> Optional[CanvasObject]:
        with self._db.get_connection() as conn:
            row = conn.execute(
                "SELECT id, name, host_type, description FROM canvas_objects WHERE id = ?",
                (object_id,),
            ).fetchone()
        return _row_to_object(row) if row else None

    def get_data(self, owner_id: str, key: str) -> str:
        try:
            with self._db.get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM plugin_data WHERE owner_id = ? AND key = ?",
                    (owner_id, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError("Could not read plugin data", owner_id=owner_id, key=key) from e
        return row["value"] if row else ""

    def set_data(self, owner_id: str, key: str, value: str) -> None:
        try:
            with self._db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO plugin_data (owner_id, key, value, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(owner_id, key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """,
                    (owner_id, key, value),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError("Could not write plugin data", owner_id=owner_id, key=key) from e

    def get_selection(self) -> List[str]:
        with self._db.get_connection() as conn:
            rows = conn.execute("SELECT object_id FROM selection ORDER BY position").fetchall()
        return [row["object_id"] for row in rows]

    def _store_selection(self, object_ids: List[str]) -> None:
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM selection")
            conn.executemany(
                "INSERT INTO selection (position, object_id) VALUES (?, ?)",
                list(enumerate(object_ids)),
            )
            conn.commit()
