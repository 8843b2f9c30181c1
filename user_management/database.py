"""SQLite-backed persistence for managers and user records."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional

from .config import DEFAULT_MANAGERS
from .exceptions import StorageError
from .models import Manager, User

logger = logging.getLogger("user_management.database")

UPDATABLE_COLUMNS = ("full_name", "mob_num", "pan_num", "manager_id", "is_active")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _parse_timestamp(value: str) -> datetime:
    # CURRENT_TIMESTAMP is UTC without an offset.
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Simple wrapper around SQLite for persisting managers and users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection whose statements commit together or not at all."""

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to open database {self._path}: {exc}") from exc

        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    def initialize(self, managers: Iterable[Manager] = DEFAULT_MANAGERS) -> None:
        """Create the required tables if they do not already exist and seed managers."""

        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS managers (
                    manager_id TEXT PRIMARY KEY,
                    is_active BOOLEAN DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    full_name TEXT NOT NULL,
                    mob_num TEXT NOT NULL,
                    pan_num TEXT NOT NULL,
                    manager_id TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    is_active BOOLEAN DEFAULT 1,
                    FOREIGN KEY (manager_id) REFERENCES managers(manager_id)
                );

                CREATE INDEX IF NOT EXISTS idx_users_mob_num ON users(mob_num);
                CREATE INDEX IF NOT EXISTS idx_users_manager_id ON users(manager_id);
                """
            )
            conn.executemany(
                "INSERT OR IGNORE INTO managers (manager_id, is_active) VALUES (?, ?)",
                [(manager.manager_id, int(manager.is_active)) for manager in managers],
            )

        logger.info("Database initialised at %s", self._path)

    # ------------------------------------------------------------------
    # Managers
    # ------------------------------------------------------------------
    def get_manager(self, manager_id: str) -> Optional[Manager]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM managers WHERE manager_id = ?",
                (manager_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_manager(row)

    def list_managers(self) -> List[Manager]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM managers ORDER BY manager_id").fetchall()
        return [self._row_to_manager(row) for row in rows]

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def insert_user(
        self,
        user_id: str,
        *,
        full_name: str,
        mob_num: str,
        pan_num: str,
        manager_id: str,
    ) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (user_id, full_name, mob_num, pan_num, manager_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, full_name, mob_num, pan_num, manager_id),
            )

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user with ``user_id`` whether or not it is active."""

        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def find_users(
        self,
        *,
        user_id: Optional[str] = None,
        mob_num: Optional[str] = None,
        manager_id: Optional[str] = None,
    ) -> List[User]:
        """Return active users matching every supplied filter."""

        query = "SELECT * FROM users WHERE is_active = 1"
        params: List[object] = []
        for column, value in (("user_id", user_id), ("mob_num", mob_num), ("manager_id", manager_id)):
            if value:
                query += f" AND {column} = ?"
                params.append(value)

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_user(row) for row in rows]

    def update_users(self, user_ids: Iterable[str], fields: Mapping[str, object]) -> int:
        """Apply ``fields`` to every listed user in a single transaction.

        Returns the number of rows that matched. Any failure rolls back the
        whole batch.
        """

        unknown = set(fields) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Columns cannot be updated: {', '.join(sorted(unknown))}")

        assignments: List[str] = []
        values: List[object] = []
        for column in UPDATABLE_COLUMNS:
            if column not in fields:
                continue
            value = fields[column]
            if column == "is_active":
                value = int(bool(value))
            assignments.append(f"{column} = ?")
            values.append(value)

        if not assignments:
            return 0

        assignments.append("updated_at = CURRENT_TIMESTAMP")
        query = f"UPDATE users SET {', '.join(assignments)} WHERE user_id = ?"

        matched = 0
        with self._transaction() as conn:
            for user_id in user_ids:
                cursor = conn.execute(query, (*values, user_id))
                matched += cursor.rowcount
        return matched

    def delete_users(self, *, user_id: Optional[str] = None, mob_num: Optional[str] = None) -> int:
        """Permanently remove users matching ``user_id`` OR ``mob_num``."""

        predicates: List[str] = []
        params: List[object] = []
        if user_id:
            predicates.append("user_id = ?")
            params.append(user_id)
        if mob_num:
            predicates.append("mob_num = ?")
            params.append(mob_num)
        if not predicates:
            return 0

        with self._transaction() as conn:
            cursor = conn.execute(f"DELETE FROM users WHERE {' OR '.join(predicates)}", params)
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_manager(self, row: sqlite3.Row) -> Manager:
        return Manager(
            manager_id=str(row["manager_id"]),
            is_active=bool(row["is_active"]),
        )

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            user_id=str(row["user_id"]),
            full_name=str(row["full_name"]),
            mob_num=str(row["mob_num"]),
            pan_num=str(row["pan_num"]),
            manager_id=row["manager_id"],
            created_at=_parse_timestamp(str(row["created_at"])),
            updated_at=_parse_timestamp(str(row["updated_at"])),
            is_active=bool(row["is_active"]),
        )


__all__ = ["Database", "UPDATABLE_COLUMNS"]
