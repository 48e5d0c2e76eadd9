"""SQLite-backed persistence for Google-linked user accounts."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import User

_PUBLIC_COLUMNS = "id, name, email, image_url, google_id, created_at, updated_at"


class StoreError(Exception):
    """Raised when the user store fails for a reason other than a duplicate."""


class UserConflictError(StoreError):
    """Raised when a user with the same Google id already exists."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str | Path]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "signon.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _is_google_id_conflict(exc: sqlite3.IntegrityError) -> bool:
    return "users.google_id" in str(exc)


class Database:
    """Simple wrapper around SQLite for persisting users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    google_id TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(
        self,
        name: str,
        email: str,
        image_url: str,
        google_id: str,
    ) -> User:
        """Insert a new user linked to ``google_id``.

        Raises :class:`UserConflictError` when the Google id is already taken and
        :class:`StoreError` for any other database failure.
        """

        created_at = _current_timestamp()
        timestamp = _serialize_datetime(created_at)

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO users (name, email, image_url, google_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name, email, image_url, google_id, timestamp, timestamp),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if _is_google_id_conflict(exc):
                raise UserConflictError("A user with that Google id already exists") from exc
            raise StoreError(f"Failed to create user: {exc}") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to create user: {exc}") from exc

        if user_id is None:
            raise StoreError("Database did not return an id for the new user")

        return User(
            id=int(user_id),
            name=name,
            email=email,
            image_url=image_url,
            google_id=google_id,
            created_at=created_at,
            updated_at=created_at,
        )

    def find_user_by_google_id(self, google_id: str) -> Optional[User]:
        row = self._fetch_one(
            f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE google_id = ?",
            (google_id,),
        )
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user(self, user_id: int) -> Optional[User]:
        row = self._fetch_one(f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = ?", (user_id,))
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        try:
            with self._connect() as conn:
                rows = conn.execute(f"SELECT {_PUBLIC_COLUMNS} FROM users ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list users: {exc}") from exc
        return [self._row_to_user(row) for row in rows]

    def _fetch_one(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(query, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"User lookup failed: {exc}") from exc

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            image_url=str(row["image_url"]),
            google_id=str(row["google_id"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )


__all__ = ["Database", "StoreError", "UserConflictError", "resolve_database_path"]
