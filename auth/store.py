"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_record is the mapper. The auth core
never touches SQL directly -- it only sees the UserLookup protocol below,
so any object with a find_user_by_identifier() method can stand in.

Security:
  All queries use bound parameters. No f-strings in SQL.
  The store never compares secrets; it returns the stored form as-is.

subject_id is the string form of the row's primary key. JWT "sub" claims
must be strings, so the conversion happens once, here.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import UserRecord


class UserLookup(Protocol):
    """Read-only capability the credential validator depends on.

    Must be safe to call concurrently. May raise a store-specific error;
    callers must not treat that as "user not found".
    """

    def find_user_by_identifier(self, identifier: str) -> UserRecord | None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("identifier", String(255), nullable=False, unique=True),
    Column("secret", Text, nullable=False),  # stored form, see Settings.secret_scheme
    Column("display_name", String(255)),
    Column("attributes", Text),  # JSON object, opaque to the auth core
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so concurrent logins read without blocking writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserRecord entities.

    Usage:
        store = UserStore("sqlite:///users.db")
        store.create_user("alice@example.com", "hunter2", display_name="alice")
        record = store.find_user_by_identifier("alice@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def create_user(
        self,
        identifier: str,
        secret: str,
        display_name: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> UserRecord:
        """Insert a new user and return it with its assigned subject_id.

        secret must already be in the stored form for the configured scheme.
        Raises sqlalchemy.exc.IntegrityError if the identifier already exists.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    identifier=identifier,
                    secret=secret,
                    display_name=display_name,
                    attributes=json.dumps(attributes) if attributes else None,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            row = conn.execute(_users.select().where(_users.c.identifier == identifier)).fetchone()
        return _row_to_record(row)

    def find_user_by_identifier(self, identifier: str) -> UserRecord | None:
        """Look up a user by exact identifier (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.identifier == identifier)).fetchone()
        return _row_to_record(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_record(row) -> UserRecord:
    return UserRecord(
        identifier=row.identifier,
        secret=row.secret,
        subject_id=str(row.id),
        display_name=row.display_name,
        attributes=json.loads(row.attributes) if row.attributes else {},
        created_at=row.created_at,
    )
