"""SQLite storage adapter.

Implements the core PolicyStorePort using a simple SQLite database.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List

from core.errors import StoreUnavailable
from core.models import DEFAULT_LINK_POLICY, GroupPolicy

SQLITE_SCHEME = "sqlite:///"


def database_path(database_url: str) -> str:
    """Turn ``sqlite:///path`` (or a bare path) into a filesystem path."""

    if database_url.startswith(SQLITE_SCHEME):
        return database_url[len(SQLITE_SCHEME):]
    if "://" in database_url:
        raise ValueError(f"Unsupported database URL: {database_url}")
    return database_url


class SQLitePolicyStore:
    """Thin SQLite wrapper that satisfies the PolicyStorePort contract.

    The schema is created on the first call that reaches the database, so a
    store that was unreachable at startup starts working once it comes back.
    """

    def __init__(self, database_url: str, timeout: float = 10.0) -> None:
        self._db_path = database_path(database_url)
        self._timeout = timeout
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        directory = os.path.dirname(self._db_path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            return sqlite3.connect(self._db_path, timeout=self._timeout)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Cannot open {self._db_path}: {exc}") from exc

    @staticmethod
    def _create_schema(conn: sqlite3.Connection) -> None:
        # group_id is the primary key so concurrent first references can
        # never create a second row for the same group.
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS group_policies (
                group_id INTEGER PRIMARY KEY,
                link_policy INTEGER NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
            """
        )

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction; sqlite3 errors become StoreUnavailable."""

        conn = self._connect()
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                if not self._schema_ready:
                    self._create_schema(conn)
                yield conn
            self._schema_ready = True
        except sqlite3.Error as exc:
            raise StoreUnavailable(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the database directory and the policy table if they do not exist.

        Tables:
        - group_policies: one row per group; link_policy=1 disallows links
        """

        with self._transaction() as conn:
            self._create_schema(conn)

    def get_or_create(self, group_id: int) -> GroupPolicy:
        """Return the group's policy, inserting the default on first reference."""

        now = datetime.now(timezone.utc)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO group_policies (group_id, link_policy, updated_at)
                VALUES (?, ?, ?)
                """,
                (group_id, int(DEFAULT_LINK_POLICY), now.isoformat()),
            )
            row = conn.execute(
                "SELECT link_policy FROM group_policies WHERE group_id = ?",
                (group_id,),
            ).fetchone()
        return GroupPolicy(group_id=group_id, link_policy=bool(row["link_policy"]))

    def set_link_policy(self, group_id: int, value: bool) -> None:
        """Upsert the link policy for a group."""

        now = datetime.now(timezone.utc)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO group_policies (group_id, link_policy, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(group_id) DO UPDATE SET
                    link_policy = excluded.link_policy,
                    updated_at = excluded.updated_at
                """,
                (group_id, int(value), now.isoformat()),
            )

    def list_policies(self) -> List[GroupPolicy]:
        """Return every stored policy ordered by group id."""

        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT group_id, link_policy FROM group_policies ORDER BY group_id"
            ).fetchall()
        return [GroupPolicy(group_id=row["group_id"], link_policy=bool(row["link_policy"])) for row in rows]
