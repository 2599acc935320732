# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import sqlite3
from contextlib import contextmanager
from os import PathLike
from typing import Any, Iterator, Sequence, Union

from typing_extensions import Self

from .err import StorageError


class Statement:
    """Statement is a reusable INSERT statement bound to a :py:class:`Database`.

    Compiled statements are cached by the sqlite3 module, keyed by the SQL text.
    """

    def __init__(self, conn: sqlite3.Connection, sql: str) -> None:
        self.conn = conn
        self.sql = sql
        self.rows = 0
        """rows counts successful executions of the statement."""

    def execute(self, params: Sequence[Any]) -> None:
        try:
            self.conn.execute(self.sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"{self.sql!r} with {tuple(params)!r} failed: {e}") from e
        self.rows += 1


class Database:
    """Database wraps a SQLite connection with explicit transaction control.

    Every :py:class:`sqlite3.Error` is re-raised as :py:exc:`StorageError`.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        # Transactions are opened and closed explicitly
        conn.isolation_level = None
        self.conn = conn

    @classmethod
    def open(cls, path: Union[str, "PathLike[str]"]) -> Self:
        try:
            return cls(sqlite3.connect(path))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open SQLite database {str(path)!r}: {e}") from e

    def execute_ddl(self, sql: str) -> None:
        self._execute(sql)

    def begin(self) -> None:
        self._execute("BEGIN")

    def commit(self) -> None:
        self._execute("COMMIT")

    def rollback(self) -> None:
        if self.conn.in_transaction:
            self._execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """transaction runs the body in a transaction, which is committed
        if the body succeeds and rolled back otherwise."""
        self.begin()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def prepare(self, sql: str) -> Statement:
        return Statement(self.conn, sql)

    def configure_bulk_load(self) -> None:
        """configure_bulk_load trades durability for insert speed.
        Must be called outside of a transaction."""
        self._execute("PRAGMA synchronous = OFF")
        self._execute("PRAGMA journal_mode = MEMORY")

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def _execute(self, sql: str) -> None:
        try:
            self.conn.execute(sql)
        except sqlite3.Error as e:
            raise StorageError(f"{sql!r} failed: {e}") from e
