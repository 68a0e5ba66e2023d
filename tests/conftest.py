"""
Pytest configuration for dbadmin-mysql tests.

Unit tests run against ``FakeConnection``, which answers SQL by regular expression
and records every statement it receives. Integration tests need a live server:

Environment variables:
    DBADMIN_HOST        MySQL or MariaDB host (integration tests are skipped without it)
    DBADMIN_USER=root   user
    DBADMIN_PASS        password
"""

import re
from typing import Any

import pytest

from dbadmin_mysql.capabilities import capabilities_for
from dbadmin_mysql.utils import quote_string


class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]], as_dict: bool) -> None:
        self._rows = rows if as_dict else [tuple(row.values()) for row in rows]

    def fetchall(self) -> list:
        return list(self._rows)

    def fetchone(self) -> Any:
        return self._rows[0] if self._rows else None


class FakeConnection:
    """
    Connection stand-in that answers queries from registered patterns.

    Patterns are tried in registration order; the first that matches the SQL
    (``re.search``) decides the rows returned or the error raised. Unmatched
    queries return no rows.
    """

    def __init__(self, server_info: str = "8.0.36", database: str = "shop") -> None:
        self.server_info = server_info
        self.database = database
        self.executed: list[str] = []
        self._responses: list[tuple[re.Pattern, list[dict[str, Any]], Exception | None]] = []

    def on(self, pattern: str, rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> "FakeConnection":
        self._responses.append((re.compile(pattern, re.S), rows or [], error))
        return self

    def query(self, sql: str, args: tuple = (), *, as_dict: bool = False) -> FakeCursor:
        self.executed.append(sql)
        for pattern, rows, error in self._responses:
            if pattern.search(sql):
                if error is not None:
                    raise error
                return FakeCursor(rows, as_dict)
        return FakeCursor([], as_dict)

    def rows(self, sql: str, args: tuple = ()) -> list[dict[str, Any]]:
        return self.query(sql, args, as_dict=True).fetchall()

    def values(self, sql: str, column: int = 0) -> list[Any]:
        return [row[column] for row in self.query(sql).fetchall()]

    def key_values(self, sql: str) -> dict[Any, Any]:
        return {row[0]: row[1] for row in self.query(sql).fetchall()}

    def result(self, sql: str, column: int = 0) -> Any:
        row = self.query(sql).fetchone()
        return None if row is None else row[column]

    def quote(self, value: str) -> str:
        return quote_string(value)

    def select_database(self, name: str) -> None:
        self.executed.append(f"USE `{name}`")
        self.database = name


@pytest.fixture
def fake_connection():
    """MySQL 8.0 connection stand-in."""
    return FakeConnection()


@pytest.fixture
def make_connection():
    """Factory of connection stand-ins for other server banners."""
    return FakeConnection


@pytest.fixture
def mysql8():
    return capabilities_for("8.0.36")


@pytest.fixture
def mysql57():
    return capabilities_for("5.7.44-log")


@pytest.fixture
def mysql56():
    return capabilities_for("5.6.51")


@pytest.fixture
def maria():
    return capabilities_for("10.11.6-MariaDB-log")
