"""
Bulk insert-or-update in batches bounded by the server packet size.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pymysql as client

from .errors import BatchExecutionError, DbAdminError
from .settings import config
from .utils import escape_id

logger = logging.getLogger(__name__.split(".")[0])

SEPARATOR = ",\n"


def insert_or_update_sql(table: str, rows: list[Mapping[str, str]]) -> tuple[str, str, list[str]]:
    """
    Split a bulk upsert into a statement prefix, suffix and one value tuple per row.

    The columns are those of the first row; every row must render the same columns.

    Args:
        table: Table name.
        rows: Column name to SQL expression (already quoted), one mapping per row.

    Returns:
        ``(prefix, suffix, fragments)`` where the statement for a batch of fragments is
        ``prefix + ",\\n".join(fragments) + suffix``.
    """
    columns = [escape_id(name) for name in rows[0]]
    prefix = f"INSERT INTO {escape_id(table)} ({', '.join(columns)}) VALUES "
    suffix = " ON DUPLICATE KEY UPDATE " + ", ".join(f"{column} = VALUES({column})" for column in columns)
    fragments = ["(" + ", ".join(row.values()) + ")" for row in rows]
    return prefix, suffix, fragments


class UpsertBatcher:
    """
    Accumulate value tuples and execute them as few statements as fit in a packet.

    Before a fragment is added, the pending batch is executed if the statement would
    otherwise exceed ``max_packet_size`` characters. A batch always holds at least one
    fragment, so a single oversized row is still sent on its own. Use as a context
    manager or call :meth:`close` to execute the last batch.

    Args:
        connection: Object with a ``query(sql)`` method.
        prefix: Statement text before the value tuples.
        suffix: Statement text after the value tuples.
        max_packet_size: Flush threshold; defaults to ``config["query.max_packet_size"]``.

    Attributes:
        executed: Number of statements executed so far.
    """

    def __init__(self, connection: Any, prefix: str, suffix: str = "", max_packet_size: int | None = None) -> None:
        self.connection = connection
        self.prefix = prefix
        self.suffix = suffix
        self.max_packet_size = max_packet_size if max_packet_size is not None else config["query.max_packet_size"]
        self.executed = 0
        self._values: list[str] = []
        self._length = 0

    def __enter__(self) -> "UpsertBatcher":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.close()

    def add(self, fragment: str) -> None:
        """Queue a value tuple, executing the pending batch first if it would overflow."""
        if self._values and (
            len(self.prefix) + self._length + len(fragment) + len(self.suffix) > self.max_packet_size
        ):
            self.flush()
        self._values.append(fragment)
        self._length += len(fragment) + len(SEPARATOR)

    def extend(self, fragments: Iterable[str]) -> None:
        for fragment in fragments:
            self.add(fragment)

    def flush(self) -> None:
        """
        Execute the pending batch.

        Raises:
            BatchExecutionError: If the statement fails; ``executed`` counts the batches
                that succeeded before it, which stay committed.
        """
        statement = self.prefix + SEPARATOR.join(self._values) + self.suffix
        logger.debug(f"Flushing {len(self._values)} rows in {len(statement)} characters")
        try:
            self.connection.query(statement)
        except (DbAdminError, client.err.Error) as err:
            raise BatchExecutionError(
                f"Batch {self.executed + 1} failed after {self.executed} statements", executed=self.executed
            ) from err
        self.executed += 1
        self._values = []
        self._length = 0

    def close(self) -> None:
        """Execute the last batch, if any row is pending."""
        if self._values:
            self.flush()


def upsert(connection: Any, table: str, rows: list[Mapping[str, str]], max_packet_size: int | None = None) -> int:
    """
    Insert rows, updating the existing rows that collide on a unique key.

    Args:
        connection: Object with a ``query(sql)`` method.
        table: Table name.
        rows: Column name to SQL expression (already quoted), one mapping per row.
        max_packet_size: Flush threshold; defaults to ``config["query.max_packet_size"]``.

    Returns:
        The number of statements executed.
    """
    if not rows:
        return 0
    prefix, suffix, fragments = insert_or_update_sql(table, rows)
    with UpsertBatcher(connection, prefix, suffix, max_packet_size) as batcher:
        batcher.extend(fragments)
    return batcher.executed
