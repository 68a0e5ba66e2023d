"""
Abstract interfaces for SQL dialect adapters.

A dialect adapter answers schema introspection requests (:class:`SchemaIntrospector`)
and turns table, index and data changes into statements (:class:`DdlSynthesizer`).
Adapters for other servers implement the same two interfaces; a class can also be
registered with ``SchemaIntrospector.register`` without inheriting from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from ..entities import (
    Column,
    ForeignKey,
    Index,
    Partitioning,
    Routine,
    RoutineSummary,
    Table,
    TableAlter,
    TableCreate,
    Trigger,
)


class SchemaIntrospector(ABC):
    """Read-only access to the schema of the current database."""

    # =========================================================================
    # Tables
    # =========================================================================

    @abstractmethod
    def list_tables(self) -> dict[str, str]:
        """
        List the tables and views of the current database.

        Returns
        -------
        dict[str, str]
            Table name to table type (``BASE TABLE`` or ``VIEW``), ordered by name.
        """
        ...

    @abstractmethod
    def table_statuses(self, fast: bool = False) -> dict[str, Table]:
        """
        Read the status of every table of the current database.

        Parameters
        ----------
        fast : bool, optional
            If True, only read the name, engine and comment.

        Returns
        -------
        dict[str, Table]
            Table name to status.
        """
        ...

    @abstractmethod
    def table_status(self, table: str, fast: bool = False) -> Table | None:
        """Read the status of one table, or None if it does not exist."""
        ...

    @abstractmethod
    def table_columns(self, table: str) -> dict[str, Column]:
        """
        Read the columns of a table.

        Parameters
        ----------
        table : str
            Table name.

        Returns
        -------
        dict[str, Column]
            Column name to column, in table order.
        """
        ...

    @abstractmethod
    def table_indexes(self, table: str) -> dict[str, Index]:
        """Read the indexes of a table, keyed by index name."""
        ...

    @abstractmethod
    def table_foreign_keys(self, table: str) -> dict[str, ForeignKey]:
        """Read the foreign keys of a table, keyed by constraint name."""
        ...

    @abstractmethod
    def partitions_info(self, table: str) -> Partitioning | None:
        """Read the partitioning of a table, or None if it is not partitioned."""
        ...

    @abstractmethod
    def view_definition(self, view: str) -> str:
        """Return the SELECT statement a view is defined by."""
        ...

    # =========================================================================
    # Routines and triggers
    # =========================================================================

    @abstractmethod
    def routine_signature(self, name: str, kind: str) -> Routine | None:
        """
        Read the signature of a stored routine.

        Parameters
        ----------
        name : str
            Routine name.
        kind : str
            ``FUNCTION`` or ``PROCEDURE``.

        Returns
        -------
        Routine or None
            The routine, or None if it does not exist or cannot be read.
        """
        ...

    @abstractmethod
    def routine_list(self) -> list[RoutineSummary]:
        """List the stored routines of the current database."""
        ...

    @abstractmethod
    def trigger_list(self, table: str) -> dict[str, Trigger]:
        """List the triggers of a table, keyed by trigger name."""
        ...

    @abstractmethod
    def trigger(self, name: str) -> Trigger | None:
        """Read one trigger, or None if it does not exist."""
        ...


class DdlSynthesizer(ABC):
    """Statement generation and execution for schema and data changes."""

    # =========================================================================
    # Table Definition
    # =========================================================================

    @abstractmethod
    def create_table(self, table: TableCreate) -> str:
        """
        Create a table.

        Parameters
        ----------
        table : TableCreate
            Name, columns, foreign keys and options of the new table.

        Returns
        -------
        str
            The executed statement.
        """
        ...

    @abstractmethod
    def alter_table(self, alter: TableAlter) -> list[str]:
        """
        Alter a table.

        Parameters
        ----------
        alter : TableAlter
            Requested changes.

        Returns
        -------
        list[str]
            The executed statements; empty when nothing changed.
        """
        ...

    @abstractmethod
    def alter_indexes(self, table: str, add: Iterable[Index], drop: Iterable[Index | str]) -> str:
        """Drop and add indexes of a table and return the executed statement."""
        ...

    @abstractmethod
    def drop_tables(self, tables: Iterable[str]) -> None:
        ...

    @abstractmethod
    def drop_views(self, views: Iterable[str]) -> None:
        ...

    @abstractmethod
    def truncate_tables(self, tables: Iterable[str]) -> None:
        ...

    # =========================================================================
    # Databases
    # =========================================================================

    @abstractmethod
    def rename_database(self, name: str, collation: str = "") -> bool:
        """
        Rename the current database.

        Parameters
        ----------
        name : str
            New database name.
        collation : str, optional
            Collation of the new database.

        Returns
        -------
        bool
            True if the database was renamed.
        """
        ...

    @abstractmethod
    def move_tables(self, tables: Iterable[str], views: Iterable[str], target: str) -> bool:
        """Move tables and views to another database; False when not possible."""
        ...

    # =========================================================================
    # Data and queries
    # =========================================================================

    @abstractmethod
    def upsert_rows(self, table: str, rows: list[Mapping[str, Any]]) -> int:
        """
        Insert rows, updating those that collide on a unique key.

        Parameters
        ----------
        table : str
            Table name.
        rows : list[Mapping[str, Any]]
            Column name to value, one mapping per row.

        Returns
        -------
        int
            Number of statements executed.
        """
        ...

    @abstractmethod
    def explain_query(self, query: str) -> list[dict[str, Any]]:
        """Return the execution plan of a query."""
        ...

    @abstractmethod
    def slow_query(self, query: str, timeout: float | None = None) -> str | None:
        """Rewrite a query to be aborted by the server after ``timeout`` seconds, if possible."""
        ...
