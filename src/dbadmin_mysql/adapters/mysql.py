"""
MySQL and MariaDB adapter.

This module binds the row mappers, the signature and constraint parsers and the
statement builders to a live connection. The connection only needs to provide
``query``, ``rows``, ``values``, ``key_values``, ``result``, ``quote``,
``server_info``, ``database`` and ``select_database``; see
:class:`dbadmin_mysql.connection.Connection`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

import pymysql as client

from .. import declare, query
from ..capabilities import Capabilities, capabilities_for
from ..entities import (
    Column,
    ForeignKey,
    Index,
    Partitioning,
    Routine,
    RoutineSummary,
    Select,
    Table,
    TableAlter,
    TableCreate,
    Trigger,
)
from ..errors import (
    BatchExecutionError,
    DbAdminError,
    DuplicateError,
    ParseError,
    UnknownAttributeError,
    UnsupportedFeatureError,
    shorten_error_message,
)
from ..foreign_keys import parse_foreign_keys
from ..heading import (
    parse_check_constraints,
    parse_column,
    parse_column_legacy,
    parse_indexes,
    parse_partitioning,
    parse_table_status,
    parse_trigger,
)
from ..routines import FUNCTION, PROCEDURE, parse_routine
from ..settings import config
from ..upsert import upsert
from ..utils import escape_id, escape_like, sql_literal
from .base import DdlSynthesizer, SchemaIntrospector

logger = logging.getLogger(__name__.split(".")[0])

VIEW_PREFIX = re.compile(r"^(?:[^`]|`[^`]*`)*?\s+AS\s+", re.I | re.S)
TRIGGER_OPTIONS = {
    "Timing": ("BEFORE", "AFTER"),
    "Event": ("INSERT", "UPDATE", "DELETE"),
    "Type": ("FOR EACH ROW",),
}


class MySQLAdapter(SchemaIntrospector, DdlSynthesizer):
    """
    MySQL and MariaDB dialect bound to a connection.

    The server capabilities are computed once from the connection's server banner.

    Args:
        connection: Connection to the server.
    """

    backend = "mysql"

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.capabilities: Capabilities = capabilities_for(connection.server_info)

    def __repr__(self) -> str:
        return f"MySQLAdapter({self.capabilities.server.info!r})"

    @property
    def flavor(self) -> str:
        return self.capabilities.flavor

    def min_version(self, mysql: str | int | float, maria: str | int | float | None = None) -> bool:
        return self.capabilities.min_version(mysql, maria)

    def support(self, feature: str) -> bool:
        """Check whether the server supports a feature, e.g. ``"partitioning"``."""
        return self.capabilities.supports(feature)

    def _quote(self, value: str) -> str:
        return self.connection.quote(value)

    def _execute_each(self, statements: Iterable[str]) -> int:
        # statements that succeeded before a failure stay applied
        executed = 0
        for statement in statements:
            try:
                self.connection.query(statement)
            except (DbAdminError, client.err.Error) as err:
                raise BatchExecutionError(
                    f"Statement {executed + 1} failed after {executed} statements", statement, executed=executed
                ) from err
            executed += 1
        return executed

    # =========================================================================
    # Server
    # =========================================================================

    def databases(self) -> list[str]:
        """List the databases, ordered by name."""
        if self.min_version(5):
            return self.connection.values("SELECT SCHEMA_NAME FROM information_schema.SCHEMATA ORDER BY SCHEMA_NAME")
        return self.connection.values("SHOW DATABASES")

    def collations(self) -> dict[str, list[str]]:
        """
        List the collations of each charset.

        Returns:
            Charset to collations, ordered by charset. The default collation of a
            charset comes first, the others follow in name order.
        """
        defaults: dict[str, str] = {}
        others: dict[str, list[str]] = {}
        for row in self.connection.rows("SHOW COLLATION"):
            others.setdefault(row["Charset"], [])
            if row["Default"]:
                defaults[row["Charset"]] = row["Collation"]
            else:
                others[row["Charset"]].append(row["Collation"])
        return {
            charset: ([defaults[charset]] if charset in defaults else []) + sorted(names)
            for charset, names in sorted(others.items())
        }

    def database_collation(self, database: str, collations: Mapping[str, list[str]] | None = None) -> str | None:
        """
        Read the collation of a database.

        Args:
            database: Database name.
            collations: Output of :meth:`collations`, used to resolve a charset to its
                default collation. Read from the server when not given.
        """
        create = self.connection.result("SHOW CREATE DATABASE " + escape_id(database), 1) or ""
        match = re.search(r" COLLATE ([^ ]+)", create)
        if match:
            return match.group(1)
        match = re.search(r" CHARACTER SET ([^ ]+)", create)
        if match:
            names = (collations if collations is not None else self.collations()).get(match.group(1))
            return names[0] if names else None
        return None

    def database_size(self, database: str) -> int:
        """Bytes of data and indexes stored in a database."""
        size = self.connection.result(
            "SELECT SUM(data_length + index_length) FROM information_schema.TABLES "
            f"WHERE TABLE_SCHEMA = {self._quote(database)}"
        )
        return int(size or 0)

    def count_tables(self, databases: Iterable[str]) -> dict[str, int]:
        """Number of tables and views in each database."""
        return {database: len(self.connection.values("SHOW TABLES IN " + escape_id(database))) for database in databases}

    def create_database(self, name: str, collation: str = "") -> None:
        self.connection.query(declare.create_database_sql(name, collation))

    def drop_databases(self, databases: Iterable[str]) -> int:
        """Drop databases one by one and return how many were dropped."""
        return self._execute_each("DROP DATABASE " + escape_id(name) for name in databases)

    def engines(self) -> list[str]:
        """List the storage engines available on the server."""
        return [row["Engine"] for row in self.connection.rows("SHOW ENGINES") if re.search(r"YES|DEFAULT", row["Support"])]

    def is_information_schema(self, database: str) -> bool:
        """Check whether a database is a read-only system schema."""
        return (self.min_version(5) and database == "information_schema") or (
            self.min_version(5.5) and database == "performance_schema"
        )

    def variables(self) -> dict[str, str]:
        return self.connection.key_values("SHOW VARIABLES")

    def server_status(self) -> dict[str, str]:
        return self.connection.key_values("SHOW STATUS")

    def processes(self) -> list[dict[str, Any]]:
        return self.connection.rows("SHOW FULL PROCESSLIST")

    def kill_process(self, process_id: int) -> None:
        self.connection.query(f"KILL {int(process_id)}")

    def logged_user(self) -> str:
        """Account of the session as ``user@host``."""
        return self.connection.result("SELECT USER()")

    def connection_id(self) -> int:
        return int(self.connection.result("SELECT CONNECTION_ID()"))

    def max_connections(self) -> int:
        return int(self.connection.result("SELECT @@max_connections"))

    def error_message(self, error: Exception) -> str:
        """Message of a server error, with the syntax error preamble shortened."""
        args = error.args
        if isinstance(error, client.err.Error) and len(args) > 1:
            message = args[1]
        else:
            message = args[0] if args else ""
        return shorten_error_message(str(message))

    def table_help(self, name: str) -> str:
        """
        Documentation page of a system table, relative to the server manual.

        Returns an empty string outside of the system schemas.
        """
        database = self.connection.database or ""
        if self.is_information_schema(database):
            page = f"information-schema-{name}-table/" if self.capabilities.is_maria else name.replace("_", "-") + "-table.html"
            return page.lower()
        if database == "mysql":
            return f"mysql{name}-table/" if self.capabilities.is_maria else "system-database.html"
        return ""

    # =========================================================================
    # Tables
    # =========================================================================

    def list_tables(self) -> dict[str, str]:
        if self.min_version(5):
            return self.connection.key_values(
                "SELECT TABLE_NAME, TABLE_TYPE FROM information_schema.TABLES "
                "WHERE TABLE_SCHEMA = DATABASE() ORDER BY TABLE_NAME"
            )
        return {name: "BASE TABLE" for name in self.connection.values("SHOW TABLES")}

    def _status_rows(self, fast: bool, table: str = "") -> list[dict[str, Any]]:
        if fast and self.min_version(5):
            sql = (
                "SELECT TABLE_NAME AS Name, ENGINE AS Engine, TABLE_COMMENT AS Comment "
                "FROM information_schema.TABLES WHERE TABLE_SCHEMA = DATABASE() "
                + (f"AND TABLE_NAME = {self._quote(table)}" if table else "ORDER BY Name")
            )
        else:
            sql = "SHOW TABLE STATUS" + (f" LIKE {self._quote(escape_like(table))}" if table else "")
        return self.connection.rows(sql)

    def table_statuses(self, fast: bool = False) -> dict[str, Table]:
        statuses = (parse_table_status(row) for row in self._status_rows(fast))
        return {status.name: status for status in statuses}

    def table_status(self, table: str, fast: bool = False) -> Table | None:
        rows = self._status_rows(fast, table)
        if not rows:
            return None
        status = parse_table_status(rows[0])
        if "partitioned" in status.create_options and self.support("partitioning"):
            status.partitioning = self.partitions_info(table)
        return status

    def table_columns(self, table: str) -> dict[str, Column]:
        if self.min_version(5):
            rows = self.connection.rows(
                "SELECT * FROM information_schema.COLUMNS WHERE TABLE_SCHEMA = DATABASE() "
                f"AND TABLE_NAME = {self._quote(table)} ORDER BY ORDINAL_POSITION"
            )
            columns = (parse_column(row, self.flavor) for row in rows)
        else:
            rows = self.connection.rows("SHOW FULL COLUMNS FROM " + escape_id(table))
            columns = (parse_column_legacy(row) for row in rows)
        return {column.name: column for column in columns}

    def table_indexes(self, table: str) -> dict[str, Index]:
        return parse_indexes(self.connection.rows("SHOW INDEX FROM " + escape_id(table)))

    def table_foreign_keys(self, table: str) -> dict[str, ForeignKey]:
        create = self.connection.result("SHOW CREATE TABLE " + escape_id(table), 1)
        if not create:
            return {}
        return parse_foreign_keys(create, self.capabilities.on_actions)

    def supports_foreign_keys(self, table: Table) -> bool:
        """Check whether the storage engine of a table enforces foreign keys."""
        engines = "InnoDB|IBMDB2I" + ("|NDB" if self.min_version(5.6) else "")
        return bool(table.engine and re.search(engines, table.engine, re.I))

    def check_constraints(self, table: str) -> dict[str, str]:
        """
        Read the CHECK constraints of a table.

        Raises:
            UnsupportedFeatureError: On servers before MySQL 8.0.16 and MariaDB 10.2.1.
        """
        if not self.support("check"):
            raise UnsupportedFeatureError("CHECK constraints are not supported by this server.")
        rows = self.connection.rows(
            "SELECT c.CONSTRAINT_NAME, CHECK_CLAUSE\n"
            "FROM INFORMATION_SCHEMA.CHECK_CONSTRAINTS c JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS t\n"
            "ON c.CONSTRAINT_SCHEMA = t.CONSTRAINT_SCHEMA AND c.CONSTRAINT_NAME = t.CONSTRAINT_NAME\n"
            f"WHERE c.CONSTRAINT_SCHEMA = DATABASE() AND t.TABLE_NAME = {self._quote(table)}\n"
            "AND CHECK_CLAUSE NOT LIKE '% IS NOT NULL'"
        )
        return parse_check_constraints(rows)

    def partitions_info(self, table: str) -> Partitioning | None:
        source = f"FROM information_schema.PARTITIONS WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = {self._quote(table)}"
        last = self.connection.rows(
            f"SELECT PARTITION_METHOD, PARTITION_EXPRESSION, PARTITION_ORDINAL_POSITION {source} "
            "ORDER BY PARTITION_ORDINAL_POSITION DESC LIMIT 1"
        )
        if not last:
            return None
        partitions = self.connection.rows(
            f"SELECT PARTITION_NAME, PARTITION_DESCRIPTION {source} "
            "AND PARTITION_NAME != '' ORDER BY PARTITION_ORDINAL_POSITION"
        )
        return parse_partitioning(last[0], partitions)

    def table_definition(self, table: str, auto_increment: bool = False) -> str | None:
        """
        Return the CREATE TABLE statement of a table.

        Args:
            table: Table name.
            auto_increment: If False, the ``AUTO_INCREMENT=`` table option is removed.
        """
        create = self.connection.result("SHOW CREATE TABLE " + escape_id(table), 1)
        if create is None or auto_increment:
            return create
        return declare.strip_auto_increment(create)

    def view_definition(self, view: str) -> str:
        create = self.connection.result("SHOW CREATE VIEW " + escape_id(view), 1) or ""
        return VIEW_PREFIX.sub("", create, count=1)

    def auto_increment_modifier(self, table: str, column: str) -> str:
        """Key clause for a column of an existing table that becomes AUTO_INCREMENT."""
        return declare.auto_increment_modifier(self.table_indexes(table).values(), column)

    def count_rows(self, table: Table, where: Iterable[str] = ()) -> int | None:
        """
        Approximate row count of an unfiltered InnoDB table.

        Returns None when the caller has to count the rows itself.
        """
        if list(where) or table.engine != "InnoDB":
            return None
        return table.rows

    def last_auto_increment_id(self) -> int | None:
        value = self.connection.result("SELECT LAST_INSERT_ID()")
        return None if value is None else int(value)

    # =========================================================================
    # Routines and triggers
    # =========================================================================

    def routine_signature(self, name: str, kind: str) -> Routine | None:
        kind = kind.upper()
        if kind not in (FUNCTION, PROCEDURE):
            raise ValueError(f"Unknown routine kind {kind}")
        create = self.connection.result(f"SHOW CREATE {kind} {escape_id(name)}", 2)
        if not create:
            return None
        try:
            routine = parse_routine(create, kind, self.capabilities.type_names, name=name)
        except ParseError as err:
            logger.warning(f"Cannot read routine {name}: {err}")
            return None
        comment = self.connection.result(
            "SELECT ROUTINE_COMMENT FROM information_schema.ROUTINES "
            f"WHERE ROUTINE_SCHEMA = DATABASE() AND ROUTINE_NAME = {self._quote(name)}"
        )
        routine.comment = comment or ""
        return routine

    def routine_list(self) -> list[RoutineSummary]:
        rows = self.connection.rows(
            "SELECT SPECIFIC_NAME, ROUTINE_NAME, ROUTINE_TYPE, DTD_IDENTIFIER "
            "FROM information_schema.ROUTINES WHERE ROUTINE_SCHEMA = DATABASE()"
        )
        return [
            RoutineSummary(
                specific_name=row["SPECIFIC_NAME"],
                name=row["ROUTINE_NAME"],
                kind=row["ROUTINE_TYPE"],
                dtd_identifier=row["DTD_IDENTIFIER"] or "",
            )
            for row in rows
        ]

    def routine_id(self, name: str, row: Mapping[str, Any] | None = None) -> str:
        """Identifier of a routine in SHOW CREATE and DROP statements; overloads do not exist in MySQL."""
        return escape_id(name)

    def events(self) -> list[dict[str, Any]]:
        """
        List the scheduled events of the current database.

        Raises:
            UnsupportedFeatureError: On servers before 5.1.
        """
        if not self.support("event"):
            raise UnsupportedFeatureError("Events are not supported by this server.")
        return self.connection.rows("SHOW EVENTS")

    def trigger_list(self, table: str) -> dict[str, Trigger]:
        rows = self.connection.rows("SHOW TRIGGERS LIKE " + self._quote(escape_like(table)))
        return {trigger.name: trigger for trigger in map(parse_trigger, rows)}

    def trigger(self, name: str) -> Trigger | None:
        if not name:
            return None
        rows = self.connection.rows("SHOW TRIGGERS WHERE `Trigger` = " + self._quote(name))
        return parse_trigger(rows[0]) if rows else None

    def trigger_options(self) -> dict[str, tuple[str, ...]]:
        return dict(TRIGGER_OPTIONS)

    def trigger_sql(self, table: str) -> str:
        """Triggers of a table as an SQL dump fragment."""
        return declare.trigger_sql(self.trigger_list(table).values())

    # =========================================================================
    # Table Definition
    # =========================================================================

    def create_table(self, table: TableCreate) -> str:
        sql = declare.create_table_sql(table, self.capabilities)
        self.connection.query(sql)
        return sql

    def alter_table(self, alter: TableAlter) -> list[str]:
        statements = declare.alter_table_sql(alter, self.capabilities)
        self._execute_each(statements)
        return statements

    def alter_indexes(self, table: str, add: Iterable[Index], drop: Iterable[Index | str]) -> str:
        sql = declare.alter_indexes_sql(table, add, drop, self.capabilities)
        if sql:
            self.connection.query(sql)
        return sql

    def drop_tables(self, tables: Iterable[str]) -> None:
        names = list(tables)
        if names:
            self.connection.query("DROP TABLE " + ", ".join(map(escape_id, names)))

    def drop_views(self, views: Iterable[str]) -> None:
        names = list(views)
        if names:
            self.connection.query("DROP VIEW " + ", ".join(map(escape_id, names)))

    def truncate_tables(self, tables: Iterable[str]) -> None:
        self._execute_each(map(declare.truncate_table_sql, tables))

    def use_database_sql(self, database: str, style: str = "") -> str:
        """
        Statements that select a database in an SQL dump.

        Args:
            database: Database name.
            style: ``""``, ``"CREATE"`` or ``"DROP+CREATE"``.
        """
        create = ""
        if "CREATE" in style:
            create = self.connection.result("SHOW CREATE DATABASE " + escape_id(database), 1) or ""
        return declare.use_database_sql(database, style, create)

    # =========================================================================
    # Databases
    # =========================================================================

    def rename_database(self, name: str, collation: str = "") -> bool:
        """
        Rename the current database by creating the new one and dropping the old one.

        Tables cannot be moved between databases, so a database that holds tables or
        views is left untouched and False is returned before anything is created.
        """
        tables = self.list_tables()
        if tables:
            views = [table for table, kind in tables.items() if kind == "VIEW"]
            return self.move_tables([table for table in tables if table not in views], views, name)
        current = self.connection.database
        self.create_database(name, collation)
        if current:
            self.drop_databases([current])
        self.connection.select_database(name)
        return True

    def move_tables(self, tables: Iterable[str], views: Iterable[str], target: str) -> bool:
        logger.warning(f"Moving tables to {target} is not supported by the MySQL dialect.")
        return False

    # =========================================================================
    # Data and queries
    # =========================================================================

    def select(self, select: Select) -> list[dict[str, Any]]:
        return self.connection.rows(query.build_select_query(select))

    def insert(self, table: str, values: Mapping[str, Any]) -> None:
        """Insert one row; an empty mapping inserts a row of defaults."""
        try:
            self.connection.query(query.insert_sql(table, {name: sql_literal(value) for name, value in values.items()}))
        except DuplicateError as err:
            raise err.suggest("To overwrite existing rows, use upsert_rows")
        except UnknownAttributeError as err:
            raise err.suggest(f"Check the columns of {table} with table_columns")

    def upsert_rows(self, table: str, rows: list[Mapping[str, Any]]) -> int:
        rendered = [{name: sql_literal(value) for name, value in row.items()} for row in rows]
        return upsert(self.connection, table, rendered)

    def explain_query(self, sql: str) -> list[dict[str, Any]]:
        return self.connection.rows(query.explain_sql(sql, self.capabilities))

    def slow_query(self, sql: str, timeout: float | None = None) -> str | None:
        timeout = timeout if timeout is not None else config["query.slow_query_timeout"]
        return query.slow_query(sql, timeout, self.capabilities)

    def convert_field(self, column: Column) -> str | None:
        return query.convert_field(column, self.capabilities)

    def unconvert_field(self, column: Column, value: str) -> str:
        return query.unconvert_field(column, value, self.capabilities)

    def convert_search(self, identifier: str, value: str, column: Column) -> str:
        return query.convert_search(identifier, value, column, self.capabilities)
