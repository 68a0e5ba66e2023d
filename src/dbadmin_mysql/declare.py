"""
DDL generation for MySQL and MariaDB.

This module renders CREATE TABLE, ALTER TABLE, index alterations, foreign key
clauses, partitioning clauses, databases and triggers from the request entities of
:mod:`dbadmin_mysql.entities`. The functions are pure: server-dependent choices are
read from the :class:`~dbadmin_mysql.capabilities.Capabilities` they receive.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from .capabilities import ON_ACTIONS, Capabilities
from .entities import (
    SQL_NULL,
    ColumnDefinition,
    DefaultValue,
    ForeignKey,
    Index,
    Partitioning,
    TableAlter,
    TableCreate,
    TableOptions,
    Trigger,
)
from .errors import UnsupportedFeatureError
from .utils import escape_id, quote_string

logger = logging.getLogger(__name__.split(".")[0])

# types whose defaults are always written as string literals
QUOTED_DEFAULT_TYPES = re.compile(r"char|binary|text|json|enum|set", re.I)
COLLATABLE_TYPES = re.compile(r"char|text|enum|set", re.I)
TRIGGER_TIMINGS = ("BEFORE", "AFTER")
TRIGGER_EVENTS = ("INSERT", "UPDATE", "DELETE")


def auto_increment_modifier(indexes: Iterable[Index], column: str) -> str:
    """
    Key clause to add to a column that becomes AUTO_INCREMENT.

    The server requires an AUTO_INCREMENT column to be indexed. The indexes are
    scanned in order: a column already covered by an index needs no key clause, and
    a table that already has a primary key gets a UNIQUE key instead.

    Args:
        indexes: Existing indexes of the table, in server order.
        column: Current name of the column.

    Returns:
        ``" AUTO_INCREMENT"``, ``" AUTO_INCREMENT UNIQUE"`` or ``" AUTO_INCREMENT PRIMARY KEY"``.
    """
    key_clause = " PRIMARY KEY"
    for index in indexes:
        if column in index.columns:
            key_clause = ""
            break
        if index.type == "PRIMARY":
            key_clause = " UNIQUE"
    return " AUTO_INCREMENT" + key_clause


def default_clause(column: ColumnDefinition) -> str:
    """Render the DEFAULT clause of a column, or an empty string when it has none."""
    default: DefaultValue = column.default
    if default is None:
        return ""
    if default is SQL_NULL:
        return " DEFAULT NULL"
    if isinstance(default, bytes):
        return " DEFAULT 0x" + default.hex()
    if QUOTED_DEFAULT_TYPES.search(column.type) or not re.match(r"[a-z]", default, re.I):
        literal = quote_string(default)
        # text and json defaults are expressions since MySQL 8.0.13
        return " DEFAULT " + (f"({literal})" if re.search(r"text|json", column.type, re.I) else literal)
    return " DEFAULT " + re.sub(r"current_timestamp\(\)", "CURRENT_TIMESTAMP", default, flags=re.I)


def column_clause(column: ColumnDefinition, capabilities: Capabilities) -> str:
    """
    Render a column definition.

    Parameters
    ----------
    column : ColumnDefinition
        Column to render.
    capabilities : Capabilities
        Server capabilities; generated columns need server support and MariaDB
        rejects a NULL clause on them.

    Returns
    -------
    str
        E.g. ``"`id` int(10) unsigned NOT NULL AUTO_INCREMENT PRIMARY KEY"``.

    Raises
    ------
    UnsupportedFeatureError
        If the column is generated and the server has no generated columns of that kind.
    """
    clause = escape_id(column.name) + " " + column.type
    if column.collation and COLLATABLE_TYPES.search(column.type):
        clause += " COLLATE " + quote_string(column.collation)
    if column.generated:
        kind = column.generated.upper()
        if kind not in capabilities.generated:
            raise UnsupportedFeatureError(f"{kind} generated columns are not supported by this server.")
        clause += f" GENERATED ALWAYS AS ({column.expression}) {kind}"
        if not capabilities.is_maria:
            clause += " NULL" if column.nullable else " NOT NULL"
    else:
        clause += " NULL" if column.nullable else " NOT NULL"
        clause += default_clause(column)
    if column.on_update:
        clause += " ON UPDATE " + column.on_update
    if column.comment:
        clause += " COMMENT " + quote_string(column.comment)
    return clause + column.auto_increment


def position_clause(column: ColumnDefinition) -> str:
    """Render ``FIRST`` or ``AFTER <column>`` for a column being added or changed."""
    if column.after is None:
        return ""
    return " AFTER " + escape_id(column.after) if column.after else " FIRST"


def table_name(name: str, database: str = "") -> str:
    """Escape a table name, qualified by a database when given."""
    return (escape_id(database) + "." if database else "") + escape_id(name)


def foreign_key_clause(foreign_key: ForeignKey, on_actions: tuple[str, ...] = ON_ACTIONS) -> str:
    """
    Render a FOREIGN KEY clause.

    Referential actions the server does not know are left out, which the server
    reads as RESTRICT.
    """
    clause = "FOREIGN KEY ({}) REFERENCES {} ({})".format(
        ", ".join(map(escape_id, foreign_key.source)),
        table_name(foreign_key.table, foreign_key.database),
        ", ".join(map(escape_id, foreign_key.target)),
    )
    if foreign_key.on_delete in on_actions:
        clause += " ON DELETE " + foreign_key.on_delete
    if foreign_key.on_update in on_actions:
        clause += " ON UPDATE " + foreign_key.on_update
    return clause


def table_options(options: TableOptions) -> str:
    """
    Render the table options, each only when set.

    ``AUTO_INCREMENT=`` is written without spaces around ``=`` as the server prints it.
    """
    parts = []
    if options.comment is not None:
        parts.append("COMMENT=" + quote_string(options.comment))
    if options.engine:
        parts.append("ENGINE=" + quote_string(options.engine))
    if options.collation:
        parts.append("COLLATE " + quote_string(options.collation))
    if options.auto_increment:
        parts.append(f"AUTO_INCREMENT={int(options.auto_increment)}")
    return " ".join(parts)


def partition_clause(options: TableOptions, capabilities: Capabilities) -> str:
    """
    Render the partitioning of a table.

    RANGE and LIST partitionings list their partitions; the hash and key strategies
    only give their count. Nothing is rendered when the server has no partitioning.
    """
    if not capabilities.supports("partitioning"):
        if options.partitioning or options.remove_partitioning:
            logger.debug("Partitioning is not supported by this server and was left out.")
        return ""
    if options.remove_partitioning:
        return "\nREMOVE PARTITIONING"
    partitioning: Partitioning | None = options.partitioning
    if partitioning is None:
        return ""
    strategy = partitioning.strategy.upper()
    if strategy not in capabilities.partition_by:
        raise UnsupportedFeatureError(f"Unknown partitioning strategy {partitioning.strategy}.")
    clause = f"\nPARTITION BY {strategy}({partitioning.expression})"
    if strategy in ("RANGE", "LIST") and partitioning.names:
        values = partitioning.values + [""] * (len(partitioning.names) - len(partitioning.values))
        partitions = [
            "\n  PARTITION {} VALUES {}{}".format(
                escape_id(name),
                "LESS THAN" if strategy == "RANGE" else "IN",
                f" ({value})" if value != "" else " MAXVALUE",
            )
            for name, value in zip(partitioning.names, values)
        ]
        clause += " (" + ",".join(partitions) + "\n)"
    elif partitioning.partitions:
        clause += f" PARTITIONS {int(partitioning.partitions)}"
    return clause


def create_table_sql(table: TableCreate, capabilities: Capabilities) -> str:
    """
    Generate the CREATE TABLE statement of a new table.

    Parameters
    ----------
    table : TableCreate
        Table name, columns, foreign keys and options.
    capabilities : Capabilities
        Server capabilities.

    Returns
    -------
    str
        ``CREATE TABLE <name> (<columns>, <foreign keys>) <options><partitioning>``.
    """
    clauses = [column_clause(column, capabilities) for column in table.columns]
    clauses += [foreign_key_clause(foreign_key, capabilities.on_actions) for foreign_key in table.foreign_keys]
    options = table_options(table.options)
    return "CREATE TABLE {} ({}){}{}".format(
        escape_id(table.name),
        ", ".join(clauses),
        " " + options if options else "",
        partition_clause(table.options, capabilities),
    )


def alter_table_sql(alter: TableAlter, capabilities: Capabilities) -> list[str]:
    """
    Generate the statements that alter an existing table.

    Clauses come in this order: added columns, changed columns (a changed name
    renames the column), dropped columns, dropped then added foreign keys, the table
    rename and the table options. Options are only appended when set.

    Parameters
    ----------
    alter : TableAlter
        Requested changes.
    capabilities : Capabilities
        Server capabilities.

    Returns
    -------
    list[str]
        One ALTER TABLE statement, or an empty list when nothing changes.
    """
    clauses = ["ADD " + column_clause(column, capabilities) + position_clause(column) for column in alter.added]
    clauses += [
        f"CHANGE {escape_id(name)} " + column_clause(column, capabilities) + position_clause(column)
        for name, column in alter.changed.items()
    ]
    clauses += ["DROP " + escape_id(name) for name in alter.dropped]
    clauses += ["DROP FOREIGN KEY " + escape_id(name) for name in alter.dropped_foreign_keys]
    clauses += ["ADD " + foreign_key_clause(foreign_key, capabilities.on_actions) for foreign_key in alter.foreign_keys]
    if alter.new_name != alter.table:
        clauses.append("RENAME TO " + escape_id(alter.new_name))
    options = table_options(alter.options)
    if options:
        clauses.append(options)
    partitioning = partition_clause(alter.options, capabilities)
    if not clauses and not partitioning:
        return []
    return [f"ALTER TABLE {escape_id(alter.table)} " + ", ".join(clauses) + partitioning]


def index_part(column: str, length: int | None, desc: str | None, capabilities: Capabilities) -> str:
    part = escape_id(column) + (f"({int(length)})" if length else "")
    if desc and capabilities.supports("descidx"):
        part += " DESC"
    return part


def alter_indexes_sql(
    table: str,
    add: Iterable[Index],
    drop: Iterable[Index | str],
    capabilities: Capabilities,
) -> str:
    """
    Generate the statement that drops and adds indexes of a table.

    Drops come first so that an index can be redefined under the same name.
    Descending key parts are written only on servers that support them.

    Args:
        table: Table name.
        add: Indexes to create.
        drop: Indexes (or index names) to drop.
        capabilities: Server capabilities.

    Returns:
        ``ALTER TABLE <table> DROP INDEX ..., ADD ...``, or an empty string when there
        is nothing to change.
    """
    clauses = ["DROP INDEX " + escape_id(index if isinstance(index, str) else index.name) for index in drop]
    for index in add:
        parts = ", ".join(index_part(*part, capabilities) for part in index.parts)
        if index.type == "PRIMARY":
            clauses.append(f"ADD PRIMARY KEY ({parts})")
        else:
            name = escape_id(index.name) + " " if index.name else ""
            clauses.append(f"ADD {index.type} {name}({parts})")
    if not clauses:
        return ""
    return f"ALTER TABLE {escape_id(table)} " + ", ".join(clauses)


def create_database_sql(name: str, collation: str = "") -> str:
    return f"CREATE DATABASE {escape_id(name)}" + (f" COLLATE {quote_string(collation)}" if collation else "")


def use_database_sql(name: str, style: str = "", create: str = "") -> str:
    """
    Generate the statements that switch to a database in an SQL dump.

    Args:
        name: Database name.
        style: Dump style; ``"CREATE"`` adds the database creation statement and
            ``"DROP+CREATE"`` also drops the database first.
        create: Output of ``SHOW CREATE DATABASE`` for the database.

    Returns:
        The dump statements, ending with ``USE <name>;``.
    """
    quoted = escape_id(name)
    prefix = ""
    if "CREATE" in style and create:
        drop = f"DROP DATABASE IF EXISTS {quoted};\n" if style == "DROP+CREATE" else ""
        prefix = f"{drop}{create};\n"
    return f"{prefix}USE {quoted};"


def truncate_table_sql(table: str) -> str:
    return "TRUNCATE " + escape_id(table)


def create_trigger_sql(trigger: Trigger) -> str:
    """
    Generate the CREATE TRIGGER statement of a trigger.

    Raises:
        UnsupportedFeatureError: If the timing or the event is not one MySQL knows.
    """
    if trigger.timing not in TRIGGER_TIMINGS or trigger.event not in TRIGGER_EVENTS:
        raise UnsupportedFeatureError(f"Unknown trigger timing or event: {trigger.timing} {trigger.event}")
    return (
        f"CREATE TRIGGER {escape_id(trigger.name)} {trigger.timing} {trigger.event} "
        f"ON {escape_id(trigger.table)} {trigger.type}\n{trigger.statement}"
    )


def trigger_sql(triggers: Iterable[Trigger]) -> str:
    """Render the triggers of a table for an SQL dump, delimited by ``;;``."""
    return "".join(f"\n{create_trigger_sql(trigger)};;\n" for trigger in triggers)


def strip_auto_increment(create_table: str) -> str:
    """Remove the ``AUTO_INCREMENT=<n>`` table option from a CREATE TABLE statement."""
    return re.sub(r" AUTO_INCREMENT=\d+", "", create_table)
