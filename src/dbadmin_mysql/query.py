"""
Generation of the data manipulation and query statements of the MySQL dialect.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from .capabilities import Capabilities
from .entities import Column, Select
from .utils import escape_id

BINARY_TYPE = re.compile(r"binary")
BIT_TYPE = re.compile(r"^bit$")
GEOMETRY_TYPE = re.compile(r"geometry|point|linestring|polygon")
SEARCHABLE_TYPE = re.compile(r"char|text|enum|set")


def limit_clause(query: str, where: str, limit: int | None, offset: int = 0, separator: str = " ") -> str:
    """
    Append the filter and the LIMIT/OFFSET tail to a query.

    The result starts with a space so that it can follow a ``SELECT``, ``UPDATE`` or
    ``DELETE`` keyword directly.

    Args:
        query: Statement body, e.g. ``"* FROM `t`"``.
        where: Filter and ordering clauses, already rendered (may be empty).
        limit: Maximum row count, or None for no limit.
        offset: Number of rows to skip; ``0`` renders no OFFSET.
        separator: Text placed before ``LIMIT``.
    """
    tail = ""
    if limit is not None:
        tail = f"{separator}LIMIT {int(limit)}" + (f" OFFSET {int(offset)}" if offset else "")
    return f" {query}{where}{tail}"


def limit_to_one(query: str, where: str) -> str:
    """Restrict an UPDATE or DELETE to a single row."""
    return limit_clause(query, where, 1)


def build_select_query(select: Select) -> str:
    """
    Render a SELECT over one table.

    ``SQL_CALC_FOUND_ROWS`` is added when a grouped page past the first is requested
    with fewer grouping columns than selected fields, so that the total can be read
    with ``FOUND_ROWS()``.

    Parameters
    ----------
    select : Select
        Table, fields, filters, grouping, ordering and paging.

    Returns
    -------
    str
        The SELECT statement, e.g. ``"SELECT *\\nFROM `t`\\nWHERE a = 1 LIMIT 50 OFFSET 100"``.
    """
    prefix = ""
    if select.page and select.limit and select.group and len(select.group) < len(select.fields):
        prefix = "SQL_CALC_FOUND_ROWS "
    where = ""
    if select.where:
        where += "\nWHERE " + " AND ".join(select.where)
    if select.group and len(select.group) < len(select.fields):
        where += "\nGROUP BY " + ", ".join(select.group)
    if select.order:
        where += "\nORDER BY " + ", ".join(select.order)
    offset = select.limit * select.page if select.limit and select.page else 0
    body = f"{prefix}{', '.join(select.fields)}\nFROM {escape_id(select.table)}"
    return "SELECT" + limit_clause(body, where, select.limit, offset, "\n")


def explain_sql(query: str, capabilities: Capabilities) -> str:
    """Prefix a query with EXPLAIN; servers from 5.1 to 5.6 also report partitions."""
    partitions = capabilities.min_version(5.1) and not capabilities.min_version(5.7)
    return "EXPLAIN " + ("PARTITIONS " if partitions else "") + query


def slow_query(query: str, timeout: float, capabilities: Capabilities) -> str | None:
    """
    Rewrite a query so that the server aborts it after ``timeout`` seconds.

    Args:
        query: Query to bound.
        timeout: Time limit in seconds.
        capabilities: Server capabilities.

    Returns:
        The bounded query, or None when the server cannot enforce a time limit on it
        (servers before MySQL 5.7.8 or MariaDB 10.1.2, and non-SELECT statements on MySQL).
    """
    if not capabilities.min_version("5.7.8", "10.1.2"):
        return None
    if capabilities.is_maria:
        return f"SET STATEMENT max_statement_time={timeout:g} FOR {query}"
    match = re.match(r"(SELECT\b)(.+)", query, re.I | re.S)
    if match:
        return f"{match.group(1)} /*+ MAX_EXECUTION_TIME({int(timeout * 1000)}) */ {match.group(2)}"
    return None


def charset(capabilities: Capabilities) -> str:
    """Connection charset: ``utf8mb4`` from MySQL 5.5.3, ``utf8`` before."""
    return "utf8mb4" if capabilities.min_version("5.5.3") else "utf8"


def _spatial(name: str, capabilities: Capabilities) -> str:
    return ("ST_" if capabilities.min_version(8) else "") + name


def convert_field(column: Column, capabilities: Capabilities) -> str | None:
    """
    Expression that reads a column in a displayable form.

    Binary columns are read as hex, bit columns as binary digits and geometry
    columns as WKT. Other columns need no conversion and give None.
    """
    name = escape_id(column.name)
    if BINARY_TYPE.search(column.type):
        return f"HEX({name})"
    if BIT_TYPE.search(column.type):
        return f"BIN({name} + 0)"
    if GEOMETRY_TYPE.search(column.type):
        return f"{_spatial('AsWKT', capabilities)}({name})"
    return None


def unconvert_field(column: Column, value: str, capabilities: Capabilities) -> str:
    """
    Expression that stores a value given in the form :func:`convert_field` reads.

    Args:
        column: Target column.
        value: SQL expression of the value, already quoted.
        capabilities: Server capabilities.

    Returns:
        ``value`` wrapped in the decoding function of the column type.
    """
    if BINARY_TYPE.search(column.type):
        return f"UNHEX({value})"
    if column.type == "bit":
        return f"CONV({value}, 2, 10) + 0"
    if GEOMETRY_TYPE.search(column.type):
        return f"{_spatial('GeomFromText', capabilities)}({value}, SRID({escape_id(column.name)}))"
    return value


def convert_search(identifier: str, value: str, column: Column, capabilities: Capabilities) -> str:
    """
    Expression to search a text column with.

    Non-ASCII values searched in a column whose collation is not utf8 are compared
    after converting the column to the connection charset.
    """
    if (
        SEARCHABLE_TYPE.search(column.type)
        and not re.match(r"utf8", column.collation or "")
        and re.search(r"[^\x00-\x7f]", value)
    ):
        return f"CONVERT({identifier} USING {charset(capabilities)})"
    return identifier


def insert_sql(table: str, values: Mapping[str, str]) -> str:
    """
    Render an INSERT of one row.

    Args:
        table: Table name.
        values: Column name to SQL expression, already quoted. An empty mapping
            inserts a row of defaults.
    """
    if not values:
        return f"INSERT INTO {escape_id(table)} () VALUES ()"
    return "INSERT INTO {} ({}) VALUES ({})".format(
        escape_id(table),
        ", ".join(map(escape_id, values)),
        ", ".join(values.values()),
    )
