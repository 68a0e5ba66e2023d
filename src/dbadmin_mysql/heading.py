"""
Mapping of server metadata rows into entities.

The functions in this module take the dict rows returned by ``SHOW`` statements and
``information_schema`` queries and decode their composite string columns (column
types, defaults, extras, index key parts) into the entities of
:mod:`dbadmin_mysql.entities`. A missing expected key raises ``KeyError``; no
defaults are invented for malformed rows.
"""

from __future__ import annotations

import binascii
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .capabilities import MARIA
from .entities import SQL_NULL, Column, DefaultValue, Index, Partitioning, Table, Trigger
from .utils import strip_slashes


Row = Mapping[str, Any]

TYPE_PATTERN = re.compile(r"^([^( ]+)(?:\((.+)\))?( unsigned)?( zerofill)?$", re.S)
GENERATED_PATTERN = re.compile(r"^(VIRTUAL|PERSISTENT|STORED)")
ON_UPDATE_PATTERN = re.compile(r"\bon update (\w+)", re.I)
LEGACY_ON_UPDATE_PATTERN = re.compile(r"^on update (.+)", re.I)
INNODB_FREE_PATTERN = re.compile(r"(?:(.+); )?InnoDB free: .*", re.S)


def split_type(full_type: str) -> tuple[str, str | None, str]:
    """
    Split a column type into base type, length and unsigned/zerofill attributes.

    Args:
        full_type: Type as reported by the server, e.g. ``"decimal(10,2) unsigned zerofill"``.

    Returns:
        ``(type, length, unsigned)``, e.g. ``("decimal", "10,2", "unsigned zerofill")``.
        The length is None for types without a parenthesized length.
    """
    match = TYPE_PATTERN.match(full_type)
    if not match:
        return full_type, None, ""
    base, length, unsigned, zerofill = match.groups()
    return base, length, ((unsigned or "") + (zerofill or "")).lstrip()


def _decode_default(default: str | None, base_type: str, flavor: str) -> DefaultValue:
    if default is None or default == "":
        return default
    is_maria = flavor == MARIA
    is_text = re.search(r"text|json", base_type) is not None
    if not is_maria and is_text:
        # MySQL prints text defaults as a charset introducer followed by an escaped literal
        default = re.sub(r"^(_\w+)?('.*')$", r"\2", strip_slashes(default), flags=re.S)
    if is_maria or is_text:
        if default == "NULL":
            return SQL_NULL
        quoted = re.match(r"^'(.*)'$", default, re.S)
        if quoted:
            return strip_slashes(quoted.group(1).replace("''", "'"))
        return default
    if "binary" in base_type:
        hexadecimal = re.match(r"^0x([0-9A-Fa-f]*)$", default)
        if hexadecimal:
            digits = hexadecimal.group(1)
            # an odd digit count is completed with a low nibble of zero
            return binascii.unhexlify(digits + "0" * (len(digits) % 2))
    return default


def parse_privileges(privileges: str | None, separator: str = ",") -> frozenset[str]:
    """Decode a privilege list; ``where`` and ``order`` are always granted."""
    names = re.split(separator, privileges) if privileges else []
    return frozenset(name for name in names if name) | {"where", "order"}


def parse_column(row: Row, flavor: str) -> Column:
    """
    Build a column from an ``information_schema.COLUMNS`` row.

    Parameters
    ----------
    row : Mapping
        Row with the upper-case ``COLUMNS`` keys (``COLUMN_NAME``, ``COLUMN_TYPE``, ...).
    flavor : str
        Server dialect, ``"mysql"`` or ``"maria"``. The two dialects store text and
        binary defaults and generation expressions differently.

    Returns
    -------
    Column
        The decoded column.
    """
    full_type = row["COLUMN_TYPE"]
    base, length, unsigned = split_type(full_type)
    extra = row["EXTRA"] or ""
    default = _decode_default(row["COLUMN_DEFAULT"], base, flavor)
    generated = GENERATED_PATTERN.match(extra)
    kind = ""
    if generated:
        kind = "STORED" if generated.group(1) == "PERSISTENT" else generated.group(1)
        expression = row.get("GENERATION_EXPRESSION") or ""
        default = expression if flavor == MARIA else strip_slashes(expression)
    on_update = ON_UPDATE_PATTERN.search(extra)
    return Column(
        name=row["COLUMN_NAME"],
        full_type=full_type,
        type=base,
        length=length,
        unsigned=unsigned,
        nullable=row["IS_NULLABLE"] == "YES",
        default=default,
        auto_increment=extra == "auto_increment",
        on_update=on_update.group(1) if on_update else "",
        collation=row["COLLATION_NAME"],
        comment=row["COLUMN_COMMENT"] or "",
        generated=kind,
        primary=row["COLUMN_KEY"] == "PRI",
        privileges=parse_privileges(row["PRIVILEGES"]),
    )


def parse_column_legacy(row: Row) -> Column:
    """
    Build a column from a ``SHOW FULL COLUMNS`` row, for servers without
    ``information_schema``.
    """
    full_type = row["Type"]
    base, length, unsigned = split_type(full_type)
    extra = row["Extra"] or ""
    default = None
    if row["Default"] not in (None, "") or re.search(r"char|set", base):
        default = row["Default"]
        if default is not None and re.search(r"text", base):
            default = strip_slashes(re.sub(r"^'(.*)'$", r"\1", default, flags=re.S))
    on_update = LEGACY_ON_UPDATE_PATTERN.search(extra)
    return Column(
        name=row["Field"],
        full_type=full_type,
        type=base,
        length=length,
        unsigned=unsigned,
        nullable=row["Null"] == "YES",
        default=default,
        auto_increment=extra == "auto_increment",
        on_update=on_update.group(1) if on_update else "",
        collation=row["Collation"],
        comment=row["Comment"] or "",
        primary=row["Key"] == "PRI",
        privileges=parse_privileges(row["Privileges"], r", *"),
    )


def index_type(row: Row) -> str:
    """Index type of a ``SHOW INDEX`` row: PRIMARY, FULLTEXT, UNIQUE, SPATIAL or INDEX."""
    if row["Key_name"] == "PRIMARY":
        return "PRIMARY"
    if row["Index_type"] == "FULLTEXT":
        return "FULLTEXT"
    if not int(row["Non_unique"]):
        return "UNIQUE"
    if row["Index_type"] == "SPATIAL":
        return "SPATIAL"
    return "INDEX"


def parse_indexes(rows: Iterable[Row]) -> dict[str, Index]:
    """
    Group ``SHOW INDEX`` rows into indexes.

    Rows sharing a ``Key_name`` accumulate into one index, in row order.

    Args:
        rows: Rows of ``SHOW INDEX FROM <table>``.

    Returns:
        Mapping from index name to index, in the order of first appearance.
    """
    indexes: dict[str, Index] = {}
    for row in rows:
        name = row["Key_name"]
        if name not in indexes:
            indexes[name] = Index(name=name, type=index_type(row))
        index = indexes[name]
        # functional key parts have no column name
        column = row["Column_name"] or "({})".format((row.get("Expression") or "").replace(r"\'", "'"))
        length = None if index.type == "SPATIAL" or row["Sub_part"] is None else int(row["Sub_part"])
        index.add_part(column, length, "DESC" if row.get("Collation") == "D" else None)
    return indexes


def strip_innodb_comment(comment: str | None) -> str:
    """Remove the free-space note older InnoDB versions append to table comments."""
    if not comment:
        return ""
    return INNODB_FREE_PATTERN.sub(lambda m: m.group(1) or "", comment)


def _optional_int(value: Any) -> int | None:
    return None if value is None or value == "" else int(value)


def parse_table_status(row: Row) -> Table:
    """
    Build a table from a ``SHOW TABLE STATUS`` row or from the equivalent
    ``information_schema.TABLES`` projection (``Name``, ``Engine``, ``Comment``).
    """
    engine = row["Engine"]
    comment = row["Comment"] or ""
    if engine == "InnoDB":
        comment = strip_innodb_comment(comment)
    return Table(
        name=row["Name"],
        engine=engine,
        comment=comment,
        rows=_optional_int(row.get("Rows")),
        auto_increment=_optional_int(row.get("Auto_increment")),
        collation=row.get("Collation"),
        data_length=_optional_int(row.get("Data_length")),
        index_length=_optional_int(row.get("Index_length")),
        data_free=_optional_int(row.get("Data_free")),
        create_options=row.get("Create_options") or "",
    )


def parse_trigger(row: Row) -> Trigger:
    """Build a trigger from a ``SHOW TRIGGERS`` row."""
    return Trigger(
        name=row["Trigger"],
        timing=row["Timing"],
        event=row["Event"],
        table=row["Table"],
        statement=row["Statement"],
    )


def parse_partitioning(last: Row | None, partitions: Iterable[Row]) -> Partitioning | None:
    """
    Build the partitioning of a table from ``information_schema.PARTITIONS``.

    Args:
        last: The row with the highest ``PARTITION_ORDINAL_POSITION``, or None when the
            table has no row in ``PARTITIONS``.
        partitions: The named partitions in ordinal order.

    Returns:
        The partitioning, or None if the table is not partitioned.
    """
    if not last or not last["PARTITION_METHOD"]:
        return None
    named = [row for row in partitions if row["PARTITION_NAME"]]
    return Partitioning(
        strategy=last["PARTITION_METHOD"],
        expression=last["PARTITION_EXPRESSION"] or "",
        partitions=int(last["PARTITION_ORDINAL_POSITION"] or 0),
        names=[row["PARTITION_NAME"] for row in named],
        values=[row["PARTITION_DESCRIPTION"] or "" for row in named],
    )


def parse_check_constraints(rows: Iterable[Row]) -> dict[str, str]:
    """Map CHECK constraint names to their clauses."""
    return {row["CONSTRAINT_NAME"]: row["CHECK_CLAUSE"] for row in rows}
