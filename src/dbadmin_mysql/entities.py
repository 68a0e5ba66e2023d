"""
Entities produced by introspection and consumed by the DDL builders.

Introspection entities are snapshots built fresh from server metadata on each call.
Request entities (``ColumnDefinition``, ``TableCreate``, ``TableAlter``, ``Select``)
are filled in by the caller and rendered into SQL.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .utils import enum_values


class SqlNull:
    """Sentinel for a column whose declared default is the SQL ``NULL`` literal."""

    _instance = None

    def __new__(cls) -> "SqlNull":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SQL_NULL"

    def __bool__(self) -> bool:
        return False


SQL_NULL = SqlNull()

DefaultValue = str | bytes | SqlNull | None

INDEX_TYPES = ("PRIMARY", "UNIQUE", "INDEX", "FULLTEXT", "SPATIAL")


@dataclass
class Column:
    """
    A table column as reported by the server.

    ``default`` is ``None`` when the column has no default, ``""`` for an empty string
    default, :data:`SQL_NULL` for an explicit ``DEFAULT NULL`` and ``bytes`` for a
    binary default. For generated columns it holds the generation expression.
    """

    name: str
    full_type: str = ""
    type: str = ""
    length: str | None = None
    unsigned: str = ""
    nullable: bool = False
    default: DefaultValue = None
    auto_increment: bool = False
    on_update: str = ""
    collation: str | None = None
    comment: str = ""
    generated: str = ""
    primary: bool = False
    privileges: frozenset[str] = frozenset()

    @property
    def enum_values(self) -> list[str]:
        return enum_values(self.length) if self.type in ("enum", "set") else []


@dataclass
class Index:
    """An index with its key parts in declaration order."""

    name: str
    type: str = "INDEX"
    columns: list[str] = field(default_factory=list)
    lengths: list[int | None] = field(default_factory=list)
    descs: list[str | None] = field(default_factory=list)

    @property
    def parts(self) -> list[tuple[str, int | None, str | None]]:
        """(column, prefix length, direction) triples"""
        return list(zip(self.columns, self.lengths, self.descs))

    def add_part(self, column: str, length: int | None = None, desc: str | None = None) -> None:
        self.columns.append(column)
        self.lengths.append(length)
        self.descs.append(desc)


@dataclass
class ForeignKey:
    """
    A foreign key constraint.

    ``database`` is empty when the referenced table lives in the current schema.
    """

    name: str
    source: list[str]
    table: str
    target: list[str]
    database: str = ""
    on_delete: str = "RESTRICT"
    on_update: str = "RESTRICT"


@dataclass
class Partitioning:
    """Partitioning of a table: strategy, expression and the named partitions."""

    strategy: str
    expression: str = ""
    partitions: int = 0
    names: list[str] = field(default_factory=list)
    values: list[str] = field(default_factory=list)


@dataclass
class Table:
    """Table status. A table without an engine is a view."""

    name: str
    engine: str | None = None
    comment: str = ""
    rows: int | None = None
    auto_increment: int | None = None
    collation: str | None = None
    data_length: int | None = None
    index_length: int | None = None
    data_free: int | None = None
    create_options: str = ""
    partitioning: Partitioning | None = None

    @property
    def is_view(self) -> bool:
        return self.engine is None


@dataclass
class Trigger:
    name: str
    timing: str
    event: str
    table: str = ""
    statement: str = ""
    type: str = "FOR EACH ROW"


@dataclass
class RoutineParameter:
    """A routine parameter or a function return type."""

    name: str
    type: str
    length: str | None = None
    unsigned: str = ""
    inout: str = ""
    full_type: str = ""
    collation: str = ""

    @property
    def enum_values(self) -> list[str]:
        return enum_values(self.length) if self.type in ("enum", "set") else []


@dataclass
class Routine:
    """A stored function or procedure decoded from ``SHOW CREATE``."""

    name: str
    kind: str
    params: list[RoutineParameter] = field(default_factory=list)
    returns: RoutineParameter | None = None
    definition: str = ""
    comment: str = ""
    language: str = "SQL"


@dataclass
class RoutineSummary:
    """A row of the routine listing."""

    specific_name: str
    name: str
    kind: str
    dtd_identifier: str = ""


# --- DDL requests ---


@dataclass
class ColumnDefinition:
    """
    A column to create or change.

    ``type`` is the full SQL type, e.g. ``"int(10) unsigned"``. ``default`` is an SQL
    value: strings are quoted as needed when rendered, :data:`SQL_NULL` renders
    ``DEFAULT NULL`` and ``bytes`` render as a hex literal. ``after`` is the column to
    place this one after; an empty string places it first and ``None`` keeps the
    server's placement.
    """

    name: str
    type: str
    nullable: bool = False
    default: DefaultValue = None
    on_update: str = ""
    comment: str | None = None
    collation: str = ""
    auto_increment: str = ""
    generated: str = ""
    expression: str = ""
    original: str = ""
    after: str | None = None


@dataclass
class TableOptions:
    comment: str | None = None
    engine: str = ""
    collation: str = ""
    auto_increment: int = 0
    partitioning: Partitioning | None = None
    remove_partitioning: bool = False


@dataclass
class TableCreate:
    name: str
    columns: list[ColumnDefinition] = field(default_factory=list)
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    options: TableOptions = field(default_factory=TableOptions)


@dataclass
class TableAlter:
    """
    Changes to an existing table.

    ``changed`` maps the current column name to its new definition; a different name
    in the definition renames the column.
    """

    table: str
    name: str = ""
    added: list[ColumnDefinition] = field(default_factory=list)
    changed: dict[str, ColumnDefinition] = field(default_factory=dict)
    dropped: list[str] = field(default_factory=list)
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    dropped_foreign_keys: list[str] = field(default_factory=list)
    options: TableOptions = field(default_factory=TableOptions)

    @property
    def new_name(self) -> str:
        return self.name or self.table


@dataclass
class Select:
    """A SELECT over one table. ``where``, ``group`` and ``order`` hold SQL fragments."""

    table: str
    fields: list[str] = field(default_factory=lambda: ["*"])
    where: list[str] = field(default_factory=list)
    group: list[str] = field(default_factory=list)
    order: list[str] = field(default_factory=list)
    limit: int | None = None
    page: int = 0
