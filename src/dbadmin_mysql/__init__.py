"""
dbadmin-mysql: the MySQL and MariaDB dialect of a database administration tool.

The package reads the schema of a MySQL or MariaDB server (tables, columns, indexes,
foreign keys, partitions, routines and triggers) into plain entities, and renders
table, index and data changes back into dialect SQL. Server differences are resolved
once per server from its version banner.

Typical use::

    import dbadmin_mysql as dba

    adapter = dba.get_adapter("mysql", dba.conn())
    columns = adapter.table_columns("orders")
"""

__author__ = "dbadmin-mysql contributors"
__all__ = [
    "__author__",
    "__version__",
    "config",
    "conn",
    "Connection",
    "Capabilities",
    "capabilities_for",
    "MySQLAdapter",
    "SchemaIntrospector",
    "DdlSynthesizer",
    "get_adapter",
    "SQL_NULL",
    "Column",
    "ColumnDefinition",
    "ForeignKey",
    "Index",
    "Partitioning",
    "Routine",
    "RoutineParameter",
    "RoutineSummary",
    "Select",
    "Table",
    "TableAlter",
    "TableCreate",
    "TableOptions",
    "Trigger",
    "UpsertBatcher",
    "errors",
    "DbAdminError",
    "logger",
]

from . import errors
from .adapters import DdlSynthesizer, MySQLAdapter, SchemaIntrospector, get_adapter
from .capabilities import Capabilities, capabilities_for
from .connection import Connection, conn
from .entities import (
    SQL_NULL,
    Column,
    ColumnDefinition,
    ForeignKey,
    Index,
    Partitioning,
    Routine,
    RoutineParameter,
    RoutineSummary,
    Select,
    Table,
    TableAlter,
    TableCreate,
    TableOptions,
    Trigger,
)
from .errors import DbAdminError
from .logging import logger
from .settings import config
from .upsert import UpsertBatcher
from .version import __version__
