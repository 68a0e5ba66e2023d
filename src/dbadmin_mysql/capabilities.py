"""
Server version gating for the MySQL dialect.

The server banner is reduced once to a :class:`ServerVersion` (dialect flavor plus a
numeric version tuple), from which :func:`capabilities_for` derives an immutable
:class:`Capabilities` value: the type table, the feature set and the dialect option
lists that the mappers, parsers and DDL builders consult.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

MYSQL = "mysql"
MARIA = "maria"

VersionThreshold = str | int | float | None

# Type name -> maximum length, grouped for display
BASE_TYPES: dict[str, dict[str, int]] = {
    "Numbers": {
        "tinyint": 3,
        "smallint": 5,
        "mediumint": 8,
        "int": 10,
        "bigint": 20,
        "decimal": 66,
        "float": 12,
        "double": 21,
    },
    "Date and time": {"date": 10, "datetime": 19, "timestamp": 19, "time": 10, "year": 4},
    "Strings": {
        "char": 255,
        "varchar": 65535,
        "tinytext": 255,
        "text": 65535,
        "mediumtext": 16777215,
        "longtext": 4294967295,
    },
    "Lists": {"enum": 65535, "set": 64},
    "Binary": {
        "bit": 20,
        "binary": 255,
        "varbinary": 65535,
        "tinyblob": 255,
        "blob": 65535,
        "mediumblob": 16777215,
        "longblob": 4294967295,
    },
    "Geometry": {
        "geometry": 0,
        "point": 0,
        "linestring": 0,
        "polygon": 0,
        "multipoint": 0,
        "multilinestring": 0,
        "multipolygon": 0,
        "geometrycollection": 0,
    },
}

BASE_FEATURES = frozenset(
    {
        "comment",
        "columns",
        "copy",
        "database",
        "drop_col",
        "dump",
        "indexes",
        "kill",
        "privileges",
        "move_col",
        "procedure",
        "processlist",
        "routine",
        "sql",
        "status",
        "table",
        "trigger",
        "variables",
        "view",
    }
)
# never available on MySQL or MariaDB
UNSUPPORTED_FEATURES = frozenset({"scheme", "sequence", "type", "view_trigger", "materializedview"})

UNSIGNED = ("unsigned", "zerofill", "unsigned zerofill")
ON_ACTIONS = ("RESTRICT", "NO ACTION", "CASCADE", "SET NULL", "SET DEFAULT")
INOUT = ("IN", "OUT", "INOUT")
OPERATORS = (
    "=",
    "<",
    ">",
    "<=",
    ">=",
    "!=",
    "LIKE",
    "LIKE %%",
    "REGEXP",
    "IN",
    "FIND_IN_SET",
    "IS NULL",
    "NOT LIKE",
    "NOT REGEXP",
    "NOT IN",
    "IS NOT NULL",
    "SQL",
)
FUNCTIONS = (
    "char_length",
    "date",
    "from_unixtime",
    "lower",
    "round",
    "floor",
    "ceil",
    "sec_to_time",
    "time_to_sec",
    "upper",
)
GROUPING = ("avg", "count", "count distinct", "group_concat", "max", "min", "sum")
NUMBER_TYPE_PATTERN = r"((?<!o)int(?!er)|numeric|real|float|double|decimal|money)"
EDIT_FUNCTIONS = MappingProxyType(
    {
        NUMBER_TYPE_PATTERN: ("+", "-"),
        "date": ("+ interval", "- interval"),
        "time": ("addtime", "subtime"),
        "char|text": ("concat",),
    }
)


@dataclass(frozen=True)
class ServerVersion:
    """Dialect flavor and numeric version reported by the server banner."""

    flavor: str
    version: tuple[int, ...]
    info: str = ""

    @property
    def is_maria(self) -> bool:
        return self.flavor == MARIA


def parse_version(text: str) -> tuple[int, ...]:
    """
    Turn a dotted version string into a tuple of ints.

    Non-numeric suffixes are ignored: ``"8.0.36-log"`` gives ``(8, 0, 36)``.
    """
    match = re.match(r"\s*(\d+(?:\.\d+)*)", text)
    return tuple(int(part) for part in match.group(1).split(".")) if match else ()


def parse_server_info(info: str) -> ServerVersion:
    """
    Read the flavor and version from a server banner.

    MariaDB servers may prefix the banner with a fake MySQL version for replication
    compatibility, e.g. ``5.5.5-10.1.5-MariaDB``; the version that precedes
    ``-MariaDB`` is the real one.

    Args:
        info: The banner returned by the server, e.g. ``"8.0.36"`` or ``"10.11.6-MariaDB-log"``.

    Returns:
        The parsed server version.
    """
    if "MariaDB" in info:
        match = re.search(r"([\d.]+)-MariaDB", info)
        return ServerVersion(MARIA, parse_version(match.group(1) if match else info), info)
    return ServerVersion(MYSQL, parse_version(info), info)


def compare_versions(left: tuple[int, ...], right: tuple[int, ...]) -> int:
    """Compare version tuples component by component, padding the shorter with zeros."""
    size = max(len(left), len(right))
    left = left + (0,) * (size - len(left))
    right = right + (0,) * (size - len(right))
    return (left > right) - (left < right)


def min_version(server: ServerVersion, mysql: VersionThreshold, maria: VersionThreshold = None) -> bool:
    """
    Check that the server is at least the given version for its dialect.

    Parameters
    ----------
    server : ServerVersion
        The connected server.
    mysql : str, int or float
        Minimum MySQL version. ``""`` means MySQL servers never qualify.
    maria : str, int, float or None
        Minimum MariaDB version. ``None`` reuses the MySQL threshold and ``""`` means
        MariaDB servers never qualify.

    Returns
    -------
    bool
        True if the server version is greater than or equal to the threshold.

    Examples
    --------
    >>> min_version(parse_server_info("10.1.5-MariaDB"), "5.7.8", "10.1.2")
    True
    >>> min_version(parse_server_info("5.7.7"), "5.7.8", "10.1.2")
    False
    """
    threshold = maria if server.is_maria and maria is not None else mysql
    if threshold is None or threshold == "":
        return False
    return compare_versions(server.version, parse_version(str(threshold))) >= 0


@dataclass(frozen=True)
class Capabilities:
    """
    Everything the dialect needs to know about the connected server.

    Instances are computed once per server banner by :func:`capabilities_for` and
    never mutated.
    """

    server: ServerVersion
    types: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    features: frozenset[str] = BASE_FEATURES
    partition_by: tuple[str, ...] = ()
    generated: tuple[str, ...] = ()
    insert_functions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    unsigned: tuple[str, ...] = UNSIGNED
    on_actions: tuple[str, ...] = ON_ACTIONS
    inout: tuple[str, ...] = INOUT
    operators: tuple[str, ...] = OPERATORS
    functions: tuple[str, ...] = FUNCTIONS
    grouping: tuple[str, ...] = GROUPING
    edit_functions: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: EDIT_FUNCTIONS)

    @property
    def flavor(self) -> str:
        return self.server.flavor

    @property
    def is_maria(self) -> bool:
        return self.server.is_maria

    @property
    def type_names(self) -> tuple[str, ...]:
        """All type names known to the server, in group order."""
        return tuple(name for group in self.types.values() for name in group)

    def min_version(self, mysql: VersionThreshold, maria: VersionThreshold = None) -> bool:
        """See :func:`min_version`."""
        return min_version(self.server, mysql, maria)

    def supports(self, feature: str) -> bool:
        """
        Check whether the server supports a feature.

        Args:
            feature: Feature name, e.g. ``"partitioning"``, ``"check"`` or ``"descidx"``.

        Returns:
            True if the feature can be used on this server.
        """
        if feature in UNSUPPORTED_FEATURES:
            return False
        if feature == "descidx" and not self.min_version(8):
            return False
        if feature in ("event", "partitioning") and not self.min_version(5.1):
            return False
        if feature in ("routine", "trigger", "view") and not self.min_version(5):
            return False
        return feature in self.features or (feature == "partitioning" and bool(self.partition_by))


@functools.lru_cache(maxsize=32)
def capabilities_for(server_info: str) -> Capabilities:
    """
    Compute the capabilities of a server from its banner.

    Args:
        server_info: The server banner, e.g. ``"8.0.36"`` or ``"10.6.16-MariaDB"``.

    Returns:
        The immutable capabilities of that server.
    """
    server = parse_server_info(server_info)
    gate = functools.partial(min_version, server)

    types = {group: dict(names) for group, names in BASE_TYPES.items()}
    insert_functions: dict[str, tuple[str, ...]] = {
        "char": ("md5", "sha1", "password", "encrypt", "uuid"),
        "binary": ("md5", "sha1"),
        "date|time": ("now",),
    }
    features = set(BASE_FEATURES)
    if gate(5.1):
        features.add("event")
    if gate(8):
        features.add("descidx")
    if gate("8.0.16", "10.2.1"):
        features.add("check")
    if gate("5.7.8", "10.2"):
        types["Strings"]["json"] = 4294967295
    if gate("", "10.7"):
        types["Strings"]["uuid"] = 128
        insert_functions["uuid"] = ("uuid",)
    if gate(9, ""):
        types["Numbers"]["vector"] = 16383
        insert_functions["vector"] = ("string_to_vector",)
    partition_by = ("HASH", "LINEAR HASH", "KEY", "LINEAR KEY", "RANGE", "LIST") if gate(5.1, "") else ()
    generated = ("STORED", "VIRTUAL") if gate(5.7, "10.2") else ()

    return Capabilities(
        server=server,
        types=MappingProxyType({group: MappingProxyType(names) for group, names in types.items()}),
        features=frozenset(features),
        partition_by=partition_by,
        generated=generated,
        insert_functions=MappingProxyType(insert_functions),
    )
