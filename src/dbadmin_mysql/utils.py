"""
General-purpose utilities for dbadmin-mysql.

This module provides identifier quoting and the string escaping helpers shared by
the metadata mappers, the parsers and the DDL builders.
"""

from __future__ import annotations

import re

import pymysql as client

# single-quoted SQL literal as the server prints it inside ENUM/SET type lists
ENUM_LITERAL = r"'(?:''|[^'\\]|\\.)*'"
ENUM_LITERAL_PATTERN = re.compile(ENUM_LITERAL, re.S)

_C_ESCAPES = {"a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}
_C_ESCAPE_PATTERN = re.compile(r"\\(x[0-9A-Fa-f]{1,2}|[0-7]{1,3}|.)", re.S)


def escape_id(name: str) -> str:
    """
    Quote an identifier with backticks, doubling embedded backticks.

    Args:
        name: Raw identifier.

    Returns:
        Backtick-quoted identifier, e.g. ``escape_id("a`b") == "`a``b`"``.
    """
    return "`" + name.replace("`", "``") + "`"


def unescape_id(quoted: str) -> str:
    """
    Strip the surrounding quote characters of an identifier and un-double the embedded ones.

    Both backtick and double-quote delimited identifiers are accepted; the closing
    character decides which quote is un-doubled.

    Args:
        quoted: Quoted identifier as emitted by the server.

    Returns:
        The raw identifier.
    """
    last = quoted[-1:]
    return quoted[1:-1].replace(last + last, last)


def escape_like(text: str) -> str:
    """Escape the LIKE wildcards and the backslash in ``text``."""
    return re.sub(r"([%_\\])", r"\\\1", text)


def quote_string(value: str) -> str:
    """
    Render a string as a single-quoted SQL literal.

    Args:
        value: String value to quote.

    Returns:
        Quoted and escaped string literal.
    """
    return "'" + client.converters.escape_string(value) + "'"


def strip_slashes(text: str) -> str:
    """
    Remove one level of backslash escaping.

    ``\\\\`` becomes a single backslash, ``\\0`` becomes NUL and any other escaped
    character is kept without its backslash. A trailing lone backslash is dropped.
    """
    return re.sub(r"\\(.?)", lambda m: "\0" if m.group(1) == "0" else m.group(1), text, flags=re.S)


def strip_c_slashes(text: str) -> str:
    """Decode C-style escape sequences (``\\n``, ``\\t``, octal and ``\\x`` hex)."""

    def _decode(match: re.Match) -> str:
        code = match.group(1)
        if code in _C_ESCAPES:
            return _C_ESCAPES[code]
        if code[0] == "x" and len(code) > 1:
            return chr(int(code[1:], 16))
        if code.isdigit() and set(code) <= set("01234567"):
            return chr(int(code, 8) & 0xFF)
        return code

    return _C_ESCAPE_PATTERN.sub(_decode, text)


def enum_values(length: str | None) -> list[str]:
    """
    Decode the value list of an ENUM or SET length specification.

    Args:
        length: Text between the parentheses of the type, e.g. ``'a''b','c'``.

    Returns:
        The raw values, e.g. ``["a'b", "c"]``.
    """
    if not length:
        return []
    return [strip_c_slashes(literal[1:-1].replace("''", "'")) for literal in ENUM_LITERAL_PATTERN.findall(length)]


def sql_literal(value: object, charset: str = "utf8mb4") -> str:
    """
    Render a Python value as an SQL literal: None as NULL, numbers bare, strings and
    dates quoted and bytes as binary strings.
    """
    return client.converters.escape_item(value, charset)
