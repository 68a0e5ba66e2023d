"""
Parsing of stored routine signatures.

``SHOW CREATE FUNCTION`` and ``SHOW CREATE PROCEDURE`` return the routine source as a
single statement. The grammar below reads the parameter list (and, for functions, the
``RETURNS`` type) out of it; the body is everything after that header. Type names are
taken from the server's type table, so the grammar is built per server and cached.
"""

from __future__ import annotations

import functools
import logging
import re

import pyparsing as pp

from .capabilities import BASE_TYPES
from .entities import Routine, RoutineParameter
from .errors import ParseError
from .utils import ENUM_LITERAL, ENUM_LITERAL_PATTERN, strip_c_slashes

logger = logging.getLogger(__name__.split(".")[0])

FUNCTION = "FUNCTION"
PROCEDURE = "PROCEDURE"

TYPE_ALIASES = (
    "bool",
    "boolean",
    "integer",
    "double precision",
    "real",
    "dec",
    "numeric",
    "fixed",
    "national char",
    "national varchar",
)
DEFAULT_TYPE_NAMES = tuple(name for group in BASE_TYPES.values() for name in group)


def _alternation(words: tuple[str, ...]) -> str:
    # longest first so that e.g. "double precision" wins over "double"
    ordered = sorted(set(words), key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(part) for part in word.split()) for word in ordered)


def build_comment_parser() -> pp.ParserElement:
    """
    Build a pyparsing parser for the comments MySQL allows between tokens.

    Returns
    -------
    pp.ParserElement
        Parser for ``/* */`` block comments, ``#`` and ``-- `` line comments and a bare
        ``--`` at the end of a line.
    """
    return pp.c_style_comment | pp.Regex(r"(?:#|-- )[^\n]*\n?") | pp.Regex(r"--\r?\n")


def build_type_parser(type_names: tuple[str, ...]) -> pp.ParserElement:
    """
    Build a pyparsing parser for a data type with its attributes.

    Parameters
    ----------
    type_names : tuple[str, ...]
        Type names known to the server; the fixed aliases are added.

    Returns
    -------
    pp.ParserElement
        Parser with results names ``type``, ``length``, ``zerofill``, ``unsigned``,
        ``charset`` and ``collate``.
    """
    base = pp.Regex(rf"(?:{_alternation(type_names + TYPE_ALIASES)})\b", flags=re.I).set_results_name("type")
    length = pp.Regex(rf"\((?P<length>(?:[^'\")]|{ENUM_LITERAL})+)\)", flags=re.S)
    zerofill = pp.Regex(r"zerofill\b", flags=re.I).set_results_name("zerofill")
    unsigned = pp.Regex(r"unsigned(?:\s+zerofill)?\b", flags=re.I).set_results_name("unsigned")
    charset = pp.Regex(r"(?:CHARSET|CHARACTER\s+SET)\s*['\"]?(?P<charset>[^'\"\s,)]+)['\"]?", flags=re.I)
    collate = pp.Regex(r"COLLATE\s*['\"]?(?P<collate>[^'\"\s,)]+)['\"]?", flags=re.I)
    return base + pp.Optional(length) + pp.Optional(zerofill) + pp.Optional(unsigned) + pp.Optional(charset) + pp.Optional(collate)


@functools.lru_cache(maxsize=16)
def build_signature_parser(type_names: tuple[str, ...], kind: str) -> pp.ParserElement:
    """
    Build a pyparsing parser for a routine header.

    The parser matches the parenthesized parameter list and, for functions, the
    ``RETURNS`` clause that follows it. Each parameter consumes its own trailing comma.

    Parameters
    ----------
    type_names : tuple[str, ...]
        Type names known to the server.
    kind : str
        ``"FUNCTION"`` or ``"PROCEDURE"``; only procedure parameters take IN/OUT/INOUT.

    Returns
    -------
    pp.ParserElement
        Parser with results names ``params`` and, for functions, ``returns``.
    """
    type_spec = build_type_parser(type_names)
    quoted_name = pp.QuotedString(quote_char="`", esc_quote="``", multiline=True, convert_whitespace_escapes=False)
    name = (quoted_name | pp.Regex(r"[^\s`,()]+")).set_results_name("name")
    parameter = name + type_spec + pp.Optional(pp.Suppress(","))
    if kind == PROCEDURE:
        inout = pp.MatchFirst(pp.CaselessKeyword(mode) for mode in ("INOUT", "IN", "OUT")).set_results_name("inout")
        parameter = pp.Optional(inout) + parameter
    signature = pp.Suppress("(") + pp.Group(pp.ZeroOrMore(pp.Group(parameter))).set_results_name("params") + pp.Suppress(")")
    if kind == FUNCTION:
        signature = signature + pp.CaselessKeyword("RETURNS").suppress() + pp.Group(type_spec).set_results_name("returns")
    signature.ignore(build_comment_parser())
    return signature


def normalize_enum(length: str) -> str:
    """
    Rewrite every quoted value of an ENUM/SET length in canonical form.

    Values are unquoted, their doubled quotes and C escapes decoded, then re-quoted
    with single quotes doubled and backslashes escaped.
    """

    def _canonical(match: re.Match) -> str:
        literal = match.group(0)
        quote = literal[0]
        value = strip_c_slashes(literal[1:-1].replace(quote * 2, quote))
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"

    return ENUM_LITERAL_PATTERN.sub(_canonical, length)


def _make_parameter(tokens: pp.ParseResults, name: str = "") -> RoutineParameter:
    base = tokens["type"]
    length = tokens.get("length")
    length = normalize_enum(length.strip()) if length else None
    zerofill = tokens.get("zerofill", "")
    unsigned = tokens.get("unsigned", "")
    full_type = " ".join(part for part in (base + (f"({length})" if length else ""), zerofill, unsigned) if part)
    return RoutineParameter(
        name=tokens.get("name", name),
        type=base.lower(),
        length=length,
        unsigned=re.sub(r"\s+", " ", f"{unsigned} {zerofill}".strip()).lower(),
        inout=tokens.get("inout", "").upper(),
        full_type=full_type,
        collation=(tokens.get("collate") or tokens.get("charset") or "").lower(),
    )


def parse_routine(
    create: str,
    kind: str,
    type_names: tuple[str, ...] = DEFAULT_TYPE_NAMES,
    name: str = "",
) -> Routine:
    """
    Decode the signature of a stored routine.

    Parameters
    ----------
    create : str
        Statement returned by ``SHOW CREATE FUNCTION`` or ``SHOW CREATE PROCEDURE``.
    kind : str
        ``"FUNCTION"`` or ``"PROCEDURE"``.
    type_names : tuple[str, ...]
        Type names known to the server.
    name : str
        Routine name, recorded on the result.

    Returns
    -------
    Routine
        The routine with its parameters, return type (functions only) and body.

    Raises
    ------
    ParseError
        If no routine header is found in ``create``.

    Examples
    --------
    >>> routine = parse_routine("CREATE FUNCTION `f`(`a` int) RETURNS int RETURN a + 1", "FUNCTION")
    >>> routine.params[0].name, routine.returns.type, routine.definition
    ('a', 'int', 'RETURN a + 1')
    """
    kind = kind.upper()
    parser = build_signature_parser(tuple(type_names), kind)
    for tokens, _, end in parser.scan_string(create, max_matches=1):
        break
    else:
        raise ParseError(f"Cannot read the {kind.lower()} signature of {name or 'routine'}")
    return Routine(
        name=name,
        kind=kind,
        params=[_make_parameter(param) for param in tokens["params"]],
        returns=_make_parameter(tokens["returns"]) if kind == FUNCTION else None,
        definition=create[end:].lstrip(),
    )
