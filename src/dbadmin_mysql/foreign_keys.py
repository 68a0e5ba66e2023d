"""
Parsing of foreign key constraints out of ``SHOW CREATE TABLE`` output.
"""

from __future__ import annotations

import functools
import re

import pyparsing as pp

from .capabilities import ON_ACTIONS
from .entities import ForeignKey
from .utils import unescape_id

# backtick or double-quote delimited identifier with doubled inner quotes
QUOTED_IDENTIFIER = r'`(?:[^`]|``)+`|"(?:[^"]|"")+"'


@functools.lru_cache(maxsize=4)
def build_foreign_key_parser(on_actions: tuple[str, ...] = ON_ACTIONS) -> pp.ParserElement:
    """
    Build a pyparsing parser for a foreign key constraint clause.

    Parameters
    ----------
    on_actions : tuple[str, ...]
        Referential actions accepted after ``ON DELETE`` and ``ON UPDATE``.

    Returns
    -------
    pp.ParserElement
        Parser with results names ``name``, ``source``, ``reference``, ``target``,
        ``on_delete`` and ``on_update``.
    """
    identifier = pp.Regex(QUOTED_IDENTIFIER, flags=re.S)
    identifier_list = pp.Suppress("(") + pp.OneOrMore(identifier + pp.Optional(pp.Suppress(","))) + pp.Suppress(")")
    actions = sorted(on_actions, key=len, reverse=True)
    action = pp.Regex("(?:{})\\b".format("|".join(r"\s+".join(map(re.escape, name.split())) for name in actions)))
    reference = identifier + pp.Optional(pp.Suppress(".") + identifier)
    return (
        pp.Keyword("CONSTRAINT").suppress()
        + identifier.set_results_name("name")
        + pp.Keyword("FOREIGN").suppress()
        + pp.Keyword("KEY").suppress()
        + pp.Group(identifier_list).set_results_name("source")
        + pp.Keyword("REFERENCES").suppress()
        + pp.Group(reference).set_results_name("reference")
        + pp.Group(identifier_list).set_results_name("target")
        + pp.Optional(pp.Keyword("ON").suppress() + pp.Keyword("DELETE").suppress() + action.set_results_name("on_delete"))
        + pp.Optional(pp.Keyword("ON").suppress() + pp.Keyword("UPDATE").suppress() + action.set_results_name("on_update"))
    )


def parse_foreign_keys(create_table: str, on_actions: tuple[str, ...] = ON_ACTIONS) -> dict[str, ForeignKey]:
    """
    Extract the foreign keys declared in a ``CREATE TABLE`` statement.

    A single identifier after ``REFERENCES`` names a table of the current schema and
    leaves ``database`` empty; two identifiers name the database and the table.
    Missing ``ON DELETE``/``ON UPDATE`` clauses default to ``RESTRICT``.

    Args:
        create_table: Statement returned by ``SHOW CREATE TABLE``.
        on_actions: Referential actions the server knows.

    Returns:
        Mapping from constraint name to foreign key, in declaration order.

    Example:
        >>> fks = parse_foreign_keys("CONSTRAINT `fk1` FOREIGN KEY (`a`) REFERENCES `other` (`x`)")
        >>> fks["fk1"].table, fks["fk1"].on_delete
        ('other', 'RESTRICT')
    """
    foreign_keys: dict[str, ForeignKey] = {}
    parser = build_foreign_key_parser(tuple(on_actions))
    for tokens, _, _ in parser.scan_string(create_table):
        reference = [unescape_id(identifier) for identifier in tokens["reference"]]
        database, table = reference if len(reference) == 2 else ("", reference[0])
        name = unescape_id(tokens["name"])
        foreign_keys[name] = ForeignKey(
            name=name,
            source=[unescape_id(identifier) for identifier in tokens["source"]],
            database=database,
            table=table,
            target=[unescape_id(identifier) for identifier in tokens["target"]],
            on_delete=re.sub(r"\s+", " ", tokens.get("on_delete", "RESTRICT")),
            on_update=re.sub(r"\s+", " ", tokens.get("on_update", "RESTRICT")),
        )
    return foreign_keys
