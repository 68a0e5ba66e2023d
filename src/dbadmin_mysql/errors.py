"""
Exception classes for dbadmin-mysql.

This module defines the exception hierarchy raised by the MySQL/MariaDB dialect.
"""

from __future__ import annotations

import re


# --- Top Level ---
class DbAdminError(Exception):
    """Base class for errors raised by the dialect."""

    def suggest(self, *args: object) -> "DbAdminError":
        """
        Regenerate the exception with additional arguments.

        Parameters
        ----------
        *args : object
            Additional arguments to append to the exception.

        Returns
        -------
        DbAdminError
            A new exception of the same type with the additional arguments.
        """
        return self.__class__(*(self.args + args))


# --- Second Level ---
class AuthenticationError(DbAdminError):
    """The server rejected the credentials or no credentials were configured."""


class LostConnectionError(DbAdminError):
    """Loss of server connection."""


class QueryError(DbAdminError):
    """Errors arising from queries to the database."""


class ParseError(DbAdminError):
    """Server-emitted DDL text does not match the expected grammar."""


class UnsupportedFeatureError(DbAdminError):
    """The connected server version cannot perform the requested operation."""


# --- Third Level: QueryErrors ---
class QuerySyntaxError(QueryError):
    """Errors arising from incorrect query syntax."""


class AccessError(QueryError):
    """User access error: insufficient privileges."""


class MissingTableError(QueryError):
    """Query on a table that does not exist."""


class DuplicateError(QueryError):
    """Integrity error caused by a duplicate entry into a unique key."""


class IntegrityError(QueryError):
    """Integrity error triggered by foreign key constraints."""


class UnknownAttributeError(QueryError):
    """Query references a column that does not exist."""


class BatchExecutionError(QueryError):
    """
    A statement of a multi-statement operation failed.

    Statements executed before the failing one are not rolled back.

    Parameters
    ----------
    *args : object
        Error message and details.
    executed : int
        Number of statements that succeeded before the failure.
    """

    def __init__(self, *args: object, executed: int = 0) -> None:
        super().__init__(*args)
        self.executed = executed


def shorten_error_message(message: str) -> str:
    """Replace the verbose MySQL syntax error preamble with ``Syntax error``."""
    return re.sub(r"^You have an error.*?syntax to use", "Syntax error", message, count=1, flags=re.S)
