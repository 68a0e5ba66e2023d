"""
Database connection management for dbadmin-mysql.

This module contains the Connection class that wraps a PyMySQL connection with the
query helpers the dialect consumes, and the ``conn`` function that provides access
to a persistent connection built from the configuration.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any

import pymysql as client

from . import errors
from .settings import config
from .utils import escape_id, quote_string
from .version import __version__

logger = logging.getLogger(__name__.split(".")[0])
query_log_max_length = 300


def translate_query_error(client_error: Exception, query: str, connecting: bool = False) -> Exception:
    """
    Map a pymysql error to the matching dbadmin-mysql exception by server error code.

    Args:
        client_error: Error raised by pymysql.
        query: Statement that failed, kept on syntax and existence errors.
        connecting: The error came from login, so access codes mean bad credentials.

    Returns:
        A DbAdminError subclass instance, or ``client_error`` itself for codes
        without a translation.
    """
    logger.debug("type: {}, args: {}".format(type(client_error), client_error.args))

    err, *args = client_error.args or (None,)
    message = errors.shorten_error_message(str(args[0])) if args else ""

    match err:
        # loss of connection
        case 0 | "(0, '')":
            return errors.LostConnectionError("Server connection lost due to an interface error.", *args)
        case 2006:
            return errors.LostConnectionError("Connection timed out", *args)
        case 2013:
            return errors.LostConnectionError("Server connection lost", *args)
        # credentials
        case 1044 | 1045 if connecting:
            return errors.AuthenticationError("Access denied.", *args)
        case 1044 | 1142:
            return errors.AccessError("Insufficient privileges.", message, query)
        # integrity
        case 1062:
            return errors.DuplicateError(*args)
        case 1217 | 1451 | 1452 | 3730:
            return errors.IntegrityError(*args)
        case 1064:
            return errors.QuerySyntaxError(message, query)
        # existence
        case 1146:
            return errors.MissingTableError(message, query)
        case 1054:
            return errors.UnknownAttributeError(*args)
        case _:
            # all the other errors are re-raised in original form
            return client_error


def conn(
    host: str | None = None,
    user: str | None = None,
    password: str | None = None,
    *,
    init_fun: str | None = None,
    reset: bool = False,
    use_tls: bool | dict[str, Any] | None = None,
) -> Connection:
    """
    Shared server session used by adapters that are not handed a connection.

    The session is opened on first use, or again when ``reset`` is set. Any argument
    left as None falls back to the matching ``database.*`` or ``connection.*`` setting.

    Args:
        host: Server address, ``host`` or ``host:port``.
        user: Account name.
        password: Account password.
        init_fun: Statement run by the server right after login.
        reset: Discard the shared session and open a new one.
        use_tls: True demands TLS, False forbids it, None tries TLS first, and a
            dict is passed to pymysql as explicit SSL options.

    Returns:
        The shared Connection.

    Raises:
        AuthenticationError: If no host or user is configured.
    """
    if not hasattr(conn, "connection") or reset:
        host = host if host is not None else config["database.host"]
        user = user if user is not None else config["database.user"]
        password = password if password is not None else config["database.password"]
        if not host or not user:
            raise errors.AuthenticationError("Set database.host and database.user in the configuration.")
        init_fun = init_fun if init_fun is not None else config["connection.init_function"]
        use_tls = use_tls if use_tls is not None else config["database.use_tls"]
        conn.connection = Connection(host, user, password or "", None, init_fun, use_tls)
    return conn.connection


class Connection:
    """
    Session with a MySQL or MariaDB server, exposing the small query surface the
    adapters read metadata through.

    Args:
        host: Server address; a ``:port`` suffix wins over ``port``.
        user: Account name.
        password: Account password.
        port: TCP port, defaulting to ``database.port``.
        init_fun: Statement run by the server right after login.
        use_tls: See ``conn``.
        database: Schema selected at login.

    Attributes:
        conn_info: Keyword arguments handed to ``pymysql.connect``.
        connection_id: Server thread id of this session.
    """

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        port: int | None = None,
        init_fun: str | None = None,
        use_tls: bool | dict[str, Any] | None = None,
        database: str | None = None,
    ) -> None:
        if ":" in host:
            # the port in the hostname overrides the port argument
            host, port = host.split(":")
            port = int(port)
        elif port is None:
            port = config["database.port"]
        self.conn_info = dict(host=host, port=port, user=user, passwd=password)
        if use_tls is not False:
            self.conn_info["ssl"] = use_tls if isinstance(use_tls, dict) else {"ssl": {}}
        self.conn_info["ssl_input"] = use_tls
        self.init_fun = init_fun
        self._database = database
        self._conn = None
        self.connect()
        if not self.is_connected:
            raise errors.LostConnectionError("Connection failed {user}@{host}:{port}".format(**self.conn_info))
        logger.info("dbadmin-mysql {version} connected to {user}@{host}:{port}".format(version=__version__, **self.conn_info))
        self.connection_id = self.result("SELECT CONNECTION_ID()")

    def __repr__(self) -> str:
        connected = "connected" if self.is_connected else "disconnected"
        return "MySQL connection ({connected}) {user}@{host}:{port}".format(connected=connected, **self.conn_info)

    def _connect(self, with_ssl: bool) -> Any:
        return client.connect(
            init_command=self.init_fun,
            charset=config["connection.charset"],
            database=self._database,
            **{k: v for k, v in self.conn_info.items() if not (k == "ssl_input" or k == "ssl" and not with_ssl)},
        )

    def connect(self) -> None:
        """Open the session, preferring TLS unless told otherwise."""
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", ".*deprecated.*")
            try:
                try:
                    self._conn = self._connect(with_ssl=True)
                except client.err.InternalError:
                    # TLS is only preferred: retry without it
                    if self.conn_info["ssl_input"] is not None:
                        raise
                    self._conn = self._connect(with_ssl=False)
            except client.err.Error as err:
                raise translate_query_error(err, "", connecting=True)
        self._conn.autocommit(True)

    def close(self) -> None:
        """End the session."""
        self._conn.close()

    def ping(self) -> None:
        """Check the session is alive without reconnecting."""
        self._conn.ping(reconnect=False)

    @property
    def is_connected(self) -> bool:
        """Whether the server still answers a ping."""
        try:
            self.ping()
        except client.err.Error:
            return False
        return True

    @staticmethod
    def _execute_query(cursor: Any, query: str, args: tuple, suppress_warnings: bool) -> None:
        try:
            with warnings.catch_warnings():
                if suppress_warnings:
                    warnings.simplefilter("ignore")
                cursor.execute(query, args or None)
        except client.err.Error as err:
            raise translate_query_error(err, query)

    def query(
        self,
        query: str,
        args: tuple = (),
        *,
        as_dict: bool = False,
        suppress_warnings: bool = True,
        reconnect: bool | None = None,
    ) -> Any:
        """
        Run one statement and hand back its cursor.

        Args:
            query: SQL text, possibly with ``%s`` placeholders.
            args: Values bound to the placeholders.
            as_dict: Fetch rows as dicts keyed by column name.
            suppress_warnings: Silence pymysql warnings while executing.
            reconnect: Reopen the session and retry once when the server went away;
                None defers to ``database.reconnect``.

        Returns:
            The pymysql cursor holding the result set.

        Raises:
            LostConnectionError: The session dropped and was not, or could not be, reopened.
        """
        if reconnect is None:
            reconnect = config["database.reconnect"]
        logger.debug("Executing SQL:" + query[:query_log_max_length])
        cursor_class = client.cursors.DictCursor if as_dict else client.cursors.Cursor
        cursor = self._conn.cursor(cursor=cursor_class)
        try:
            self._execute_query(cursor, query, args, suppress_warnings)
        except errors.LostConnectionError:
            if not reconnect:
                raise
            logger.warning("Server connection lost, reconnecting")
            self.connect()
            logger.debug("Retrying statement after reconnect")
            cursor = self._conn.cursor(cursor=cursor_class)
            self._execute_query(cursor, query, args, suppress_warnings)
        return cursor

    # ---------- result helpers
    def rows(self, query: str, args: tuple = ()) -> list[dict[str, Any]]:
        """Return all rows of a query as dicts."""
        return list(self.query(query, args, as_dict=True).fetchall())

    def values(self, query: str, column: int = 0) -> list[Any]:
        """Return one column of all rows of a query."""
        return [row[column] for row in self.query(query).fetchall()]

    def key_values(self, query: str) -> dict[Any, Any]:
        """Return the first two columns of a query as a mapping."""
        return {row[0]: row[1] for row in self.query(query).fetchall()}

    def result(self, query: str, column: int = 0) -> Any:
        """Return one field of the first row of a query, or None if it returns no row."""
        row = self.query(query).fetchone()
        return None if row is None else row[column]

    def quote(self, value: str) -> str:
        """Render a string as an escaped SQL literal."""
        return quote_string(value)

    @property
    def server_info(self) -> str:
        """Version banner of the server, e.g. ``8.0.36`` or ``10.11.6-MariaDB``."""
        return self._conn.get_server_info()

    @property
    def database(self) -> str | None:
        """The current schema."""
        return self.result("SELECT DATABASE()")

    def select_database(self, name: str) -> None:
        """Change the current schema."""
        self.query("USE " + escape_id(name))
        self._database = name
