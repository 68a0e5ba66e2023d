"""
Dialect adapter registry for dbadmin-mysql.

This module provides the adapter factory function and exports the adapters.
"""

from __future__ import annotations

from typing import Any

from .base import DdlSynthesizer, SchemaIntrospector
from .mysql import MySQLAdapter

__all__ = ["DdlSynthesizer", "MySQLAdapter", "SchemaIntrospector", "get_adapter"]

# Adapter registry mapping backend names to adapter classes
ADAPTERS: dict[str, type[MySQLAdapter]] = {
    "mysql": MySQLAdapter,
    "mariadb": MySQLAdapter,
}


def get_adapter(backend: str, connection: Any) -> MySQLAdapter:
    """
    Get adapter instance for the specified backend, bound to a connection.

    Parameters
    ----------
    backend : str
        Backend name: 'mysql' or 'mariadb'.
    connection : Any
        Connection to the server.

    Returns
    -------
    MySQLAdapter
        Adapter instance for the specified backend.

    Raises
    ------
    ValueError
        If the backend is not supported.

    Examples
    --------
    >>> from dbadmin_mysql.adapters import get_adapter
    >>> adapter = get_adapter('mysql', dbadmin_mysql.conn())
    """
    backend_lower = backend.lower()

    if backend_lower not in ADAPTERS:
        supported = sorted(set(ADAPTERS.keys()))
        raise ValueError(f"Unknown database backend: {backend}. Supported backends: {', '.join(supported)}")

    return ADAPTERS[backend_lower](connection)
