"""
Version information for dbadmin-mysql.

This module contains the package version, read by setup.py at build time.
"""

from __future__ import annotations

__version__ = "0.4.2"
