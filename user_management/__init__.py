"""Core utilities for the user management service."""

from __future__ import annotations

from typing import Any

from .config import resolve_database_path
from .database import Database
from .exceptions import StorageError, UserManagementError, ValidationError
from .records import UserRecords


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "StorageError",
    "UserManagementError",
    "UserRecords",
    "ValidationError",
    "create_app",
    "resolve_database_path",
]
