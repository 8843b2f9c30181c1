"""Error taxonomy shared by the storage layer, record service and HTTP API."""
from __future__ import annotations


class UserManagementError(Exception):
    """Base class for failures raised by the user management service."""


class ValidationError(UserManagementError):
    """Raised when a request is incomplete or references an unusable manager."""


class StorageError(UserManagementError):
    """Raised when the underlying SQLite store rejects or fails a statement."""


__all__ = ["StorageError", "UserManagementError", "ValidationError"]
