"""Domain models persisted by the user management service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Manager:
    """A manager that user records may reference while it is active."""

    manager_id: str
    is_active: bool


@dataclass(frozen=True)
class User:
    """Represents a user record stored in the ``users`` table."""

    user_id: str
    full_name: str
    mob_num: str
    pan_num: str
    manager_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    is_active: bool


__all__ = ["Manager", "User"]
