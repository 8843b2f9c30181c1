"""Validation and record operations for user records.

Every operation is a single request/response unit of work against the
:class:`~user_management.database.Database` handle passed to the service.
Values that are absent, ``None`` or an empty string are treated as missing.
"""
from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Mapping, Optional

from .database import UPDATABLE_COLUMNS, Database
from .exceptions import ValidationError
from .models import User

logger = logging.getLogger("user_management.records")

MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_MANAGER_MESSAGE = "Invalid manager_id"
TEXT_COLUMNS = ("full_name", "mob_num", "pan_num")


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and value == "")


class UserRecords:
    """Create, query, update and delete user records."""

    def __init__(self, database: Database) -> None:
        self._database = database

    @property
    def database(self) -> Database:
        return self._database

    def ensure_active_manager(self, manager_id: Optional[str]) -> None:
        """Raise :class:`ValidationError` unless ``manager_id`` names an active manager."""

        if _is_missing(manager_id):
            raise ValidationError(INVALID_MANAGER_MESSAGE)
        manager = self._database.get_manager(str(manager_id))
        if manager is None or not manager.is_active:
            raise ValidationError(INVALID_MANAGER_MESSAGE)

    def create_user(
        self,
        *,
        full_name: Optional[str],
        mob_num: Optional[str],
        pan_num: Optional[str],
        manager_id: Optional[str],
    ) -> str:
        """Insert a new user and return its generated identifier."""

        if any(_is_missing(value) for value in (full_name, mob_num, pan_num, manager_id)):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        self.ensure_active_manager(manager_id)

        user_id = str(uuid.uuid4())
        self._database.insert_user(
            user_id,
            full_name=str(full_name),
            mob_num=str(mob_num),
            pan_num=str(pan_num).upper(),
            manager_id=str(manager_id),
        )
        logger.info("Created user %s under manager %s", user_id, manager_id)
        return user_id

    def query_users(
        self,
        *,
        user_id: Optional[str] = None,
        mob_num: Optional[str] = None,
        manager_id: Optional[str] = None,
    ) -> List[User]:
        """Return active users matching every supplied filter."""

        return self._database.find_users(user_id=user_id, mob_num=mob_num, manager_id=manager_id)

    def update_users(
        self,
        user_ids: Optional[Iterable[str]],
        update_data: Optional[Mapping[str, object]],
    ) -> int:
        """Apply ``update_data`` to every user in ``user_ids`` as one batch.

        The manager reference, when present, is validated once for the whole
        batch. The batch is committed atomically; the return value is the
        number of rows that matched.
        """

        if user_ids is None or not update_data:
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        unknown = sorted(set(update_data) - set(UPDATABLE_COLUMNS))
        if unknown:
            raise ValidationError(f"Unknown update field(s): {', '.join(unknown)}")

        fields = dict(update_data)
        for column in TEXT_COLUMNS:
            if column in fields and (not isinstance(fields[column], str) or fields[column] == ""):
                raise ValidationError(f"Invalid value for {column}")
        if "is_active" in fields and not isinstance(fields["is_active"], bool):
            raise ValidationError("Invalid value for is_active")
        if "manager_id" in fields:
            self.ensure_active_manager(fields["manager_id"])  # type: ignore[arg-type]
        if "pan_num" in fields:
            fields["pan_num"] = fields["pan_num"].upper()

        identifiers = list(dict.fromkeys(user_ids))
        matched = self._database.update_users(identifiers, fields)
        logger.info(
            "Updated %s of %s user(s) with fields %s",
            matched,
            len(identifiers),
            ", ".join(sorted(fields)),
        )
        return matched

    def delete_users(self, *, user_id: Optional[str] = None, mob_num: Optional[str] = None) -> int:
        """Hard-delete users whose id equals ``user_id`` or whose mobile equals ``mob_num``.

        When both are supplied the predicates are ORed, so two unrelated rows
        may be removed by one call.
        """

        if _is_missing(user_id) and _is_missing(mob_num):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        deleted = self._database.delete_users(user_id=user_id, mob_num=mob_num)
        logger.info("Deleted %s user(s) matching user_id=%s mob_num=%s", deleted, user_id, mob_num)
        return deleted


__all__ = [
    "INVALID_MANAGER_MESSAGE",
    "MISSING_FIELDS_MESSAGE",
    "UserRecords",
]
