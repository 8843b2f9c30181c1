"""Configuration management for the user management service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml

from .models import Manager

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_FILE = "app.log"

DEFAULT_MANAGERS: Sequence[Manager] = (
    Manager(manager_id="11111111-1111-1111-1111-111111111111", is_active=True),
    Manager(manager_id="22222222-2222-2222-2222-222222222222", is_active=True),
)


def _env_int(value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value {value!r} for service setting") from exc


def _manager_from_dict(data: Dict[str, object]) -> Manager:
    manager_id = data.get("manager_id")
    if manager_id is None or str(manager_id).strip() == "":
        raise ValueError("Seed manager entries must define a manager_id")
    return Manager(
        manager_id=str(manager_id).strip(),
        is_active=bool(data.get("is_active", True)),
    )


def load_seed_managers(config_path: Path) -> List[Manager]:
    """Load the managers to seed at startup from a YAML file."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    managers_raw = raw.get("managers")
    if not managers_raw:
        raise ValueError("Configuration file must define at least one manager under the 'managers' key")

    return [_manager_from_dict(item) for item in managers_raw]


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the service database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "database.sqlite").resolve(strict=False)


@dataclass(frozen=True)
class ServiceSettings:
    """Runtime settings resolved from the environment."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_file: Path = Path(DEFAULT_LOG_FILE)
    managers: Sequence[Manager] = DEFAULT_MANAGERS


def load_settings() -> ServiceSettings:
    """Load service settings from ``USER_MANAGEMENT_*`` environment variables."""

    managers_file = os.getenv("USER_MANAGEMENT_MANAGERS_FILE")
    if managers_file:
        managers: Sequence[Manager] = load_seed_managers(
            Path(managers_file).expanduser().resolve(strict=False)
        )
    else:
        managers = DEFAULT_MANAGERS

    host = os.getenv("USER_MANAGEMENT_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST
    log_file = os.getenv("USER_MANAGEMENT_LOG_FILE", DEFAULT_LOG_FILE).strip() or DEFAULT_LOG_FILE

    return ServiceSettings(
        database_path=resolve_database_path(os.getenv("USER_MANAGEMENT_DB_PATH")),
        host=host,
        port=_env_int(os.getenv("USER_MANAGEMENT_PORT"), DEFAULT_PORT),
        log_file=Path(log_file).expanduser(),
        managers=managers,
    )


__all__ = [
    "DEFAULT_MANAGERS",
    "DEFAULT_PORT",
    "ServiceSettings",
    "load_seed_managers",
    "load_settings",
    "resolve_database_path",
]
