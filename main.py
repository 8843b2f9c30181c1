"""Command-line interface for the user management service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Execute `pip install -e .` to install dependencies."
    ) from exc

from user_management.config import ServiceSettings, load_settings
from user_management.database import Database

logger = logging.getLogger("user_management.main")

_DEFAULT_SERVICE_URL = "http://localhost:3000"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User management service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the tables and seed the default managers")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: USER_MANAGEMENT_HOST or 0.0.0.0)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port (default: USER_MANAGEMENT_PORT or 3000)",
    )

    users_parser = subparsers.add_parser("users", help="List active users from a running service")
    users_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )
    users_parser.add_argument("--manager-id", default=None, help="Only list users of this manager")
    users_parser.add_argument("--mob-num", default=None, help="Only list users with this mobile number")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def configure_logging(log_file: Path) -> None:
    """Send informational and error events to the console and ``log_file``."""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format=_LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
        force=True,
    )


def _initialise_database(settings: ServiceSettings) -> Database:
    database = Database(settings.database_path)
    database.initialize(settings.managers)
    return database


def _serve(*, database: Database, host: str, port: int) -> None:
    from user_management.api import create_app
    import uvicorn

    logger.info("Starting user management API on http://%s:%s", host, port)

    app = create_app(database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _list_users(service_url: str, *, manager_id: str | None = None, mob_num: str | None = None) -> int:
    endpoint = service_url.rstrip("/") + "/get_users"
    filters = {"manager_id": manager_id, "mob_num": mob_num}
    payload = {key: value for key, value in filters.items() if value}

    try:
        response = httpx.post(endpoint, json=payload, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact user management service: {exc}")
        return 1

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return 1

    try:
        users = response.json().get("users", [])
    except ValueError:
        print("Service returned an unexpected response format.")
        return 1

    if not users:
        print("No active users found.")
        return 0

    print(f"{len(users)} user(s) found:")
    print(f"{'User ID':<36}  {'Name':<24}  {'Mobile':<14}  {'PAN':<12}  Manager")
    print("-" * 120)
    for user in users:
        print(
            f"{user.get('user_id', '?'):<36}  {user.get('full_name', ''):<24}  "
            f"{user.get('mob_num', ''):<14}  {user.get('pan_num', ''):<12}  {user.get('manager_id') or '-'}"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_file)

    if args.command == "users":
        return _list_users(args.service_url, manager_id=args.manager_id, mob_num=args.mob_num)

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(
            database=database,
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
