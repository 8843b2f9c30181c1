import argparse
import os
import sys
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from user_management.config import load_settings, resolve_database_path
from user_management.database import Database
from user_management.exceptions import UserManagementError
from user_management.records import UserRecords


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user record directly in the database")
    parser.add_argument("full_name", help="Full name of the user")
    parser.add_argument("mob_num", help="Mobile number")
    parser.add_argument("pan_num", help="Tax identifier (stored uppercased)")
    parser.add_argument("manager_id", help="Identifier of an active manager")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USER_MANAGEMENT_DB_PATH or data/database.sqlite)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    db_env = args.db_path or os.getenv("USER_MANAGEMENT_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize(load_settings().managers)

    try:
        user_id = UserRecords(database).create_user(
            full_name=args.full_name.strip(),
            mob_num=args.mob_num.strip(),
            pan_num=args.pan_num.strip(),
            manager_id=args.manager_id.strip(),
        )
    except UserManagementError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user_id}: {args.full_name.strip()} (manager {args.manager_id.strip()})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
