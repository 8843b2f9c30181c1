"""Tests for the operator script that creates user records."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts.create_user import main
from user_management.config import DEFAULT_MANAGERS
from user_management.database import Database


@pytest.fixture(autouse=True)
def _default_managers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("USER_MANAGEMENT_MANAGERS_FILE", raising=False)


def test_creates_user_with_uppercased_pan(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "script.sqlite"

    exit_code = main(["Jane Doe", "5551234", "abcd1234e", DEFAULT_MANAGERS[0].manager_id, "--db", str(db_path)])

    assert exit_code == 0
    users = Database(db_path).find_users(mob_num="5551234")
    assert len(users) == 1
    assert users[0].pan_num == "ABCD1234E"
    assert users[0].user_id in capsys.readouterr().out


def test_rejects_unknown_manager(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "script.sqlite"

    exit_code = main(["Jane Doe", "5551234", "abcd1234e", "nobody", "--db", str(db_path)])

    assert exit_code == 1
    assert "Invalid manager_id" in capsys.readouterr().err
    assert Database(db_path).find_users() == []


def test_seeds_managers_from_configured_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    managers_file = tmp_path / "managers.yaml"
    managers_file.write_text("managers:\n  - manager_id: regional-lead\n", encoding="utf-8")
    monkeypatch.setenv("USER_MANAGEMENT_MANAGERS_FILE", str(managers_file))
    db_path = tmp_path / "script.sqlite"

    assert main(["Jane Doe", "5551234", "abcd1234e", "regional-lead", "--db", str(db_path)]) == 0

    database = Database(db_path)
    assert [manager.manager_id for manager in database.list_managers()] == ["regional-lead"]
    for default in DEFAULT_MANAGERS:
        assert database.get_manager(default.manager_id) is None
