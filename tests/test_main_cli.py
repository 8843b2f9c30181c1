from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

import main
from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_users_subcommand_options() -> None:
    args = _parse_args(["users", "--manager-id", "m-1"])
    assert args.command == "users"
    assert args.manager_id == "m-1"
    assert args.service_url == "http://localhost:3000"


def test_configure_logging_writes_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "app.log"
    root = logging.getLogger()
    previous = list(root.handlers)
    try:
        main.configure_logging(log_file)
        logging.getLogger("user_management.test").info("hello from the test")
        for handler in root.handlers:
            handler.flush()
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in previous:
            root.addHandler(handler)


def test_init_db_creates_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    db_path = tmp_path / "db.sqlite"
    monkeypatch.setenv("USER_MANAGEMENT_DB_PATH", str(db_path))
    monkeypatch.setenv("USER_MANAGEMENT_LOG_FILE", str(tmp_path / "app.log"))
    monkeypatch.delenv("USER_MANAGEMENT_MANAGERS_FILE", raising=False)
    monkeypatch.setattr(main, "configure_logging", lambda log_file: None)

    assert main.main(["init-db"]) == 0

    assert db_path.exists()
    assert "Database initialisation complete." in capsys.readouterr().out


def test_list_users_prints_table(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    captured = {}

    def _fake_post(url, json, timeout):
        captured["url"] = url
        captured["json"] = json
        request = httpx.Request("POST", url)
        return httpx.Response(
            200,
            request=request,
            json={
                "users": [
                    {
                        "user_id": "u-1",
                        "full_name": "Jane Doe",
                        "mob_num": "5551234",
                        "pan_num": "ABCD1234E",
                        "manager_id": "m-1",
                    }
                ]
            },
        )

    monkeypatch.setattr(main.httpx, "post", _fake_post)

    assert main._list_users("http://service:3000/", manager_id="m-1") == 0

    assert captured == {"url": "http://service:3000/get_users", "json": {"manager_id": "m-1"}}
    output = capsys.readouterr().out
    assert "1 user(s) found:" in output
    assert "Jane Doe" in output


def test_list_users_reports_connection_errors(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    def _fail(url, json, timeout):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(main.httpx, "post", _fail)

    assert main._list_users("http://service:3000") == 1
    assert "Failed to contact user management service" in capsys.readouterr().out
