from __future__ import annotations

from pathlib import Path

import pytest

import main
from main import _parse_args
from signon.database import Database


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_list_users_subcommand_available() -> None:
    args = _parse_args(["list-users"])
    assert args.command == "list-users"


def test_list_users_prints_registered_accounts(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    db_path = tmp_path / "cli.sqlite3"
    database = Database(db_path)
    database.initialize()
    database.create_user("Ada", "ada@gmail.com", "https://image.com/ada.png", "g-ada")

    monkeypatch.setenv("SIGNON_DB_PATH", str(db_path))
    monkeypatch.delenv("SIGNON_CONFIG", raising=False)
    main.main(["list-users"])

    output = capsys.readouterr().out
    assert "1 user(s) found" in output
    assert "ada@gmail.com" in output
    assert "g-ada" in output


def test_serve_requires_secret(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIGNON_DB_PATH", str(tmp_path / "cli.sqlite3"))
    monkeypatch.delenv("SIGNON_CONFIG", raising=False)
    monkeypatch.delenv("SIGNON_SECRET", raising=False)
    monkeypatch.delenv("SECRET", raising=False)

    with pytest.raises(SystemExit):
        main.main(["serve"])
