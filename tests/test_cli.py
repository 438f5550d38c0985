"""Unit tests for main.py -- the create-admin command."""

from __future__ import annotations

from unittest.mock import patch

import main
from auth.models import Role
from auth.store import UserStore
from core.database import Database


def test_create_admin(db: Database, capsys) -> None:
    assert main.create_admin(db, "Boss@Example.com", "The Boss", "Passw0rd1") == 0
    user = UserStore(db).get_by_email("boss@example.com")
    assert user is not None
    assert user.role == Role.admin
    assert "created" in capsys.readouterr().out


def test_create_admin_duplicate(db: Database, capsys) -> None:
    main.create_admin(db, "boss@example.com", "The Boss", "Passw0rd1")
    assert main.create_admin(db, "boss@example.com", "Other Boss", "Passw0rd1") == 1
    assert "User already exists with this email" in capsys.readouterr().out


def test_create_admin_weak_password(db: Database, capsys) -> None:
    assert main.create_admin(db, "boss@example.com", "The Boss", "weak") == 1
    assert "password" in capsys.readouterr().out
    assert UserStore(db).count_admins() == 0


def test_cli_prompts_for_password(db: Database) -> None:
    with (
        patch.object(main, "Database", return_value=db),
        patch.object(db, "close"),
        patch("getpass.getpass", return_value="Passw0rd1"),
    ):
        assert main.main(["create-admin", "--email", "boss@example.com", "--name", "The Boss"]) == 0
    assert UserStore(db).count_admins() == 1


def test_serve_runs_uvicorn() -> None:
    with patch("uvicorn.run") as run:
        assert main.main(["serve", "--port", "8123"]) == 0
    run.assert_called_once()
    assert run.call_args.args == ("asgi:app",)
    assert run.call_args.kwargs["port"] == 8123


def test_create_admin_malformed_email(db: Database, capsys) -> None:
    assert main.create_admin(db, "boss@..com", "The Boss", "Passw0rd1") == 1
    assert "email: Please provide a valid email" in capsys.readouterr().out
