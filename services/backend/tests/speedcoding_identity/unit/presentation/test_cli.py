"""Tests for the speedcoding CLI."""

import re
import sqlite3

import pytest
from typer.testing import CliRunner

from speedcoding_identity.presentation.cli import app as cli_module
from speedcoding_identity.presentation.cli.app import app

runner = CliRunner()


def _value(output: str, name: str) -> str:
    match = re.search(rf"{name}=(\S+)", output)
    assert match is not None, output
    return match.group(1)


def _tables(path) -> set[str]:
    with sqlite3.connect(path) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {name for (name,) in rows}


@pytest.fixture
def sqlite_env(monkeypatch, tmp_path):
    """Point the CLI at a throwaway SQLite database."""
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("JWT_ACCESS_SECRET_KEY", "cli-access")
    monkeypatch.setenv("JWT_REFRESH_SECRET_KEY", "cli-refresh")
    monkeypatch.setenv("DATABASE_URL_OVERRIDE", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setattr(cli_module, "configure_logging", lambda settings: None)
    return db_path


def test_generate_secrets_prints_two_distinct_keys():
    """Both JWT keys are printed and differ."""
    result = runner.invoke(app, ["secrets", "generate"])

    assert result.exit_code == 0
    access = _value(result.output, "JWT_ACCESS_SECRET_KEY")
    refresh = _value(result.output, "JWT_REFRESH_SECRET_KEY")
    assert access != refresh
    assert len(access) >= 64


def test_no_args_shows_help():
    """Running without a command prints usage."""
    result = runner.invoke(app, [])

    assert "Usage" in result.output


def test_db_init_and_drop(sqlite_env):
    """init creates the identity tables and drop removes them."""
    result = runner.invoke(app, ["db", "init"])

    assert result.exit_code == 0, result.output
    assert {"users", "refresh_tokens", "social_connections"} <= _tables(sqlite_env)

    result = runner.invoke(app, ["db", "drop", "--yes"])

    assert result.exit_code == 0, result.output
    assert "users" not in _tables(sqlite_env)


def test_db_drop_asks_for_confirmation(sqlite_env):
    """Declining the prompt leaves the tables in place."""
    runner.invoke(app, ["db", "init"])

    result = runner.invoke(app, ["db", "drop"], input="n\n")

    assert result.exit_code != 0
    assert "users" in _tables(sqlite_env)


def test_tokens_purge(sqlite_env):
    """Purging an empty table reports zero tokens."""
    runner.invoke(app, ["db", "init"])

    result = runner.invoke(app, ["tokens", "purge"])

    assert result.exit_code == 0, result.output
    assert "Purged 0 refresh tokens" in result.output
