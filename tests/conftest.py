"""Shared test fixtures for pg-meta."""

from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace
from unittest.mock import MagicMock

import psycopg
import pytest
from typer.testing import CliRunner

from pg_meta.cli.main import app
from pg_meta.core.client import query
from pg_meta.core.config import AppConfig, ResolvedConfig, resolve_config
from pg_meta.core.exceptions import ConnectionError
from tests.integration_config import TEST_DSN

_ISOLATED_ENV_VARS = (
    "PGHOST",
    "PGPORT",
    "PGDATABASE",
    "PGUSER",
    "PGPASSWORD",
    "PG_META_PROFILE",
    "PG_META_SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's PG* variables and config file out of tests."""
    for var in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "pg_meta.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    return ResolvedConfig(host="db.invalid", dbname="testdb", connect_timeout=1)


@pytest.fixture
def fake_connect(monkeypatch):
    """Replace psycopg.connect with a MagicMock connection.

    Returns a namespace with ``connect`` (the patched callable),
    ``connection`` and ``cursor`` mocks. Configure ``cursor.description``
    and ``cursor.fetchall`` per test.
    """
    cursor = MagicMock()
    cursor.description = None
    cursor.fetchall.return_value = []
    cursor.statusmessage = "SELECT 0"

    connection = MagicMock()
    connection.closed = False
    connection.cursor.return_value.__enter__.return_value = cursor

    connect = MagicMock(return_value=connection)
    monkeypatch.setattr(psycopg, "connect", connect)
    return SimpleNamespace(connect=connect, connection=connection, cursor=cursor)


@pytest.fixture(scope="session")
def pg_config():
    """Connection config for the integration database; skips when unreachable."""
    config = resolve_config(AppConfig(), dsn=TEST_DSN)
    try:
        query(config, "SELECT 1")
    except ConnectionError as e:
        pytest.skip(f"PostgreSQL not reachable: {e.message}")
    return config
