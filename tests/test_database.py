"""
Database connection tests: URL composition, connect() success and failure,
and session scope behaviour.
"""

import logging

import pytest
from sqlalchemy import create_engine as real_create_engine, select
from sqlalchemy.exc import OperationalError

from mining_data.storage import database
from mining_data.storage.database import DatabaseManager, build_database_url, connect
from mining_data.storage.exceptions import DatabaseConnectionError
from mining_data.storage.models import Algorithm
from mining_data.storage.schema import update_schema


class UnreachableEngine:
    def __init__(self):
        self.disposed = False

    def connect(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def dispose(self):
        self.disposed = True


def test_build_database_url():
    url = build_database_url("db.local", "5432", "mining", "miner", "secret")

    assert url.drivername == "postgresql+psycopg2"
    assert url.host == "db.local"
    assert url.port == 5432
    assert url.database == "mining"
    assert url.username == "miner"
    assert url.password == "secret"
    assert url.query["sslmode"] == "disable"


def test_build_database_url_sslmode_is_configurable():
    url = build_database_url("db.local", "5432", "mining", "miner", "", sslmode="require")

    assert url.query["sslmode"] == "require"
    assert url.password is None


def test_connect_returns_manager_and_hides_password(monkeypatch, sqlite_url, caplog):
    calls = []

    def fake_create_engine(url, **kwargs):
        calls.append((url, kwargs))
        return real_create_engine(sqlite_url)

    monkeypatch.setattr(database, "create_engine", fake_create_engine)

    with caplog.at_level(logging.INFO):
        manager = connect("db.local", "5433", "mining", "miner", "hunter2", "America/Chicago")

    try:
        assert isinstance(manager, DatabaseManager)
        url, kwargs = calls[0]
        assert url.port == 5433
        assert kwargs["connect_args"] == {"options": "-c timezone=America/Chicago"}
        assert "db.local:5433" in caplog.text
        assert "hunter2" not in caplog.text
    finally:
        manager.close()


def test_connect_failure_raises(monkeypatch):
    engine = UnreachableEngine()
    monkeypatch.setattr(database, "create_engine", lambda url, **kwargs: engine)

    with pytest.raises(DatabaseConnectionError, match="db.local:5432"):
        connect("db.local", "5432", "mining", "miner", "secret", "UTC")

    assert engine.disposed


def test_connect_rejects_non_numeric_port():
    with pytest.raises(DatabaseConnectionError, match="port"):
        connect("db.local", "not-a-port", "mining", "miner", "secret", "UTC")


def test_get_session_commits(manager):
    update_schema(manager.engine)

    with manager.get_session() as session:
        session.add(Algorithm(name="scrypt"))

    with manager.get_session() as session:
        names = session.execute(select(Algorithm.name)).scalars().all()

    assert names == ["scrypt"]


def test_get_session_rolls_back_on_error(manager):
    update_schema(manager.engine)

    with pytest.raises(RuntimeError):
        with manager.get_session() as session:
            session.add(Algorithm(name="x11"))
            session.flush()
            raise RuntimeError("boom")

    with manager.get_session() as session:
        assert session.execute(select(Algorithm)).first() is None
