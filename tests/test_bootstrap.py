import logging
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

import db
import main
from repo_events import EventLogRepo
from settings import settings


def test_open_pool_does_not_wait():
    pool = MagicMock()

    db.open_pool(pool)

    pool.open.assert_called_once_with(wait=False)


def test_close_pool():
    pool = MagicMock()

    db.close_pool(pool)

    pool.close.assert_called_once_with()


def test_create_pool_is_built_closed(monkeypatch):
    pool_class = MagicMock()
    monkeypatch.setattr(db, "ConnectionPool", pool_class)

    assert db.create_pool() is pool_class.return_value

    args, kwargs = pool_class.call_args
    assert args == (settings.db_url,)
    assert kwargs["open"] is False
    assert kwargs["min_size"] == settings.pool_min_size
    assert kwargs["max_size"] == settings.pool_max_size
    assert kwargs["timeout"] == settings.pool_timeout


def test_lifespan_wires_repo_and_closes_pool(monkeypatch, caplog):
    pool = MagicMock()
    monkeypatch.setattr(main, "create_pool", lambda: pool)
    caplog.set_level(logging.INFO)

    with TestClient(main.app):
        repo = main.app.state.repo
        assert isinstance(repo, EventLogRepo)
        assert repo.pool is pool
        assert repo.timeout == settings.pool_timeout
        pool.open.assert_called_once_with(wait=False)
        pool.close.assert_not_called()

    pool.close.assert_called_once_with()
    assert f"event log RESTful API server started on: {settings.port}" in caplog.text


def test_lifespan_uses_pool_for_inserts(monkeypatch):
    pool = MagicMock()
    conn = pool.connection.return_value.__enter__.return_value
    conn.cursor.return_value.__enter__.return_value.fetchone.return_value = ("abc",)
    monkeypatch.setattr(main, "create_pool", lambda: pool)

    with TestClient(main.app) as client:
        response = client.post("/api/v1/event", json={"sender": "node-1"})

    assert response.status_code == 200
    assert response.json()["_id"] == "abc"
