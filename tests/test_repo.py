import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from repo_events import ConnectivityError, EventLogRepo


def _pool_returning(row):
    pool = MagicMock()
    conn = pool.connection.return_value.__enter__.return_value
    cur = conn.cursor.return_value.__enter__.return_value
    cur.fetchone.return_value = row
    return pool, cur


def test_insert_entry_returns_generated_id():
    generated = uuid.uuid4()
    pool, cur = _pool_returning((generated,))
    date = datetime(2024, 1, 1, tzinfo=timezone.utc)
    document = {"sender": "node-1", "date": "2024-01-01T00:00:00.000Z", "airReadings": [], "soilReadings": []}

    stored = EventLogRepo(pool, timeout=2).insert_entry(document, date)

    assert stored == {"_id": str(generated), **document}
    pool.connection.assert_called_once_with(timeout=2)
    sql, params = cur.execute.call_args.args
    assert "INSERT INTO event_log" in sql
    assert params[0] == "node-1"
    assert params[1] == date
    assert params[2].obj == document


@pytest.mark.parametrize("error", [PoolTimeout("no connection"), psycopg.OperationalError("down")])
def test_insert_entry_wraps_store_failures(error):
    pool = MagicMock()
    pool.connection.side_effect = error

    with pytest.raises(ConnectivityError) as exc:
        EventLogRepo(pool).insert_entry({"sender": "n"}, datetime.now(timezone.utc))

    assert exc.value.__cause__ is error
    assert exc.value.to_dict()["name"] == "ConnectivityError"
