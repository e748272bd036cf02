"""
Repository: SQL operations for `event_log`.

This file contains only DB interaction code. Each event entry is stored
as one JSONB document next to the columns the store generates or indexes
(`id`, `sender`, `date`). Keep business rules out of this module.

Important notes:
- We convert the document using `Jsonb` so Postgres stores native JSONB.
- The pooled connection commits when its `with` block exits, so the
  write is durable once `insert_entry` returns.
- Any driver or pool failure surfaces as `ConnectivityError`; there is
  no retry here.
"""

import logging
from datetime import datetime
from typing import Any, Dict

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

logger = logging.getLogger(__name__)


class ConnectivityError(Exception):
    """The document store is unreachable or rejected the write."""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": "ConnectivityError", "message": str(self)}


class EventLogRepo:
    """DB access only. No business logic here.

    Responsibilities:
    - Map an event document -> SQL parameters
    - Return the stored document enriched with its generated `_id`
    """

    def __init__(self, pool: ConnectionPool, timeout: float | None = None):
        self.pool = pool
        self.timeout = timeout

    def insert_entry(self, document: Dict[str, Any], date: datetime) -> Dict[str, Any]:
        """Insert one event document and return it with `_id` first.

        `document` must be JSON-ready; `date` is the same timestamp as
        `document["date"]` kept as a datetime for the indexed column.
        """

        try:
            with self.pool.connection(timeout=self.timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO event_log (sender, date, document) VALUES (%s, %s, %s) RETURNING id",
                        (document["sender"], date, Jsonb(document)),
                    )
                    row = cur.fetchone()
        except (PoolTimeout, psycopg.Error) as e:
            logger.warning(f"Insert into event_log failed: {e}")
            raise ConnectivityError(f"Insert failed: {e}") from e

        return {"_id": str(row[0]), **document}
