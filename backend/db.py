"""
Database connection helper.

This module centralizes how the document store connection is created.
The service keeps one `psycopg_pool.ConnectionPool` for the whole process
lifetime: it is built once during application startup and handed to the
repository, never opened per request.

The pool is opened without waiting for the first connection. If the
database is unreachable at startup the server still starts listening and
each insert fails on its own once `POOL_TIMEOUT` elapses.

Usage:
    from db import create_pool, open_pool
    pool = create_pool()
    open_pool(pool)
    with pool.connection() as conn:
        conn.execute("SELECT 1;")
"""

import logging

from psycopg_pool import ConnectionPool
from settings import settings

logger = logging.getLogger(__name__)


def create_pool() -> ConnectionPool:
    """Build (but do not open) the pool described by `settings`."""

    return ConnectionPool(
        settings.db_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        kwargs={"connect_timeout": 5},
        open=False,
    )


def open_pool(pool: ConnectionPool) -> None:
    """Start the pool workers without blocking until a connection is ready."""

    pool.open(wait=False)
    logger.info(f"Connection pool opening (min={pool.min_size}, max={pool.max_size})")


def close_pool(pool: ConnectionPool) -> None:
    pool.close()
