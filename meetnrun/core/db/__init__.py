"""
meetnrun.core.db
================

Connection bootstrap shared by the server and the migration runner:
open a psycopg_pool ConnectionPool with fixed tuning, then ping it.

    with connect(settings) as pool:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

Failures raise DatabaseOpenError / DatabaseUnreachableError; callers decide
whether to terminate.
"""

from meetnrun.core.db.pool import (
    CONN_MAX_LIFETIME,
    MAX_IDLE_CONNS,
    MAX_OPEN_CONNS,
    connect,
    open_pool,
    ping,
)

__all__ = [
    "CONN_MAX_LIFETIME",
    "MAX_IDLE_CONNS",
    "MAX_OPEN_CONNS",
    "connect",
    "open_pool",
    "ping",
]
