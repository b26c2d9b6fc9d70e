# db/pool.py
from contextlib import contextmanager
from typing import Iterator

from psycopg import Error as PsycopgError
from psycopg_pool import ConnectionPool, PoolTimeout

from meetnrun.core.config import Settings
from meetnrun.core.errors import DatabaseOpenError, DatabaseUnreachableError
from meetnrun.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

# Fixed pool tuning. Idle connections are bounded by MAX_OPEN_CONNS, which
# equals MAX_IDLE_CONNS, so the idle cap needs no separate setting.
CONN_MAX_LIFETIME = 3 * 60
MAX_OPEN_CONNS = 25
MAX_IDLE_CONNS = 25
MIN_POOL_SIZE = 1
OPEN_TIMEOUT = 10.0
POOL_NAME = "meetnrun"


def open_pool(settings: Settings) -> ConnectionPool:
    """
    Create and open the ConnectionPool with the fixed tuning.
    Raises DatabaseOpenError if the pool cannot be created or opened.
    """
    try:
        pool = ConnectionPool(
            settings.conninfo,
            min_size=MIN_POOL_SIZE,
            max_size=MAX_OPEN_CONNS,
            max_lifetime=CONN_MAX_LIFETIME,
            timeout=OPEN_TIMEOUT,
            name=POOL_NAME,
            open=False,
        )
    except (PsycopgError, ValueError) as e:
        raise DatabaseOpenError("could not open database connection", cause=e) from e

    try:
        pool.open(wait=True, timeout=OPEN_TIMEOUT)
    except (PoolTimeout, PsycopgError) as e:
        pool.close()
        raise DatabaseOpenError("could not open database connection", cause=e) from e
    logger.debug(f"Opened pool {POOL_NAME} to {settings.host}:{settings.port}/{settings.database}")
    return pool


def ping(pool: ConnectionPool) -> None:
    """Run a trivial query on a pooled connection. Raises DatabaseUnreachableError."""
    try:
        with pool.connection(timeout=OPEN_TIMEOUT) as conn:
            conn.execute("SELECT 1")
    except (PoolTimeout, PsycopgError) as e:
        raise DatabaseUnreachableError("could not reach database", cause=e) from e


@contextmanager
def connect(settings: Settings) -> Iterator[ConnectionPool]:
    """Open the pool, verify it is reachable, and close it on exit."""
    pool = open_pool(settings)
    try:
        ping(pool)
        logger.info(
            "Database reachable",
            extra={"host": settings.host, "port": settings.port, "database": settings.database},
        )
        yield pool
    finally:
        pool.close()
