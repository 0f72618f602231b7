"""Postgres pool factory for the subscription store."""

import asyncio
import logging

import asyncpg

from frontdesk.config.settings import AppConfig

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5.0
CLOSE_TIMEOUT_SECONDS = 5.0


async def _check_pool(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        result = await conn.fetchval("SELECT 1")
    if result != 1:
        raise RuntimeError(f"Health check returned {result!r}")


async def create_pool(config: AppConfig) -> asyncpg.Pool:
    """
    Open a pool against config.db_dsn and verify it answers queries.

    The caller owns the pool; the web application closes it on cleanup.

    Raises:
        ValueError: If db_dsn is not configured
        RuntimeError: If the pool cannot be created or fails its health check
        asyncio.TimeoutError: If connecting takes longer than CONNECT_TIMEOUT_SECONDS
    """
    if config.db_dsn is None:
        raise ValueError("db_dsn not configured")

    try:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                str(config.db_dsn),
                min_size=config.db_pool_min,
                max_size=config.db_pool_max,
            ),
            timeout=CONNECT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        raise asyncio.TimeoutError(
            f"No database connection within {CONNECT_TIMEOUT_SECONDS:.0f}s - "
            "check that PostgreSQL is reachable at DB_DSN"
        )

    if pool is None:
        raise RuntimeError("asyncpg returned no pool")

    try:
        await _check_pool(pool)
    except Exception as e:
        await pool.close()
        raise RuntimeError(f"Database health check failed: {e}") from e

    return pool


async def close_pool(pool: asyncpg.Pool) -> None:
    """Close the pool, terminating it if connections do not drain in time."""
    try:
        await asyncio.wait_for(pool.close(), timeout=CLOSE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning(
            f"Pool close exceeded {CLOSE_TIMEOUT_SECONDS:.0f}s - terminating connections"
        )
        pool.terminate()
