"""aiohttp application factory and server runner."""

import asyncio
import logging
from typing import AsyncIterator, Optional

import asyncpg
from aiohttp import web

from frontdesk.billing.store import SubscriptionStore
from frontdesk.config.settings import AppConfig
from frontdesk.db.pool import close_pool, create_pool
from frontdesk.web.middleware import plan_cookie_middleware
from frontdesk.web.routes import routes
from frontdesk.web.services import SERVICES, Services

logger = logging.getLogger(__name__)


def _database_lifecycle(config: AppConfig, services: Services):
    """cleanup_ctx that opens the pool on startup and closes it on shutdown.

    A missing or unreachable database leaves the store unset; billing pages
    then degrade to their "not configured" behaviour.
    """

    async def _ctx(app: web.Application) -> AsyncIterator[None]:
        pool = None
        if config.db_dsn is not None:
            try:
                pool = await create_pool(config)
                logger.info(
                    f"Database pool initialized: min={config.db_pool_min}, max={config.db_pool_max}"
                )
            except (OSError, RuntimeError, asyncio.TimeoutError, asyncpg.PostgresError) as e:
                logger.error(f"Database unavailable - subscription store disabled: {e}")
        else:
            logger.warning("DB_DSN not set - subscription store disabled")

        if pool is not None:
            services.store = SubscriptionStore(pool, config.business_id)

        yield

        if pool is not None:
            services.store = None
            await close_pool(pool)

    return _ctx


def create_app(config: AppConfig, services: Optional[Services] = None) -> web.Application:
    """Create the aiohttp application.

    Args:
        config: Application configuration
        services: Prebuilt collaborators (tests pass substitutes). When
            omitted, they are built on startup, including the database pool.

    Returns:
        Configured Application
    """
    app = web.Application(middlewares=[plan_cookie_middleware])
    app.add_routes(routes)

    if services is None:
        services = Services.from_config(config)
        app.cleanup_ctx.append(_database_lifecycle(config, services))

    app[SERVICES] = services
    return app


async def run_server(
    config: AppConfig,
    shutdown_event: Optional[asyncio.Event] = None,
) -> None:
    """Run the HTTP server until the shutdown event is set."""
    app = create_app(config)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, config.server_host, config.server_port)
    await site.start()

    logger.info(f"Server listening on {config.server_host}:{config.server_port}")

    if shutdown_event:
        await shutdown_event.wait()
    else:
        await asyncio.Event().wait()

    logger.info("Shutting down server...")
    await runner.cleanup()
