"""Pytest configuration and shared fixtures."""

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from frontdesk.billing.plans import PlanKey, PlanRegistry
from frontdesk.config.settings import AppConfig


@pytest.fixture
def mock_pool() -> tuple[MagicMock, AsyncMock]:
    """
    MagicMock asyncpg pool whose acquire() yields an AsyncMock connection.

    Returns:
        (pool, conn) so tests can set fetchval/fetchrow return values on conn
    """
    conn = AsyncMock()
    acquire = MagicMock()
    acquire.__aenter__.return_value = conn
    acquire.__aexit__.return_value = None
    pool = MagicMock()
    pool.acquire.return_value = acquire
    return pool, conn


@pytest.fixture
def config() -> AppConfig:
    """Config built from explicit values, independent of the environment."""
    return AppConfig(
        _env_file=None,
        env="dev",
        stripe_secret_key="sk_test_123",
        stripe_price_professional_monthly="price_abc",
        stripe_price_professional_yearly="price_pro_year",
        stripe_price_enterprise_monthly="price_ent_month",
        stripe_price_enterprise_yearly="",
        app_url="https://app.example.com",
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon",
        supabase_service_role_key="service",
    )


@pytest.fixture
def registry(config) -> PlanRegistry:
    return PlanRegistry.from_config(config)


@pytest.fixture
def full_registry() -> PlanRegistry:
    """Registry with a price for every paid plan."""
    return PlanRegistry(
        prices={
            PlanKey.FREE: None,
            PlanKey.PROFESSIONAL_MONTHLY: "price_abc",
            PlanKey.PROFESSIONAL_YEARLY: "price_pro_year",
            PlanKey.ENTERPRISE_MONTHLY: "price_ent_month",
            PlanKey.ENTERPRISE_YEARLY: "price_ent_year",
        }
    )


@pytest_asyncio.fixture
async def pool():
    """
    Live database pool for schema tests.

    Skipped unless DB_DSN points at a disposable PostgreSQL database.
    """
    dsn = os.environ.get("DB_DSN")
    if not dsn:
        pytest.skip("DB_DSN not set - live database tests skipped")

    from frontdesk.db.pool import close_pool, create_pool

    pool = await create_pool(AppConfig(_env_file=None, db_dsn=dsn))

    yield pool

    try:
        await asyncio.wait_for(close_pool(pool), timeout=10.0)
    except asyncio.TimeoutError:
        pass
