"""Tests for subscription store queries (mocked pool)."""

import uuid

import asyncpg
import pytest

from frontdesk.errors import RemoteServiceError
from frontdesk.billing.store import SubscriptionStore


class TestHasSubscription:
    @pytest.mark.asyncio
    async def test_row_found(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.return_value = {"id": uuid.uuid4()}

        assert await SubscriptionStore(pool).has_subscription("u1") is True
        query, user_id = conn.fetchrow.call_args.args
        assert "FROM subscriptions" in query
        assert user_id == "u1"

    @pytest.mark.asyncio
    async def test_no_row(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.return_value = None

        assert await SubscriptionStore(pool).has_subscription("u1") is False

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.side_effect = asyncpg.PostgresError("connection lost")

        with pytest.raises(RemoteServiceError) as exc_info:
            await SubscriptionStore(pool).has_subscription("u1")

        assert exc_info.value.service == "postgres"


class TestBusinessLookup:
    """business_owners, then businesses.owner_user_id, then the legacy setting."""

    @pytest.mark.asyncio
    async def test_mapping_table_first(self, mock_pool):
        pool, conn = mock_pool
        business_id = uuid.uuid4()
        conn.fetchval.return_value = business_id

        result = await SubscriptionStore(pool).get_business_id_for_user("u1")

        assert result == str(business_id)
        assert conn.fetchval.call_count == 1
        assert "business_owners" in conn.fetchval.call_args.args[0]

    @pytest.mark.asyncio
    async def test_falls_back_to_owner_column(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.side_effect = [None, "biz_owner"]

        result = await SubscriptionStore(pool).get_business_id_for_user("u1")

        assert result == "biz_owner"
        assert "owner_user_id" in conn.fetchval.call_args.args[0]

    @pytest.mark.asyncio
    async def test_falls_back_to_legacy_setting(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = None

        store = SubscriptionStore(pool, legacy_business_id="biz_legacy")

        assert await store.get_business_id_for_user("u1") == "biz_legacy"

    @pytest.mark.asyncio
    async def test_lookup_error_tries_next_source(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.side_effect = [asyncpg.PostgresError("missing table"), "biz_owner"]

        assert await SubscriptionStore(pool).get_business_id_for_user("u1") == "biz_owner"

    @pytest.mark.asyncio
    async def test_nothing_found(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = None

        assert await SubscriptionStore(pool).get_business_id_for_user("u1") is None


class TestFreeSubscription:
    @pytest.mark.asyncio
    async def test_insert(self, mock_pool):
        pool, conn = mock_pool

        inserted = await SubscriptionStore(pool).insert_free_subscription("u1", "biz_1")

        assert inserted is True
        args = conn.execute.call_args.args
        assert "INSERT INTO subscriptions" in args[0]
        assert args[1:] == ("u1", "biz_1", "free", "active")

    @pytest.mark.asyncio
    async def test_duplicate_ignored(self, mock_pool):
        pool, conn = mock_pool
        conn.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        assert await SubscriptionStore(pool).insert_free_subscription("u1", "biz_1") is False

    @pytest.mark.asyncio
    async def test_other_errors_raise(self, mock_pool):
        pool, conn = mock_pool
        conn.execute.side_effect = asyncpg.PostgresError("disk full")

        with pytest.raises(RemoteServiceError):
            await SubscriptionStore(pool).insert_free_subscription("u1", "biz_1")


class TestCustomerId:
    @pytest.mark.asyncio
    async def test_returns_customer(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = "cus_123"

        assert await SubscriptionStore(pool).get_customer_id("u1") == "cus_123"

    @pytest.mark.asyncio
    async def test_free_tier_has_none(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = None

        assert await SubscriptionStore(pool).get_customer_id("u1") is None
