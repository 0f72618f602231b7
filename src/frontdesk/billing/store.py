"""Subscription and business-ownership queries against the data backend."""

import logging
from typing import Optional

import asyncpg

from frontdesk.errors import RemoteServiceError
from frontdesk.billing.plans import PlanKey
from frontdesk.db.models import SubscriptionStatus, Table

logger = logging.getLogger(__name__)

# asyncpg raises these for query failures and dropped connections
_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class SubscriptionStore:
    """Reads subscription rows and resolves the business a user owns."""

    def __init__(self, pool: asyncpg.Pool, legacy_business_id: str = ""):
        self._pool = pool
        self._legacy_business_id = legacy_business_id or None

    async def has_subscription(self, user_id: str) -> bool:
        """
        Check whether a subscription row exists for the user.

        Raises:
            RemoteServiceError: On database errors
        """
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT id FROM {Table.SUBSCRIPTIONS} WHERE user_id = $1",
                    user_id,
                )
        except _DB_ERRORS as e:
            raise RemoteServiceError(
                f"Subscription lookup failed: {e}", service="postgres"
            ) from e

        return row is not None

    async def get_customer_id(self, user_id: str) -> Optional[str]:
        """
        Stripe customer ID on the user's subscription, if any.

        Raises:
            RemoteServiceError: On database errors
        """
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(
                    f"""
                    SELECT stripe_customer_id
                    FROM {Table.SUBSCRIPTIONS}
                    WHERE user_id = $1
                    """,
                    user_id,
                )
        except _DB_ERRORS as e:
            raise RemoteServiceError(
                f"Customer lookup failed: {e}", service="postgres"
            ) from e

    async def get_business_id_for_user(self, user_id: str) -> Optional[str]:
        """
        Resolve the business owned by a user.

        Tries the business_owners mapping table, then businesses.owner_user_id,
        then the legacy BUSINESS_ID setting. Lookup failures are logged and
        the next source is tried.
        """
        queries = (
            f"SELECT business_id FROM {Table.BUSINESS_OWNERS} WHERE user_id = $1",
            f"SELECT id FROM {Table.BUSINESSES} WHERE owner_user_id = $1",
        )

        for query in queries:
            try:
                async with self._pool.acquire() as conn:
                    business_id = await conn.fetchval(query, user_id)
            except _DB_ERRORS as e:
                logger.error(f"Business lookup failed for user {user_id}: {e}")
                continue

            if business_id:
                return str(business_id)

        return self._legacy_business_id

    async def insert_free_subscription(self, user_id: str, business_id: str) -> bool:
        """
        Insert an active free-tier subscription row.

        Returns:
            True if a row was inserted, False if the user already had one

        Raises:
            RemoteServiceError: On any other database error
        """
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {Table.SUBSCRIPTIONS}
                        (user_id, business_id, plan_key, status)
                    VALUES ($1, $2, $3, $4)
                    """,
                    user_id,
                    business_id,
                    PlanKey.FREE.value,
                    SubscriptionStatus.ACTIVE.value,
                )
        except asyncpg.UniqueViolationError:
            logger.info(f"User {user_id} already has a subscription - free insert skipped")
            return False
        except _DB_ERRORS as e:
            raise RemoteServiceError(
                f"Free subscription insert failed: {e}", service="postgres"
            ) from e

        logger.info(f"Created free subscription for user {user_id}")
        return True
