"""Stripe Checkout session creation for plan signup."""

import logging
from typing import Optional

from frontdesk.auth.supabase import SupabaseAuth
from frontdesk.errors import (
    CheckoutError,
    ConfigurationError,
    InvalidPlan,
    NotAuthenticated,
    RemoteServiceError,
)
from frontdesk.billing.gateway import StripeGateway
from frontdesk.billing.plans import PlanKey, PlanRegistry, is_plan_key
from frontdesk.billing.store import SubscriptionStore

logger = logging.getLogger(__name__)


async def create_session_for_user(
    user_id: Optional[str],
    plan_key: str,
    *,
    registry: PlanRegistry,
    gateway: Optional[StripeGateway],
    store: Optional[SubscriptionStore],
    auth: Optional[SupabaseAuth],
    app_url: str,
) -> Optional[str]:
    """
    Start a subscription for the signed-in user.

    Paid plans get a Stripe Checkout Session and the caller redirects to the
    returned URL. The free plan inserts a subscription row directly and
    returns None, meaning "nothing to redirect to".

    The user's email comes from the auth backend, never from the client.
    Every call creates a new remote session; there is no idempotency key.

    Args:
        user_id: Authenticated user ID from the identity cookie
        plan_key: Plan key submitted by the client
        registry: Plan to price mapping
        gateway: Stripe gateway, None when Stripe is not configured
        store: Subscription store, None when the database is not configured
        auth: Supabase auth client, None when not configured
        app_url: Public base URL for success/cancel redirects

    Returns:
        Stripe Checkout URL, or None for the free plan

    Raises:
        NotAuthenticated: No user identity
        InvalidPlan: plan_key outside the known set
        ConfigurationError: Price, Stripe, or backend not configured
        CheckoutError: Email missing, free insert failed, or no checkout URL
        RemoteServiceError: Stripe or auth backend call failed
    """
    if not user_id:
        raise NotAuthenticated()

    if not is_plan_key(plan_key):
        raise InvalidPlan()
    plan = PlanKey(plan_key)

    if auth is None or store is None:
        raise ConfigurationError("Account backend not configured")

    user_email = await auth.get_user_email(user_id)
    if not user_email:
        raise CheckoutError("User email not found")

    business_id = await store.get_business_id_for_user(user_id)

    if plan is PlanKey.FREE:
        if not business_id:
            logger.info(f"Free plan for user {user_id} without business - nothing to create")
            return None
        try:
            await store.insert_free_subscription(user_id, business_id)
        except RemoteServiceError as e:
            logger.error(f"Free subscription insert failed for user {user_id}: {e}")
            raise CheckoutError("Failed to create subscription") from e
        return None

    price_id = registry.price_id(plan)
    if not price_id:
        raise ConfigurationError("Price not configured for plan")

    if gateway is None:
        raise ConfigurationError("Stripe not configured")

    metadata = {"user_id": user_id}
    if business_id:
        metadata["business_id"] = business_id

    session = gateway.create_checkout_session(
        price_id=price_id,
        customer_email=user_email,
        client_reference_id=user_id,
        metadata=metadata,
        success_url=f"{app_url}/stripe/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{app_url}/stripe/cancel?plan={plan.value}",
    )

    url = session.get("url")
    if not url:
        raise CheckoutError("Failed to create checkout URL")

    return url
