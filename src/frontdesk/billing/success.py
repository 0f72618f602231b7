"""Resolve which plan a completed Checkout Session bought."""

import logging
from dataclasses import dataclass
from typing import Optional

from frontdesk.errors import RemoteServiceError
from frontdesk.billing.gateway import StripeGateway
from frontdesk.billing.plans import PLAN_DISPLAY_NAMES, PlanKey, PlanRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionPlan:
    plan_key: Optional[PlanKey] = None
    plan_name: Optional[str] = None


def _first_price_id(subscription) -> Optional[str]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    price = items[0].get("price") or {}
    return price.get("id")


def get_session_plan(
    session_id: str,
    *,
    gateway: Optional[StripeGateway],
    registry: PlanRegistry,
) -> SessionPlan:
    """
    Plan key and display name for a Checkout Session.

    Returns an empty SessionPlan when Stripe is not configured, the session
    has no subscription, the price is unknown, or Stripe fails.
    """
    if gateway is None or not session_id:
        return SessionPlan()

    try:
        session = gateway.retrieve_checkout_session(session_id, expand_subscription=True)

        subscription = session.get("subscription")
        if not subscription:
            return SessionPlan()
        if isinstance(subscription, str):
            subscription = gateway.retrieve_subscription(subscription)

        price_id = _first_price_id(subscription)
    except RemoteServiceError as e:
        logger.error(f"Could not resolve plan for session {session_id}: {e}")
        return SessionPlan()

    plan_key = registry.get_plan_key_from_price_id(price_id) if price_id else None
    if plan_key is None:
        return SessionPlan()

    return SessionPlan(plan_key=plan_key, plan_name=PLAN_DISPLAY_NAMES.get(plan_key, plan_key.value))
