"""Success-page check that the checkout webhook has persisted the subscription."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from frontdesk.errors import RemoteServiceError
from frontdesk.billing.gateway import StripeGateway
from frontdesk.billing.store import SubscriptionStore

logger = logging.getLogger(__name__)


class ReconcileStatus(str, Enum):
    """Outcome of comparing Stripe payment state with the subscriptions table."""

    NOT_APPLICABLE = "not_applicable"  # unpaid, no subscription, or no user metadata
    RECONCILED = "reconciled"
    NEEDS_WEBHOOK = "needs_webhook"
    UNKNOWN = "unknown"  # Stripe or database unavailable


@dataclass(frozen=True)
class WebhookCheckResult:
    status: ReconcileStatus
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def needs_webhook(self) -> bool:
        return self.status is ReconcileStatus.NEEDS_WEBHOOK


async def check_webhook_connection(
    session_id: str,
    *,
    gateway: Optional[StripeGateway],
    store: Optional[SubscriptionStore],
) -> WebhookCheckResult:
    """
    Detect a paid checkout whose subscription row was never written.

    Returns NEEDS_WEBHOOK only when the session is paid, references a
    subscription, carries user_id metadata, and no subscriptions row exists
    for that user. Remote failures yield UNKNOWN so the page stays calm while
    callers can still tell it apart from RECONCILED.
    """
    if gateway is None or store is None:
        return WebhookCheckResult(ReconcileStatus.UNKNOWN, error="Billing not configured")

    try:
        session = gateway.retrieve_checkout_session(session_id)
        metadata = session.get("metadata") or {}
        user_id = metadata.get("user_id")

        if not user_id or not session.get("subscription") or session.get("payment_status") != "paid":
            return WebhookCheckResult(ReconcileStatus.NOT_APPLICABLE)

        if await store.has_subscription(user_id):
            return WebhookCheckResult(ReconcileStatus.RECONCILED, user_id=user_id)

    except RemoteServiceError as e:
        logger.error(f"Webhook check failed for session {session_id}: {e}")
        return WebhookCheckResult(ReconcileStatus.UNKNOWN, session_id=session_id, error=e.message)

    logger.warning(
        f"Session {session_id} paid but no subscription row for user {user_id} - webhook missing"
    )
    return WebhookCheckResult(
        ReconcileStatus.NEEDS_WEBHOOK, user_id=user_id, session_id=session_id
    )
