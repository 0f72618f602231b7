"""Thin Stripe client used by the billing flow.

The gateway is constructed once by the web application and passed into each
billing operation. It never touches the module-global ``stripe.api_key``; the
key is sent per request so several gateways (or a test double) can coexist.
"""

import logging
from typing import Any, Optional

import stripe

from frontdesk.errors import RemoteServiceError
from frontdesk.config.settings import AppConfig

logger = logging.getLogger(__name__)


class StripeGateway:
    """Checkout sessions, subscriptions and invoices for one Stripe account."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("Stripe API key is required")
        self._api_key = api_key

    @classmethod
    def from_config(cls, config: AppConfig) -> Optional["StripeGateway"]:
        """Build a gateway, or return None when Stripe is not configured."""
        if not config.stripe_configured:
            logger.warning("STRIPE_SECRET_KEY not set - billing disabled")
            return None
        return cls(config.stripe_secret_key.get_secret_value())

    def create_checkout_session(
        self,
        *,
        price_id: str,
        customer_email: str,
        client_reference_id: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> Any:
        """
        Create a subscription-mode Checkout Session with a single line item.

        Raises:
            RemoteServiceError: On Stripe API errors
        """
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                mode="subscription",
                customer_email=customer_email,
                client_reference_id=client_reference_id,
                metadata=metadata,
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            raise RemoteServiceError(
                f"Checkout session creation failed: {e}", service="stripe"
            ) from e

        logger.info(f"Created checkout session {session.get('id')} for user {client_reference_id}")
        return session

    def retrieve_checkout_session(
        self, session_id: str, *, expand_subscription: bool = False
    ) -> Any:
        """
        Retrieve a Checkout Session, optionally expanding its subscription.

        Raises:
            RemoteServiceError: On Stripe API errors
        """
        params: dict[str, Any] = {}
        if expand_subscription:
            params["expand"] = ["subscription"]

        try:
            return stripe.checkout.Session.retrieve(
                session_id, api_key=self._api_key, **params
            )
        except stripe.StripeError as e:
            raise RemoteServiceError(
                f"Checkout session retrieval failed: {e}", service="stripe"
            ) from e

    def retrieve_subscription(self, subscription_id: str) -> Any:
        """
        Raises:
            RemoteServiceError: On Stripe API errors
        """
        try:
            return stripe.Subscription.retrieve(subscription_id, api_key=self._api_key)
        except stripe.StripeError as e:
            raise RemoteServiceError(
                f"Subscription retrieval failed: {e}", service="stripe"
            ) from e

    def list_paid_invoices(self, customer_id: str, limit: int) -> list[Any]:
        """
        List paid invoices for a customer, newest first (Stripe's default order).

        Raises:
            RemoteServiceError: On Stripe API errors
        """
        try:
            response = stripe.Invoice.list(
                api_key=self._api_key,
                customer=customer_id,
                limit=limit,
                status="paid",
            )
        except stripe.StripeError as e:
            raise RemoteServiceError(
                f"Invoice listing failed: {e}", service="stripe"
            ) from e

        return list(response.get("data") or [])
