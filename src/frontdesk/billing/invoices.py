"""Paid invoice history for the settings page."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

from frontdesk.errors import RemoteServiceError
from frontdesk.billing.gateway import StripeGateway

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 12


@dataclass
class Invoice:
    """Client-safe invoice summary."""

    id: str
    number: Optional[str]
    date_paid: str  # ISO-8601, UTC
    amount: int  # minor currency units
    currency: str
    status: str
    hosted_invoice_url: Optional[str]
    invoice_pdf_url: Optional[str]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class InvoiceList:
    invoices: list[Invoice] = field(default_factory=list)
    error: Optional[str] = None


def _to_invoice(raw) -> Invoice:
    transitions = raw.get("status_transitions") or {}
    paid_at = transitions.get("paid_at") or raw.get("created")
    return Invoice(
        id=raw["id"],
        number=raw.get("number"),
        date_paid=datetime.fromtimestamp(paid_at, tz=timezone.utc).isoformat(),
        amount=raw.get("amount_paid") or 0,
        currency=(raw.get("currency") or "usd").upper(),
        status=raw.get("status") or "paid",
        hosted_invoice_url=raw.get("hosted_invoice_url"),
        invoice_pdf_url=raw.get("invoice_pdf"),
    )


def get_invoices_for_customer(
    customer_id: str,
    *,
    gateway: Optional[StripeGateway],
    limit: int = DEFAULT_LIMIT,
) -> InvoiceList:
    """Fetch paid invoices for a Stripe customer, newest first."""
    if gateway is None:
        return InvoiceList(error="Stripe not configured")

    try:
        raw_invoices = gateway.list_paid_invoices(customer_id, limit)
    except RemoteServiceError as e:
        logger.error(f"Invoice fetch failed for customer {customer_id}: {e}")
        return InvoiceList(error="Failed to fetch invoices")

    return InvoiceList(invoices=[_to_invoice(raw) for raw in raw_invoices])
