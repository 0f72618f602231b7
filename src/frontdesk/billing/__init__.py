"""Stripe billing flow.

Handles plan validation, checkout session creation, success-page plan lookup,
webhook reconciliation checks, and invoice history. Subscription rows are
written by the webhook handler, which lives outside this service.
"""

from frontdesk.billing.checkout import create_session_for_user
from frontdesk.billing.invoices import get_invoices_for_customer
from frontdesk.billing.plans import PlanKey, PlanRegistry, is_plan_key
from frontdesk.billing.reconcile import check_webhook_connection
from frontdesk.billing.success import get_session_plan

__all__ = [
    "PlanKey",
    "PlanRegistry",
    "check_webhook_connection",
    "create_session_for_user",
    "get_invoices_for_customer",
    "get_session_plan",
    "is_plan_key",
]
