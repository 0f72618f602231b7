"""Billing error taxonomy.

Every error carries a message that is safe to show the user. Handlers map
the class to an HTTP status; read-only paths downgrade them to empty results.
"""


class BillingError(Exception):
    """Base class for billing flow errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPlan(BillingError):
    """Plan key missing or outside the known set (HTTP 400)."""

    def __init__(self, message: str = "Invalid plan"):
        super().__init__(message)


class NotAuthenticated(BillingError):
    """No user identity on the request (HTTP 401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ConfigurationError(BillingError):
    """Stripe, the data store, or a plan price is not configured."""


class CheckoutError(BillingError):
    """Checkout could not be started for a reason the user can act on."""


class RemoteServiceError(BillingError):
    """Stripe, Supabase, or Postgres call failed."""

    def __init__(self, message: str, *, service: str = ""):
        super().__init__(message)
        self.service = service
