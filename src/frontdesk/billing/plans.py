"""Server-only plan registry: plan keys, Stripe price mapping, display names.

Only plan keys ever reach the browser. Stripe price IDs are resolved from the
environment once, when the registry is built, and stay server-side.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from frontdesk.config.settings import AppConfig

logger = logging.getLogger(__name__)


class PlanKey(str, Enum):
    """Billing tiers offered on the pricing page."""

    FREE = "free"
    PROFESSIONAL_MONTHLY = "professional_monthly"
    PROFESSIONAL_YEARLY = "professional_yearly"
    ENTERPRISE_MONTHLY = "enterprise_monthly"
    ENTERPRISE_YEARLY = "enterprise_yearly"


PLAN_KEYS: frozenset[str] = frozenset(key.value for key in PlanKey)

PLAN_DISPLAY_NAMES: dict[PlanKey, str] = {
    PlanKey.FREE: "Free",
    PlanKey.PROFESSIONAL_MONTHLY: "Professional (Monthly)",
    PlanKey.PROFESSIONAL_YEARLY: "Professional (Yearly)",
    PlanKey.ENTERPRISE_MONTHLY: "Enterprise (Monthly)",
    PlanKey.ENTERPRISE_YEARLY: "Enterprise (Yearly)",
}


def is_plan_key(value: Any) -> bool:
    """Return True if value is one of the known plan key strings."""
    return isinstance(value, str) and value in PLAN_KEYS


@dataclass(frozen=True)
class PlanRegistry:
    """Plan key to Stripe price ID mapping (None for free or unconfigured)."""

    prices: dict[PlanKey, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: AppConfig) -> "PlanRegistry":
        """Resolve price IDs from configuration. Empty values become None."""
        env_prices = {
            PlanKey.PROFESSIONAL_MONTHLY: config.stripe_price_professional_monthly,
            PlanKey.PROFESSIONAL_YEARLY: config.stripe_price_professional_yearly,
            PlanKey.ENTERPRISE_MONTHLY: config.stripe_price_enterprise_monthly,
            PlanKey.ENTERPRISE_YEARLY: config.stripe_price_enterprise_yearly,
        }

        prices: dict[PlanKey, Optional[str]] = {PlanKey.FREE: None}
        for key, price_id in env_prices.items():
            prices[key] = price_id or None
            if not price_id:
                logger.warning(f"No Stripe price configured for plan {key.value}")

        return cls(prices=prices)

    def price_id(self, plan_key: PlanKey) -> Optional[str]:
        return self.prices.get(PlanKey(plan_key))

    def get_plan_key_from_price_id(self, price_id: str) -> Optional[PlanKey]:
        """Reverse lookup used when reading sessions back from Stripe."""
        if not price_id:
            return None
        for key, pid in self.prices.items():
            if pid == price_id:
                return key
        return None
