"""Lightweight table-name constants and column-name enums."""

from enum import Enum


# Table name constants
class Table:
    """Database table names."""

    SUBSCRIPTIONS = "subscriptions"
    BUSINESSES = "businesses"
    BUSINESS_OWNERS = "business_owners"
    SCHEMA_MIGRATIONS = "schema_migrations"


# Column name enums
class SubscriptionStatus(str, Enum):
    """Subscription status as written by the webhook handler."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
