"""Postgres access for the data backend."""

from frontdesk.db.pool import close_pool, create_pool

__all__ = ["close_pool", "create_pool"]
