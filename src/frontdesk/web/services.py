"""Collaborators shared by request handlers, built once per application."""

from dataclasses import dataclass
from typing import Optional

import asyncpg
from aiohttp import web

from frontdesk.auth.supabase import SupabaseAuth
from frontdesk.billing.gateway import StripeGateway
from frontdesk.billing.plans import PlanRegistry
from frontdesk.billing.store import SubscriptionStore
from frontdesk.config.settings import AppConfig


@dataclass
class Services:
    """
    Everything a billing handler needs.

    Optional members are None when the matching credentials are missing;
    handlers treat that as "not configured" rather than failing.
    """

    config: AppConfig
    registry: PlanRegistry
    gateway: Optional[StripeGateway] = None
    store: Optional[SubscriptionStore] = None
    auth: Optional[SupabaseAuth] = None

    @classmethod
    def from_config(
        cls, config: AppConfig, pool: Optional[asyncpg.Pool] = None
    ) -> "Services":
        return cls(
            config=config,
            registry=PlanRegistry.from_config(config),
            gateway=StripeGateway.from_config(config),
            store=SubscriptionStore(pool, config.business_id) if pool is not None else None,
            auth=SupabaseAuth.from_config(config),
        )


SERVICES = web.AppKey("services", Services)
