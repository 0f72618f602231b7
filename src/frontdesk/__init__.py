"""Billing and sign-in service for the frontdesk appointments dashboard."""

__version__ = "0.1.0"
