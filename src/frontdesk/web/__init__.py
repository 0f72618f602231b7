"""HTTP surface: checkout API, billing pages, sign-in."""

from frontdesk.web.server import create_app, run_server

__all__ = ["create_app", "run_server"]
