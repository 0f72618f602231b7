"""Request middleware."""

import logging

from aiohttp import web

from frontdesk.auth.session import set_selected_plan
from frontdesk.billing.plans import PlanKey, is_plan_key
from frontdesk.web.services import SERVICES

logger = logging.getLogger(__name__)


@web.middleware
async def plan_cookie_middleware(request: web.Request, handler) -> web.StreamResponse:
    """
    Remember a plan chosen on the pricing page across sign-in.

    GET /signin?plan=<key> stores the key in a short-lived cookie so checkout
    can resume once the user is authenticated. Unknown plan values are
    dropped silently.
    """
    response = await handler(request)

    if request.method != "GET" or request.path != "/signin":
        return response

    plan_param = request.query.get("plan")
    if not is_plan_key(plan_param):
        return response

    secure = request.app[SERVICES].config.secure_cookies
    set_selected_plan(response, PlanKey(plan_param), secure=secure)
    logger.debug(f"Remembered plan selection {plan_param}")
    return response
