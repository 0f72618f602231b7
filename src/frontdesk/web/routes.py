"""HTTP handlers for checkout, billing pages, and sign-in."""

import logging
from typing import Optional
from urllib.parse import quote

from aiohttp import web

from frontdesk.auth.session import (
    clear_authenticated_user,
    clear_code_verifier,
    clear_selected_plan,
    code_challenge_for,
    generate_code_verifier,
    get_authenticated_user_id,
    get_code_verifier,
    get_selected_plan,
    set_authenticated_user_id,
    set_code_verifier,
)
from frontdesk.billing.checkout import create_session_for_user
from frontdesk.errors import BillingError, NotAuthenticated, RemoteServiceError
from frontdesk.billing.invoices import get_invoices_for_customer
from frontdesk.billing.plans import is_plan_key
from frontdesk.billing.reconcile import check_webhook_connection
from frontdesk.billing.success import get_session_plan
from frontdesk.web.pages import (
    render_cancel_page,
    render_signin_page,
    render_success_page,
    signin_error_message,
)
from frontdesk.web.services import SERVICES, Services

logger = logging.getLogger(__name__)

routes = web.RouteTableDef()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


def _redirect(location: str) -> web.Response:
    return web.Response(status=302, headers={"Location": location})


def _html(text: str, status: int = 200) -> web.Response:
    return web.Response(text=text, status=status, content_type="text/html")


async def _start_checkout(services: Services, user_id: Optional[str], plan_key: str) -> Optional[str]:
    return await create_session_for_user(
        user_id,
        plan_key,
        registry=services.registry,
        gateway=services.gateway,
        store=services.store,
        auth=services.auth,
        app_url=services.config.app_url,
    )


@routes.post("/api/stripe/create-session")
async def create_session_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/stripe/create-session.

    Body: {"planKey": "<plan key>"}. The email used for checkout comes from
    the auth backend, never from the request.

    Returns:
        200 {"url": str | null}, 400/401 {"error": str}, or 500 on failure
    """
    services = request.app[SERVICES]

    try:
        try:
            body = await request.json()
        except ValueError:
            body = None

        plan_key = body.get("planKey") if isinstance(body, dict) else None
        if not plan_key or not isinstance(plan_key, str):
            return web.json_response({"error": "Missing or invalid planKey"}, status=400)

        if not is_plan_key(plan_key):
            return web.json_response({"error": "Invalid plan"}, status=400)

        user_id = get_authenticated_user_id(request)
        url = await _start_checkout(services, user_id, plan_key)

    except NotAuthenticated as e:
        return web.json_response({"error": e.message}, status=401)
    except RemoteServiceError as e:
        logger.error(f"create-session remote failure: {e}")
        return web.json_response({"error": "Internal server error"}, status=500)
    except BillingError as e:
        return web.json_response({"error": e.message}, status=400)
    except Exception as e:
        logger.exception(f"create-session error: {e}")
        return web.json_response({"error": "Internal server error"}, status=500)

    return web.json_response({"url": url})


@routes.get("/api/stripe/invoices")
async def invoices_endpoint(request: web.Request) -> web.Response:
    """Handle GET /api/stripe/invoices for the signed-in user."""
    services = request.app[SERVICES]

    user_id = get_authenticated_user_id(request)
    if not user_id:
        return web.json_response({"error": "Not authenticated"}, status=401)

    if services.store is None:
        return web.json_response({"invoices": []})

    try:
        customer_id = await services.store.get_customer_id(user_id)
    except RemoteServiceError as e:
        logger.error(f"Invoice customer lookup failed for user {user_id}: {e}")
        return web.json_response({"invoices": [], "error": "Failed to fetch invoices"})

    # Free-tier users have no Stripe customer
    if not customer_id:
        return web.json_response({"invoices": []})

    result = get_invoices_for_customer(customer_id, gateway=services.gateway)
    payload: dict = {"invoices": [invoice.to_dict() for invoice in result.invoices]}
    if result.error:
        payload["error"] = result.error
    return web.json_response(payload)


@routes.get("/stripe/success")
async def success_page(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    session_id = request.query.get("session_id")

    plan = None
    webhook_status = None
    if session_id:
        plan = get_session_plan(session_id, gateway=services.gateway, registry=services.registry)
        webhook_status = await check_webhook_connection(
            session_id, gateway=services.gateway, store=services.store
        )

    return _html(render_success_page(plan, webhook_status))


@routes.get("/stripe/cancel")
async def cancel_page(request: web.Request) -> web.Response:
    plan_param = request.query.get("plan")
    plan_key = plan_param if is_plan_key(plan_param) else None
    return _html(render_cancel_page(plan_key))


@routes.post("/stripe/retry")
async def retry_payment(request: web.Request) -> web.Response:
    """Re-run checkout for the plan the user just cancelled.

    Redirects to Stripe on success, to sign-in (keeping the plan) when the
    user is signed out, and back to pricing otherwise.
    """
    services = request.app[SERVICES]
    form = await request.post()
    plan_key = form.get("planKey")

    if not is_plan_key(plan_key):
        return _redirect("/")

    try:
        url = await _start_checkout(services, get_authenticated_user_id(request), plan_key)
    except NotAuthenticated:
        return _redirect(f"/signin?plan={quote(plan_key)}")
    except BillingError as e:
        logger.warning(f"Retry checkout failed for plan {plan_key}: {e}")
        return _redirect("/")

    return _redirect(url or "/")


@routes.get("/signin")
async def signin_page(request: web.Request) -> web.Response:
    return _html(render_signin_page(error=signin_error_message(request.query.get("error"))))


@routes.post("/signin")
async def signin(request: web.Request) -> web.Response:
    """Verify credentials, set the identity cookie, and resume checkout.

    Only the user ID is stored, in an HTTP-only cookie. If a plan was
    remembered on the way in, its checkout starts immediately.
    """
    services = request.app[SERVICES]
    form = await request.post()
    email = form.get("email")
    password = form.get("password")

    if not isinstance(email, str) or not isinstance(password, str):
        return _html(render_signin_page("Invalid form submission."), status=400)
    if not email or not password:
        return _html(render_signin_page("Please enter your email and password.", email), status=400)

    if services.auth is None:
        return _html(render_signin_page("Sign-in is not available right now.", email), status=503)

    try:
        user_id = await services.auth.sign_in_with_password(email, password)
    except RemoteServiceError as e:
        logger.error(f"Sign-in failed: {e}")
        return _html(render_signin_page("Sign-in is not available right now.", email), status=503)

    if not user_id:
        return _html(render_signin_page(INVALID_CREDENTIALS_MESSAGE, email), status=401)

    return await _signed_in_response(request, services, user_id)


async def _signed_in_response(
    request: web.Request, services: Services, user_id: str
) -> web.Response:
    """Redirect after a successful sign-in, carrying the identity cookie."""
    plan_key = get_selected_plan(request)
    location = await _post_signin_location(services, user_id, plan_key)

    response = _redirect(location)
    set_authenticated_user_id(response, user_id, secure=services.config.secure_cookies)
    if plan_key is not None:
        clear_selected_plan(response)
    return response


async def _post_signin_location(services: Services, user_id: str, plan_key) -> str:
    if plan_key is not None:
        try:
            url = await _start_checkout(services, user_id, plan_key.value)
        except BillingError as e:
            logger.warning(f"Post sign-in checkout failed for user {user_id}: {e}")
            url = None
        if url:
            return url

    if services.store is not None and await services.store.get_business_id_for_user(user_id):
        return "/dashboard"
    return "/onboarding"


@routes.post("/signout")
async def signout(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    response = _redirect("/signin")
    clear_authenticated_user(response, secure=services.config.secure_cookies)
    return response


def _signin_error(code: str) -> web.Response:
    return _redirect(f"/signin?error={quote(code)}")


@routes.get("/auth/google")
async def google_signin(request: web.Request) -> web.Response:
    """Start Google OAuth through Supabase with a PKCE verifier cookie."""
    services = request.app[SERVICES]
    if services.auth is None:
        logger.error("Google sign-in requested but Supabase is not configured")
        return _signin_error("oauth_unavailable")

    verifier = generate_code_verifier()
    url = services.auth.google_authorize_url(
        redirect_to=f"{services.config.app_url}/auth/callback",
        code_challenge=code_challenge_for(verifier),
    )

    response = _redirect(url)
    set_code_verifier(response, verifier, secure=services.config.secure_cookies)
    return response


@routes.get("/auth/callback")
async def oauth_callback(request: web.Request) -> web.Response:
    """
    Finish Google OAuth.

    Exchanges the code for a session, sets the identity cookie, and resumes
    checkout for a remembered plan. Every failure lands back on /signin with
    an error code.
    """
    services = request.app[SERVICES]

    provider_error = request.query.get("error")
    if provider_error:
        logger.error(
            f"OAuth provider error: {provider_error} {request.query.get('error_description', '')}"
        )
        return _signin_error(provider_error)

    code = request.query.get("code")
    if not code:
        logger.error("OAuth callback without code")
        return _signin_error("no_code")

    verifier = get_code_verifier(request)
    if services.auth is None or not verifier:
        logger.error("OAuth callback without auth backend or code verifier")
        return _signin_error("exchange_failed")

    try:
        session = await services.auth.exchange_code_for_session(code, verifier)
        if session is None:
            return _signin_error("exchange_failed")

        user_id = (session.get("user") or {}).get("id")
        if not user_id:
            logger.error("OAuth code exchange returned no user")
            return _signin_error("no_user")

        response = await _signed_in_response(request, services, user_id)
    except Exception as e:
        logger.exception(f"OAuth callback failed: {e}")
        return _signin_error("callback_failed")

    clear_code_verifier(response)
    return response
