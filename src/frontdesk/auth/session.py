"""Identity, plan-selection, and OAuth verifier cookies."""

import base64
import hashlib
import secrets
from typing import Optional

from aiohttp import web

from frontdesk.billing.plans import PlanKey, is_plan_key

USER_ID_COOKIE_NAME = "dashboard_user_id"
PLAN_COOKIE_NAME = "stripe_plan"
PLAN_COOKIE_MAX_AGE = 600  # 10 minutes
CODE_VERIFIER_COOKIE_NAME = "auth_code_verifier"
CODE_VERIFIER_MAX_AGE = 600


def get_authenticated_user_id(request: web.Request) -> Optional[str]:
    """User ID from the HTTP-only identity cookie, or None if signed out."""
    return request.cookies.get(USER_ID_COOKIE_NAME) or None


def set_authenticated_user_id(
    response: web.StreamResponse, user_id: str, *, secure: bool
) -> None:
    response.set_cookie(
        USER_ID_COOKIE_NAME,
        user_id,
        httponly=True,
        samesite="Lax",
        secure=secure,
        path="/",
    )


def clear_authenticated_user(response: web.StreamResponse, *, secure: bool) -> None:
    response.set_cookie(
        USER_ID_COOKIE_NAME,
        "",
        httponly=True,
        samesite="Lax",
        secure=secure,
        path="/",
        max_age=0,
    )


def get_selected_plan(request: web.Request) -> Optional[PlanKey]:
    """Plan key remembered across sign-in, ignoring forged values."""
    value = request.cookies.get(PLAN_COOKIE_NAME)
    return PlanKey(value) if is_plan_key(value) else None


def set_selected_plan(
    response: web.StreamResponse, plan_key: PlanKey, *, secure: bool
) -> None:
    response.set_cookie(
        PLAN_COOKIE_NAME,
        PlanKey(plan_key).value,
        httponly=True,
        samesite="Lax",
        secure=secure,
        path="/",
        max_age=PLAN_COOKIE_MAX_AGE,
    )


def clear_selected_plan(response: web.StreamResponse) -> None:
    response.set_cookie(PLAN_COOKIE_NAME, "", path="/", max_age=0)


def generate_code_verifier() -> str:
    """Random PKCE verifier (64 URL-safe characters)."""
    return secrets.token_urlsafe(48)


def code_challenge_for(verifier: str) -> str:
    """S256 PKCE challenge: unpadded base64url of the verifier's SHA-256."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def get_code_verifier(request: web.Request) -> Optional[str]:
    return request.cookies.get(CODE_VERIFIER_COOKIE_NAME) or None


def set_code_verifier(response: web.StreamResponse, verifier: str, *, secure: bool) -> None:
    # Lax so the cookie survives the top-level redirect back from Google
    response.set_cookie(
        CODE_VERIFIER_COOKIE_NAME,
        verifier,
        httponly=True,
        samesite="Lax",
        secure=secure,
        path="/auth",
        max_age=CODE_VERIFIER_MAX_AGE,
    )


def clear_code_verifier(response: web.StreamResponse) -> None:
    response.set_cookie(CODE_VERIFIER_COOKIE_NAME, "", path="/auth", max_age=0)
