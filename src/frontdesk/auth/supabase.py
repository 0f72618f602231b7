"""Supabase Auth (GoTrue) client for sign-in and user lookups."""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp

from frontdesk.errors import RemoteServiceError
from frontdesk.config.settings import AppConfig

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10

# GoTrue answers rejected credentials and bad or expired auth codes with these
_TOKEN_REJECTED_STATUSES = (400, 401, 403, 404, 422)


class SupabaseAuth:
    """
    Minimal GoTrue REST client.

    Password sign-in and the OAuth code exchange use the anon key. Admin user
    lookups use the service-role key and must only run server-side.
    """

    def __init__(self, base_url: str, anon_key: str, service_role_key: str):
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._service_role_key = service_role_key

    @classmethod
    def from_config(cls, config: AppConfig) -> Optional["SupabaseAuth"]:
        """Build a client, or return None when Supabase is not configured."""
        if not config.supabase_configured:
            logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set - auth disabled")
            return None
        return cls(
            base_url=config.supabase_url,
            anon_key=config.supabase_anon_key.get_secret_value(),
            service_role_key=config.supabase_service_role_key.get_secret_value(),
        )

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        action: str,
        rejected: tuple[int, ...] = _TOKEN_REJECTED_STATUSES,
        **kwargs: Any,
    ) -> Optional[dict]:
        """
        Send one GoTrue request.

        Returns:
            Decoded JSON body, or None when GoTrue rejected the request

        Raises:
            RemoteServiceError: On network errors, timeouts, or unexpected responses
        """
        url = f"{self._base_url}{path}"
        try:
            timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, **kwargs) as response:
                    if response.status in rejected:
                        logger.info(f"Supabase {action} rejected with status {response.status}")
                        return None
                    response.raise_for_status()
                    return await response.json()
        except asyncio.TimeoutError as e:
            raise RemoteServiceError(
                f"Supabase {action} timed out after {REQUEST_TIMEOUT_SECONDS}s", service="supabase"
            ) from e
        except aiohttp.ClientError as e:
            raise RemoteServiceError(f"Supabase {action} failed: {e}", service="supabase") from e

    async def sign_in_with_password(self, email: str, password: str) -> Optional[str]:
        """
        Verify credentials and return the user ID.

        Returns:
            User ID, or None if the credentials were rejected

        Raises:
            RemoteServiceError: On network errors, timeouts, or unexpected responses
        """
        data = await self._request_json(
            "POST",
            "/auth/v1/token",
            action="sign-in",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers={"apikey": self._anon_key or self._service_role_key},
        )
        if data is None:
            return None

        user = data.get("user") or {}
        return user.get("id")

    def google_authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        """
        URL of GoTrue's Google OAuth entry point for the PKCE flow.

        Google is asked for offline access with an explicit consent prompt.
        The authorization code comes back to redirect_to as ?code=.
        """
        query = urlencode(
            {
                "provider": "google",
                "redirect_to": redirect_to,
                "code_challenge": code_challenge,
                "code_challenge_method": "s256",
                "access_type": "offline",
                "prompt": "consent",
            }
        )
        return f"{self._base_url}/auth/v1/authorize?{query}"

    async def exchange_code_for_session(
        self, auth_code: str, code_verifier: str
    ) -> Optional[dict]:
        """
        Exchange an OAuth authorization code for a session.

        Returns:
            GoTrue session payload (with a "user" object), or None if the
            code or verifier was rejected

        Raises:
            RemoteServiceError: On network errors, timeouts, or unexpected responses
        """
        return await self._request_json(
            "POST",
            "/auth/v1/token",
            action="code exchange",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
            headers={"apikey": self._anon_key or self._service_role_key},
        )

    async def get_user_email(self, user_id: str) -> Optional[str]:
        """
        Look up a user's email via the admin API.

        Returns:
            Email address, or None if the user does not exist or has none

        Raises:
            RemoteServiceError: On network errors, timeouts, or unexpected responses
        """
        data = await self._request_json(
            "GET",
            f"/auth/v1/admin/users/{user_id}",
            action="user lookup",
            rejected=(404,),
            headers={
                "apikey": self._service_role_key,
                "Authorization": f"Bearer {self._service_role_key}",
            },
        )
        if data is None:
            return None

        return data.get("email") or None
