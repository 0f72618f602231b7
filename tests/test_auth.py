"""Tests for identity cookies and the Supabase auth client."""

import asyncio
import string
from unittest.mock import AsyncMock, Mock
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils
from aiohttp.test_utils import make_mocked_request

from frontdesk.auth.session import (
    PLAN_COOKIE_NAME,
    USER_ID_COOKIE_NAME,
    clear_authenticated_user,
    clear_selected_plan,
    code_challenge_for,
    generate_code_verifier,
    get_authenticated_user_id,
    get_selected_plan,
    set_authenticated_user_id,
    set_selected_plan,
)
from frontdesk.auth.supabase import SupabaseAuth
from frontdesk.errors import RemoteServiceError
from frontdesk.billing.plans import PlanKey
from frontdesk.config.settings import AppConfig
from frontdesk.web.server import create_app
from frontdesk.web.services import Services


class TestIdentityCookie:
    def test_reads_user_id(self):
        request = make_mocked_request("GET", "/", headers={"Cookie": f"{USER_ID_COOKIE_NAME}=u1"})

        assert get_authenticated_user_id(request) == "u1"

    def test_missing_cookie(self):
        assert get_authenticated_user_id(make_mocked_request("GET", "/")) is None

    def test_empty_cookie_is_signed_out(self):
        request = make_mocked_request("GET", "/", headers={"Cookie": f"{USER_ID_COOKIE_NAME}="})

        assert get_authenticated_user_id(request) is None

    def test_set_is_http_only(self):
        response = web.Response()

        set_authenticated_user_id(response, "u1", secure=True)

        cookie = response.cookies[USER_ID_COOKIE_NAME]
        assert cookie.value == "u1"
        assert cookie["httponly"] is True
        assert cookie["secure"] is True
        assert cookie["samesite"] == "Lax"
        assert cookie["path"] == "/"

    def test_clear_expires_cookie(self):
        response = web.Response()

        clear_authenticated_user(response, secure=False)

        cookie = response.cookies[USER_ID_COOKIE_NAME]
        assert cookie.value == ""
        assert cookie["max-age"] == "0"


class TestPlanCookie:
    def test_valid_plan_read(self):
        request = make_mocked_request(
            "GET", "/", headers={"Cookie": f"{PLAN_COOKIE_NAME}=enterprise_yearly"}
        )

        assert get_selected_plan(request) is PlanKey.ENTERPRISE_YEARLY

    def test_forged_plan_ignored(self):
        request = make_mocked_request("GET", "/", headers={"Cookie": f"{PLAN_COOKIE_NAME}=bogus"})

        assert get_selected_plan(request) is None

    def test_set_expires_in_ten_minutes(self):
        response = web.Response()

        set_selected_plan(response, PlanKey.PROFESSIONAL_MONTHLY, secure=False)

        cookie = response.cookies[PLAN_COOKIE_NAME]
        assert cookie.value == "professional_monthly"
        assert cookie["max-age"] == "600"
        assert cookie["httponly"] is True

    def test_clear(self):
        response = web.Response()

        clear_selected_plan(response)

        assert response.cookies[PLAN_COOKIE_NAME]["max-age"] == "0"


@pytest_asyncio.fixture
async def gotrue():
    """Fake Supabase Auth server."""

    async def token(request: web.Request) -> web.Response:
        if request.headers.get("apikey") != "anon":
            return web.json_response({"error": "bad request"}, status=500)
        grant_type = request.query.get("grant_type")
        body = await request.json()
        if grant_type == "password" and body == {"email": "owner@example.com", "password": "correct"}:
            return web.json_response({"access_token": "jwt", "user": {"id": "u1"}})
        if grant_type == "pkce" and body == {"auth_code": "good-code", "code_verifier": "verifier"}:
            return web.json_response({"access_token": "jwt", "user": {"id": "u2"}})
        if grant_type not in ("password", "pkce"):
            return web.json_response({"error": "unsupported_grant_type"}, status=500)
        return web.json_response({"error": "invalid_grant"}, status=400)

    async def admin_user(request: web.Request) -> web.Response:
        if request.headers.get("Authorization") != "Bearer service":
            return web.json_response({"msg": "forbidden"}, status=403)
        user_id = request.match_info["user_id"]
        if user_id == "u1":
            return web.json_response({"id": "u1", "email": "owner@example.com"})
        if user_id == "no-email":
            return web.json_response({"id": "no-email", "email": ""})
        if user_id == "broken":
            return web.json_response({"msg": "internal"}, status=500)
        return web.json_response({"msg": "User not found"}, status=404)

    app = web.Application()
    app.router.add_post("/auth/v1/token", token)
    app.router.add_get("/auth/v1/admin/users/{user_id}", admin_user)

    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def auth_client(gotrue) -> SupabaseAuth:
    return SupabaseAuth(str(gotrue.make_url("/")), anon_key="anon", service_role_key="service")


class TestSupabaseAuth:
    def test_from_config_requires_credentials(self, config):
        assert isinstance(SupabaseAuth.from_config(config), SupabaseAuth)
        assert SupabaseAuth.from_config(AppConfig(_env_file=None, supabase_url="")) is None

    @pytest.mark.asyncio
    async def test_sign_in_success(self, auth_client):
        assert await auth_client.sign_in_with_password("owner@example.com", "correct") == "u1"

    @pytest.mark.asyncio
    async def test_sign_in_bad_password(self, auth_client):
        assert await auth_client.sign_in_with_password("owner@example.com", "wrong") is None

    @pytest.mark.asyncio
    async def test_get_user_email(self, auth_client):
        assert await auth_client.get_user_email("u1") == "owner@example.com"

    @pytest.mark.asyncio
    async def test_unknown_user(self, auth_client):
        assert await auth_client.get_user_email("nobody") is None

    @pytest.mark.asyncio
    async def test_user_without_email(self, auth_client):
        assert await auth_client.get_user_email("no-email") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self, auth_client):
        with pytest.raises(RemoteServiceError) as exc_info:
            await auth_client.get_user_email("broken")

        assert exc_info.value.service == "supabase"

    @pytest.mark.asyncio
    async def test_exchange_code(self, auth_client):
        session = await auth_client.exchange_code_for_session("good-code", "verifier")

        assert session["user"]["id"] == "u2"

    @pytest.mark.asyncio
    async def test_exchange_rejected_code(self, auth_client):
        assert await auth_client.exchange_code_for_session("stale-code", "verifier") is None

    def test_google_authorize_url(self, auth_client):
        url = urlparse(
            auth_client.google_authorize_url("https://app.example.com/auth/callback", "challenge123")
        )
        query = parse_qs(url.query)

        assert url.path == "/auth/v1/authorize"
        assert query["provider"] == ["google"]
        assert query["redirect_to"] == ["https://app.example.com/auth/callback"]
        assert query["code_challenge"] == ["challenge123"]
        assert query["code_challenge_method"] == ["s256"]
        assert query["prompt"] == ["consent"]


class TestCodeVerifier:
    def test_verifier_is_url_safe(self):
        verifier = generate_code_verifier()

        assert 43 <= len(verifier) <= 128
        assert set(verifier) <= set(string.ascii_letters + string.digits + "-_")
        assert generate_code_verifier() != verifier

    def test_challenge_is_unpadded_sha256(self):
        challenge = code_challenge_for("verifier")

        assert len(challenge) == 43
        assert "=" not in challenge
        assert challenge == code_challenge_for("verifier")
        assert challenge != code_challenge_for("other-verifier")


@pytest_asyncio.fixture
async def slow_gotrue(monkeypatch):
    """Fake Supabase Auth server that answers after the client timeout."""
    monkeypatch.setattr("frontdesk.auth.supabase.REQUEST_TIMEOUT_SECONDS", 0.1)

    async def stall(request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({})

    app = web.Application()
    app.router.add_post("/auth/v1/token", stall)
    app.router.add_get("/auth/v1/admin/users/{user_id}", stall)

    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


class TestSupabaseTimeouts:
    """A stalled auth backend surfaces as RemoteServiceError, never a raw timeout."""

    @pytest.fixture
    def slow_client(self, slow_gotrue) -> SupabaseAuth:
        return SupabaseAuth(str(slow_gotrue.make_url("/")), anon_key="anon", service_role_key="service")

    @pytest.mark.asyncio
    async def test_sign_in_timeout(self, slow_client):
        with pytest.raises(RemoteServiceError) as exc_info:
            await slow_client.sign_in_with_password("owner@example.com", "correct")

        assert exc_info.value.service == "supabase"

    @pytest.mark.asyncio
    async def test_user_lookup_timeout(self, slow_client):
        with pytest.raises(RemoteServiceError) as exc_info:
            await slow_client.get_user_email("u1")

        assert exc_info.value.service == "supabase"

    @pytest.mark.asyncio
    async def test_code_exchange_timeout(self, slow_client):
        with pytest.raises(RemoteServiceError):
            await slow_client.exchange_code_for_session("good-code", "verifier")

    @pytest.mark.asyncio
    async def test_signin_page_reports_unavailable(self, slow_client, config, registry):
        services = Services(config=config, registry=registry, auth=slow_client)
        app = create_app(config, services=services)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/signin", data={"email": "owner@example.com", "password": "correct"}
            )

            assert resp.status == 503
            assert "Sign-in is not available right now." in await resp.text()

    @pytest.mark.asyncio
    async def test_retry_goes_back_to_pricing(self, slow_client, config, registry):
        store = Mock()
        store.get_business_id_for_user = AsyncMock(return_value="biz_1")
        services = Services(
            config=config, registry=registry, gateway=Mock(), store=store, auth=slow_client
        )
        app = create_app(config, services=services)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/stripe/retry",
                data={"planKey": "professional_monthly"},
                headers={"Cookie": f"{USER_ID_COOKIE_NAME}=u1"},
                allow_redirects=False,
            )

            assert resp.status == 302
            assert resp.headers["Location"] == "/"
            services.gateway.create_checkout_session.assert_not_called()
