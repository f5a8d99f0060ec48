"""
Tests for the server-side session store and middleware.

The middleware is exercised on a tiny Starlette app so cookie behavior can
be checked without the rest of the API.
"""

from datetime import UTC, datetime, timedelta

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from library_api.config import Settings
from library_api.services.sessions import ServerSessionMiddleware, regenerate_session

COOKIE = "library_session"


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class TestDatabaseSessionStore:
    def test_save_and_load(self, session_store):
        session_store.save("abc", {"user": {"id": "1"}}, _now() + timedelta(minutes=5))

        stored = session_store.load("abc")

        assert stored.data == {"user": {"id": "1"}}

    def test_save_overwrites(self, session_store):
        expires = _now() + timedelta(minutes=5)
        session_store.save("abc", {"n": 1}, expires)
        session_store.save("abc", {"n": 2}, expires)

        assert session_store.load("abc").data == {"n": 2}

    def test_unknown_id(self, session_store):
        assert session_store.load("missing") is None

    def test_expired_session_is_gone(self, session_store):
        session_store.save("old", {"n": 1}, _now() - timedelta(seconds=1))

        assert session_store.load("old") is None
        assert session_store.purge_expired() == 0

    def test_destroy(self, session_store):
        session_store.save("abc", {"n": 1}, _now() + timedelta(minutes=5))

        session_store.destroy("abc")

        assert session_store.load("abc") is None

    def test_purge_expired(self, session_store):
        session_store.save("old-1", {}, _now() - timedelta(hours=1))
        session_store.save("old-2", {}, _now() - timedelta(hours=2))
        session_store.save("live", {"n": 1}, _now() + timedelta(hours=1))

        assert session_store.purge_expired() == 2
        assert session_store.load("live") is not None

    def test_new_ids_are_unique(self, session_store):
        assert len({session_store.new_id() for _ in range(50)}) == 50


# =============================================================================
# Middleware
# =============================================================================
async def show(request: Request) -> JSONResponse:
    return JSONResponse(dict(request.session))


async def login(request: Request) -> JSONResponse:
    request.session.clear()
    request.session["user"] = {"id": "42"}
    regenerate_session(request)
    return JSONResponse({"ok": True})


async def touch(request: Request) -> JSONResponse:
    request.session["visits"] = request.session.get("visits", 0) + 1
    return JSONResponse({"visits": request.session["visits"]})


async def logout(request: Request) -> JSONResponse:
    request.session.clear()
    return JSONResponse({"ok": True})


def make_client(store, **overrides) -> TestClient:
    settings = Settings(session_max_age=3600, **overrides)
    app = Starlette(routes=[
        Route("/show", show),
        Route("/login", login),
        Route("/touch", touch),
        Route("/logout", logout),
    ])
    app.add_middleware(ServerSessionMiddleware, settings=settings, store=store)
    return TestClient(app)


class TestServerSessionMiddleware:
    def test_anonymous_request_sets_no_cookie(self, session_store):
        client = make_client(session_store)

        response = client.get("/show")

        assert response.json() == {}
        assert "set-cookie" not in response.headers

    def test_session_round_trip(self, session_store):
        client = make_client(session_store)

        client.get("/login")
        response = client.get("/show")

        assert response.json() == {"user": {"id": "42"}}

    def test_cookie_flags(self, session_store):
        client = make_client(session_store, session_same_site="strict")

        cookie = client.get("/login").headers["set-cookie"].lower()

        assert "httponly" in cookie
        assert "samesite=strict" in cookie
        assert "max-age=3600" in cookie
        assert "secure" not in cookie

    def test_secure_flag_in_production(self, session_store):
        client = make_client(session_store, environment="production")

        cookie = client.get("/login").headers["set-cookie"].lower()

        assert "secure" in cookie

    def test_clearing_destroys_the_record(self, session_store):
        client = make_client(session_store)
        client.get("/login")
        session_id = client.cookies.get(COOKIE)

        response = client.get("/logout")

        assert session_store.load(session_id) is None
        assert "1970" in response.headers["set-cookie"]

    def test_rolling_session_extends_expiry(self, session_store):
        client = make_client(session_store)
        client.get("/login")
        session_id = client.cookies.get(COOKIE)
        first = session_store.load(session_id).expires_at

        response = client.get("/show")

        assert "set-cookie" in response.headers
        assert session_store.load(session_id).expires_at >= first

    def test_absolute_session_keeps_expiry(self, session_store):
        client = make_client(session_store, session_rolling=False)
        client.get("/touch")
        session_id = client.cookies.get(COOKIE)
        first = session_store.load(session_id).expires_at

        unchanged = client.get("/show")
        client.get("/touch")

        assert "set-cookie" not in unchanged.headers
        stored = session_store.load(session_id)
        assert stored.expires_at == first
        assert stored.data == {"visits": 2}

    def test_regenerate_issues_new_id(self, session_store):
        client = make_client(session_store)
        client.get("/touch")
        before = client.cookies.get(COOKIE)

        client.get("/login")
        after = client.cookies.get(COOKIE)

        assert after != before
        assert session_store.load(before) is None

    @pytest.mark.parametrize("cookie_value", ["bogus", ""])
    def test_unknown_cookie_starts_fresh(self, session_store, cookie_value):
        client = make_client(session_store)
        client.cookies.set(COOKIE, cookie_value)

        response = client.get("/show")

        assert response.json() == {}
