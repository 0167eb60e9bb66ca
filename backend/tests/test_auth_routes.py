"""Tests for signup, login, logout and the session gate."""

from datetime import datetime, timedelta, timezone

from conftest import signup_and_login
from learnpath.api.deps import decode_session_token
from learnpath.config import get_settings
from learnpath.db import containers

settings = get_settings()

SIGNUP = {"name": "Ada Lovelace", "username": "ada", "email": "ada@example.com", "password": "analytical-engine"}


async def test_signup_creates_account(client):
    res = await client.post("/api/signup", json=SIGNUP)

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["user"]["username"] == "ada"
    assert body["user"]["email"] == "ada@example.com"
    assert "passwordHash" not in body["user"]


async def test_signup_does_not_start_a_session(client):
    await client.post("/api/signup", json=SIGNUP)

    res = await client.get("/api/protected")

    assert res.status_code == 401


async def test_signup_duplicate_is_rejected(client):
    await client.post("/api/signup", json=SIGNUP)

    res = await client.post("/api/signup", json={**SIGNUP, "username": "ada2"})

    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Email or username already exists"}


async def test_signup_missing_field_is_400(client):
    res = await client.post("/api/signup", json={"name": "Ada", "email": "ada@example.com", "password": "x"})

    assert res.status_code == 400
    assert res.json()["success"] is False


async def test_login_sets_http_only_session_cookie(client):
    await client.post("/api/signup", json=SIGNUP)

    res = await client.post("/api/login", json={"email": "ada@example.com", "password": "analytical-engine"})

    assert res.status_code == 200
    assert res.json()["user"]["username"] == "ada"
    cookie_header = res.headers["set-cookie"]
    assert cookie_header.startswith(f"{settings.session_cookie_name}=")
    assert "HttpOnly" in cookie_header
    assert f"Max-Age={8 * 60 * 60}" in cookie_header


async def test_login_failures_are_indistinguishable(client):
    await client.post("/api/signup", json=SIGNUP)

    wrong_password = await client.post("/api/login", json={"email": "ada@example.com", "password": "nope"})
    unknown_email = await client.post("/api/login", json={"email": "bob@example.com", "password": "analytical-engine"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"success": False, "message": "Invalid credentials"}


async def test_login_missing_password_is_400(client):
    res = await client.post("/api/login", json={"email": "ada@example.com"})

    assert res.status_code == 400


async def test_protected_requires_session(client):
    res = await client.get("/api/protected")

    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Not authenticated"}


async def test_protected_returns_session_user(client):
    user = await signup_and_login(client)

    res = await client.get("/api/protected")

    assert res.status_code == 200
    assert res.json()["user"] == user


async def test_tampered_cookie_is_rejected(client):
    client.cookies.set(settings.session_cookie_name, "not-a-real-token")

    res = await client.get("/api/protected")

    assert res.status_code == 401


async def test_logout_destroys_server_side_session(client):
    await signup_and_login(client)
    stolen = client.cookies.get(settings.session_cookie_name)

    res = await client.post("/api/logout")
    assert res.status_code == 200
    assert res.json()["success"] is True

    # Replaying the old cookie no longer works
    client.cookies.set(settings.session_cookie_name, stolen)
    res = await client.get("/api/protected")
    assert res.status_code == 401


async def test_health_reports_session_state(client):
    res = await client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert res.json()["session"] is False

    await signup_and_login(client)
    res = await client.get("/api/health")
    assert res.json()["session"] is True


async def test_expired_session_is_rejected_and_removed(client, store):
    await signup_and_login(client)
    session_id = decode_session_token(client.cookies.get(settings.session_cookie_name))
    session = await store.read(containers.SESSIONS, session_id, partition_key=session_id)

    # The cookie itself is still valid; only the server-side record has lapsed
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    await store.replace(containers.SESSIONS, {**session, "expiresAt": past.isoformat()}, partition_key=session_id)

    res = await client.get("/api/protected")

    assert res.status_code == 401
    assert await store.read(containers.SESSIONS, session_id, partition_key=session_id) is None
