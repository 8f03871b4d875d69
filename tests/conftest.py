"""Pytest configuration and fixtures.

The app reads its settings and builds its engine at import time, so the test
environment (temporary SQLite database, secrets, OAuth client) is set before
anything from ``app`` is imported.
"""

import asyncio
import os
import tempfile
import uuid
from urllib.parse import parse_qs, urlparse

_TMP_DIR = tempfile.mkdtemp(prefix="fit-together-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["OAUTH_GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["OAUTH_GOOGLE_CLIENT_SECRET"] = "test-client-secret-with-enough-length"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.oauth import oauth  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import engine  # noqa: E402
from app.main import app  # noqa: E402

API = "/api/v1"
PASSWORD = "secret123"


async def _drop_all():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def client():
    """TestClient with a fresh schema; tables are dropped after each test."""
    with TestClient(app) as c:
        yield c
    asyncio.run(_drop_all())


def signup(client, email, full_name=None, password=PASSWORD):
    """Sign up a user. Returns (auth headers, user id)."""
    payload = {"email": email, "password": password}
    if full_name is not None:
        payload["full_name"] = full_name
    resp = client.post(f"{API}/auth/signup", json=payload)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, uuid.UUID(body["user"]["id"])


def create_workout(client, headers, **fields):
    payload = {"title": "Leg Day", **fields}
    resp = client.post(f"{API}/workouts", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def google_userinfo(email, **claims):
    """Verified-email user info, as authlib hands it over after checking the ID token."""
    return {
        "iss": "https://accounts.google.com",
        "aud": os.environ["OAUTH_GOOGLE_CLIENT_ID"],
        "sub": f"google-{email}",
        "email": email,
        "email_verified": True,
        **claims,
    }


def federated_sign_in(client, monkeypatch, userinfo):
    """Hit the Google callback with the code exchange stubbed to return userinfo."""

    async def authorize_access_token(request, **kwargs):
        return {"access_token": "provider-token", "token_type": "Bearer", "userinfo": userinfo}

    monkeypatch.setattr(oauth.google, "authorize_access_token", authorize_access_token)
    return client.get(
        f"{API}/auth/oauth/google/callback",
        params={"code": "auth-code", "state": "state"},
        follow_redirects=False,
    )


def redirect_session(resp):
    """Session fields carried in the callback redirect's URL fragment."""
    assert resp.status_code == 302, resp.text
    fragment = parse_qs(urlparse(resp.headers["location"]).fragment)
    return {key: values[0] for key, values in fragment.items()}


def redirect_headers(resp):
    return {"Authorization": f"Bearer {redirect_session(resp)['access_token']}"}


@pytest.fixture
def alice(client):
    return signup(client, "alice@example.com", full_name="Alice Lifter")


@pytest.fixture
def bob(client):
    return signup(client, "bob@example.com")
