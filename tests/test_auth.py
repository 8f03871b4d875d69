"""Tests for sign-up, sign-in, federated sign-in and sessions."""

import time
from urllib.parse import parse_qs, urlparse

import pytest
from authlib.jose import JsonWebKey, jwt

from app.core.oauth import oauth
from app.services import identity
from conftest import (
    API,
    PASSWORD,
    federated_sign_in,
    google_userinfo,
    redirect_headers,
    redirect_session,
    signup,
)


class TestPasswordAuth:
    def test_signup_returns_session(self, client):
        resp = client.post(f"{API}/auth/signup", json={"email": "new@example.com", "password": PASSWORD})
        assert resp.status_code == 201
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["provider"] == "email"

    def test_duplicate_email_rejected(self, client):
        signup(client, "dup@example.com")
        resp = client.post(f"{API}/auth/signup", json={"email": "DUP@example.com", "password": PASSWORD})
        assert resp.status_code == 409

    def test_duplicate_email_racing_past_check_rejected(self, client, monkeypatch):
        signup(client, "race@example.com")

        async def no_existing_user(db, email):
            return None

        # A concurrent sign-up that passed the lookup before the first one committed
        monkeypatch.setattr(identity, "get_user_by_email", no_existing_user)
        resp = client.post(f"{API}/auth/signup", json={"email": "race@example.com", "password": PASSWORD})
        assert resp.status_code == 409

    def test_signup_validation(self, client):
        resp = client.post(f"{API}/auth/signup", json={"email": "not-an-email", "password": PASSWORD})
        assert resp.status_code == 422
        resp = client.post(f"{API}/auth/signup", json={"email": "short@example.com", "password": "123"})
        assert resp.status_code == 422

    def test_login_and_session(self, client):
        signup(client, "login@example.com")
        resp = client.post(f"{API}/auth/login", json={"email": "login@example.com", "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        resp = client.get(f"{API}/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == "login@example.com"

    def test_login_wrong_password(self, client):
        signup(client, "wrong@example.com")
        resp = client.post(f"{API}/auth/login", json={"email": "wrong@example.com", "password": "nope-nope"})
        assert resp.status_code == 401

    def test_login_unknown_email(self, client):
        resp = client.post(f"{API}/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_session_requires_valid_token(self, client):
        assert client.get(f"{API}/auth/session").status_code == 401
        resp = client.get(f"{API}/auth/session", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_logout(self, client, alice):
        headers, _ = alice
        assert client.post(f"{API}/auth/logout", headers=headers).status_code == 204
        assert client.post(f"{API}/auth/logout").status_code == 401


GOOGLE_METADATA = {
    "issuer": "https://accounts.google.com",
    "authorization_endpoint": "https://accounts.google.com/o/oauth2/v2/auth",
    "token_endpoint": "https://oauth2.googleapis.com/token",
    "jwks_uri": "https://www.googleapis.com/oauth2/v3/certs",
    "id_token_signing_alg_values_supported": ["RS256"],
}


def _use_metadata(monkeypatch, metadata):
    async def load_server_metadata():
        return metadata

    monkeypatch.setattr(oauth.google, "load_server_metadata", load_server_metadata)


def _start_login(client, **params):
    resp = client.get(f"{API}/auth/oauth/google", params=params, follow_redirects=False)
    assert resp.status_code == 302, resp.text
    return parse_qs(urlparse(resp.headers["location"]).query)


class TestFederatedAuth:
    def test_login_redirects_to_provider(self, client, monkeypatch):
        _use_metadata(monkeypatch, GOOGLE_METADATA)
        resp = client.get(f"{API}/auth/oauth/google", follow_redirects=False)
        assert resp.status_code == 302
        url = urlparse(resp.headers["location"])
        query = parse_qs(url.query)
        assert url.netloc == "accounts.google.com"
        assert query["client_id"] == ["test-client-id"]
        assert query["response_type"] == ["code"]
        assert query["redirect_uri"][0].endswith(f"{API}/auth/oauth/google/callback")
        assert set(query["scope"][0].split()) == {"openid", "email", "profile"}
        assert query["state"] and query["nonce"]

    def test_redirect_target_must_stay_on_app_origin(self, client, monkeypatch):
        _use_metadata(monkeypatch, GOOGLE_METADATA)
        resp = client.get(
            f"{API}/auth/oauth/google",
            params={"redirect_to": "https://evil.example.com/steal"},
            follow_redirects=False,
        )
        assert resp.status_code == 422

    def test_unknown_provider(self, client):
        assert client.get(f"{API}/auth/oauth/myspace", follow_redirects=False).status_code == 404
        resp = client.get(f"{API}/auth/oauth/myspace/callback", params={"code": "x", "state": "y"})
        assert resp.status_code == 404

    def test_callback_creates_user(self, client, monkeypatch):
        info = google_userinfo("fed@example.com", name="Fed Erated", picture="https://img/fed.png")
        resp = federated_sign_in(client, monkeypatch, info)
        assert resp.headers["location"].startswith("http://localhost:3000/dashboard#")
        assert redirect_session(resp)["token_type"] == "bearer"

        user = client.get(f"{API}/auth/session", headers=redirect_headers(resp)).json()
        assert user["email"] == "fed@example.com"
        assert user["provider"] == "google"
        assert user["user_metadata"]["name"] == "Fed Erated"

    def test_callback_returns_to_requested_page(self, client, monkeypatch):
        _use_metadata(monkeypatch, GOOGLE_METADATA)
        _start_login(client, redirect_to="http://localhost:3000/workouts")
        resp = federated_sign_in(client, monkeypatch, google_userinfo("back@example.com"))
        assert resp.headers["location"].startswith("http://localhost:3000/workouts#access_token=")

    def test_callback_with_unknown_state_rejected(self, client):
        resp = client.get(
            f"{API}/auth/oauth/google/callback",
            params={"code": "auth-code", "state": "never-issued"},
            follow_redirects=False,
        )
        assert resp.status_code == 401

    def test_unverified_email_rejected(self, client, monkeypatch):
        resp = federated_sign_in(
            client, monkeypatch, google_userinfo("unverified@example.com", email_verified=False)
        )
        assert resp.status_code == 401
        # No account was created for the address
        signup(client, "unverified@example.com")

    def test_password_account_is_not_linked(self, client, monkeypatch):
        _, user_id = signup(client, "victim@example.com", full_name="Victim")

        resp = federated_sign_in(
            client, monkeypatch, google_userinfo("victim@example.com", email_verified=False)
        )
        assert resp.status_code == 401
        resp = federated_sign_in(client, monkeypatch, google_userinfo("victim@example.com", name="Other"))
        assert resp.status_code == 409

        login = client.post(f"{API}/auth/login", json={"email": "victim@example.com", "password": PASSWORD})
        user = login.json()["user"]
        assert user["id"] == str(user_id)
        assert user["provider"] == "email"
        assert user["user_metadata"] == {"full_name": "Victim"}

    def test_federated_user_cannot_password_login(self, client, monkeypatch):
        federated_sign_in(client, monkeypatch, google_userinfo("nopass@example.com", name="No Pass"))
        resp = client.post(f"{API}/auth/login", json={"email": "nopass@example.com", "password": PASSWORD})
        assert resp.status_code == 401


class TestIdTokenVerification:
    """The callback runs authlib's real ID token checks against a local key set."""

    @pytest.fixture
    def signing_key(self, client, monkeypatch):
        key = JsonWebKey.generate_key("RSA", 2048, is_private=True)
        public = key.as_dict(is_private=False)
        _use_metadata(monkeypatch, {**GOOGLE_METADATA, "jwks": {"keys": [public]}})
        return key, public["kid"]

    def _callback_with_id_token(self, client, monkeypatch, key, kid, **overrides):
        query = _start_login(client)
        now = int(time.time())
        claims = {
            "iss": "https://accounts.google.com",
            "aud": "test-client-id",
            "sub": "google-1234",
            "iat": now,
            "exp": now + 600,
            "nonce": query["nonce"][0],
            "email": "rsa@example.com",
            "email_verified": True,
            "name": "Rsa Signed",
            **overrides,
        }
        id_token = jwt.encode({"alg": "RS256", "kid": kid}, claims, key).decode()

        async def fetch_access_token(**kwargs):
            return {"access_token": "provider-token", "token_type": "Bearer", "id_token": id_token}

        monkeypatch.setattr(oauth.google, "fetch_access_token", fetch_access_token)
        return client.get(
            f"{API}/auth/oauth/google/callback",
            params={"code": "auth-code", "state": query["state"][0]},
            follow_redirects=False,
        )

    def test_rs256_token_signs_in(self, client, monkeypatch, signing_key):
        key, kid = signing_key
        resp = self._callback_with_id_token(client, monkeypatch, key, kid)
        user = client.get(f"{API}/auth/session", headers=redirect_headers(resp)).json()
        assert user["email"] == "rsa@example.com"
        assert user["user_metadata"]["name"] == "Rsa Signed"

    def test_token_from_other_key_rejected(self, client, monkeypatch, signing_key):
        _, kid = signing_key
        forged = JsonWebKey.generate_key("RSA", 2048, is_private=True)
        resp = self._callback_with_id_token(client, monkeypatch, forged, kid)
        assert resp.status_code == 401

    def test_token_for_other_client_rejected(self, client, monkeypatch, signing_key):
        key, kid = signing_key
        resp = self._callback_with_id_token(client, monkeypatch, key, kid, aud="someone-else")
        assert resp.status_code == 401

    def test_token_with_wrong_nonce_rejected(self, client, monkeypatch, signing_key):
        key, kid = signing_key
        resp = self._callback_with_id_token(client, monkeypatch, key, kid, nonce="replayed")
        assert resp.status_code == 401
