"""Identity provider: password and federated sign-in, sessions, sign-out.

Sessions are stateless bearer JWTs. Every successful sign-in (including the
implicit one after sign-up) commits the user row and then emits SIGNED_IN on
the auth notifier; sign-out emits SIGNED_OUT. Federated sign-in runs the
authorization-code flow through the authlib clients in ``app.core.oauth``.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode, urlparse

from authlib.integrations.starlette_client import OAuthError
from authlib.jose.errors import JoseError
from fastapi import HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.constants import EMAIL_PROVIDER
from app.core.enums import AuthEvent
from app.core.oauth import oauth
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.auth import Session, UserRead
from app.services.auth_events import AuthStateNotifier

logger = logging.getLogger(__name__)

# Claims copied from a provider's user info into user_metadata
PROVIDER_CLAIMS = ("name", "full_name", "avatar_url", "picture", "given_name", "family_name")


def unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _email_taken() -> HTTPException:
    return HTTPException(status_code=409, detail="An account with this email already exists")


async def _commit_user(db: AsyncSession) -> None:
    """Commit a new or changed user; a concurrent insert of the same email is a 409."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _email_taken() from exc


def build_session(user: User) -> Session:
    token, expires_at = create_access_token(user.id)
    return Session(access_token=token, expires_at=expires_at, user=UserRead.model_validate(user))


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def sign_up(
    db: AsyncSession,
    notifier: AuthStateNotifier,
    email: str,
    password: str,
    full_name: str | None = None,
) -> Session:
    if await get_user_by_email(db, email):
        raise _email_taken()
    metadata = {"full_name": full_name.strip()} if full_name and full_name.strip() else {}
    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        provider=EMAIL_PROVIDER,
        user_metadata=metadata,
    )
    db.add(user)
    await _commit_user(db)
    await db.refresh(user)
    logger.info("User %s signed up", user.id)
    await notifier.emit(AuthEvent.SIGNED_IN, user)
    return build_session(user)


async def sign_in_with_password(
    db: AsyncSession,
    notifier: AuthStateNotifier,
    email: str,
    password: str,
) -> Session:
    user = await get_user_by_email(db, email)
    if user is None or not user.password_hash or not verify_password(password, user.password_hash):
        raise unauthorized("Invalid email or password")
    await notifier.emit(AuthEvent.SIGNED_IN, user)
    return build_session(user)


def get_oauth_client(provider: str):
    """Registered authlib client for provider; 404 if unknown or unconfigured."""
    client = oauth.create_client(provider)
    if client is None:
        raise HTTPException(status_code=404, detail=f"Unknown OAuth provider: {provider}")
    return client


def check_redirect_target(redirect_to: str | None) -> str:
    """Where the browser lands after federated sign-in; must stay on the frontend origin."""
    default = get_settings().oauth_redirect_url
    if not redirect_to:
        return default
    target, allowed = urlparse(redirect_to), urlparse(default)
    if (target.scheme, target.netloc) != (allowed.scheme, allowed.netloc):
        raise HTTPException(status_code=422, detail="redirect_to must stay on the application origin")
    return redirect_to


def session_redirect_url(target: str, session: Session) -> str:
    """Frontend URL carrying the session in its fragment (never sent back to a server)."""
    fragment = urlencode(
        {
            "access_token": session.access_token,
            "token_type": session.token_type,
            "expires_at": session.expires_at.isoformat(),
        }
    )
    return f"{target.split('#', 1)[0]}#{fragment}"


async def fetch_oauth_userinfo(client, request: Request) -> dict[str, Any]:
    """Exchange the authorization code; authlib verifies the ID token before returning."""
    try:
        token = await client.authorize_access_token(request)
    except (OAuthError, JoseError) as exc:
        logger.warning("Federated sign-in with %s failed: %s", client.name, exc)
        raise unauthorized("Federated sign-in failed") from exc
    userinfo = token.get("userinfo")
    if not userinfo:
        raise unauthorized("Identity provider returned no user info")
    return dict(userinfo)


async def sign_in_with_oauth(
    db: AsyncSession,
    notifier: AuthStateNotifier,
    provider: str,
    userinfo: dict[str, Any],
) -> Session:
    """Create or refresh the federated user from verified claims, sign in.

    Only provider-verified emails are accepted, and an email that already
    belongs to another sign-in method is never linked.
    """
    email = userinfo.get("email")
    if not isinstance(email, str) or not email:
        raise unauthorized("Identity provider returned no email")
    if userinfo.get("email_verified") not in (True, "true"):
        raise unauthorized("Email address is not verified by the identity provider")

    provider_meta = {k: userinfo[k] for k in PROVIDER_CLAIMS if userinfo.get(k)}
    user = await get_user_by_email(db, email)
    if user is None:
        user = User(email=email.lower(), provider=provider, user_metadata=provider_meta)
        db.add(user)
    elif user.provider != provider:
        raise _email_taken()
    else:
        # Provider data may have changed since the last sign-in
        user.user_metadata = {**(user.user_metadata or {}), **provider_meta}
    await _commit_user(db)
    await db.refresh(user)
    logger.info("User %s signed in with %s", user.id, provider)
    await notifier.emit(AuthEvent.SIGNED_IN, user)
    return build_session(user)


async def get_session_user(db: AsyncSession, token: str) -> User:
    user_id = decode_access_token(token)
    if user_id is None:
        raise unauthorized()
    user = await db.get(User, user_id)
    if user is None:
        raise unauthorized("User not found")
    return user


async def sign_out(notifier: AuthStateNotifier, user: User) -> None:
    await notifier.emit(AuthEvent.SIGNED_OUT, user)


