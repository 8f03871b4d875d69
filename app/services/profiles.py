"""Profile auto-provisioning and editing.

Every SIGNED_IN event upserts the user's profile so federated sign-ins (which
never pass through a signup form) still get one. The upsert is keyed on the
user id and refreshes full_name/avatar_url, so repeated sign-ins never create
a second row.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import EMAIL_PROVIDER
from app.core.enums import AuthEvent
from app.db.session import async_session_maker
from app.models.user import Profile, User

logger = logging.getLogger(__name__)


def _clean(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def derive_full_name(user: User) -> str | None:
    """Provider-supplied name, then signup full_name, then email local-part, then None."""
    meta = user.user_metadata or {}
    if user.provider != EMAIL_PROVIDER:
        provider_name = _clean(meta.get("full_name")) or _clean(meta.get("name"))
        if provider_name:
            return provider_name
    signup_name = _clean(meta.get("full_name"))
    if signup_name:
        return signup_name
    if isinstance(user.email, str) and "@" in user.email:
        return _clean(user.email.split("@", 1)[0])
    return None


def derive_avatar_url(user: User) -> str | None:
    meta = user.user_metadata or {}
    return _clean(meta.get("avatar_url")) or _clean(meta.get("picture"))


def _dialect_insert(db: AsyncSession):
    """Dialect insert with ON CONFLICT support, or None where there is none."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    return None


async def upsert_profile(db: AsyncSession, user: User) -> None:
    """Insert or refresh the profile for user (idempotent)."""
    values = {
        "id": user.id,
        "full_name": derive_full_name(user),
        "avatar_url": derive_avatar_url(user),
    }
    insert = _dialect_insert(db)
    if insert is None:
        await db.merge(Profile(**values))
        await db.flush()
        return
    stmt = insert(Profile).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={"full_name": stmt.excluded.full_name, "avatar_url": stmt.excluded.avatar_url},
    )
    await db.execute(stmt)


async def ensure_profile(db: AsyncSession, user: User) -> None:
    """Create the profile if missing; leaves an existing one untouched."""
    values = {"id": user.id, "full_name": derive_full_name(user), "avatar_url": derive_avatar_url(user)}
    insert = _dialect_insert(db)
    if insert is None:
        if await db.get(Profile, user.id) is None:
            db.add(Profile(**values))
            await db.flush()
        return
    await db.execute(insert(Profile).values(**values).on_conflict_do_nothing(index_elements=["id"]))


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile | None:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def update_profile(db: AsyncSession, user: User, data: dict[str, Any]) -> Profile:
    """Apply profile form fields; creates the row first if it was never provisioned."""
    await ensure_profile(db, user)
    profile = await get_profile(db, user.id)
    for k, v in data.items():
        setattr(profile, k, _clean(v))
    await db.flush()
    await db.refresh(profile)
    return profile


async def provision_profile_on_sign_in(event: AuthEvent, user: User) -> None:
    """Auth listener. Runs in its own session; failures never block sign-in."""
    if event is not AuthEvent.SIGNED_IN:
        return
    try:
        async with async_session_maker() as session:
            await upsert_profile(session, user)
            await session.commit()
    except SQLAlchemyError:
        logger.exception("Profile upsert failed for user %s", user.id)
        return
    logger.info("Profile provisioned for user %s", user.id)
