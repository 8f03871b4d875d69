"""Shared endpoint dependencies: current user (required or optional)."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.services.identity import unauthorized, get_session_user

bearer = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Signed-in user, or None for anonymous viewers. A bad token is still a 401."""
    if credentials is None:
        return None
    return await get_session_user(db, credentials.credentials)


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise unauthorized("Not authenticated")
    return user
