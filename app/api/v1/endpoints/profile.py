"""Profile endpoints for the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.profile import ProfileRead, ProfileUpdate
from app.services import profiles

router = APIRouter()


@router.get("", response_model=ProfileRead | None)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Viewer's profile, or null if it has not been provisioned yet."""
    return await profiles.get_profile(db, viewer.id)


@router.put("", response_model=ProfileRead)
async def update_my_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Update full name / avatar (creates the profile if missing)."""
    return await profiles.update_profile(db, viewer, payload.model_dump(exclude_unset=True))
