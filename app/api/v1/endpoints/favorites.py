"""Favorite endpoints: toggle, status, and the viewer's favorites list."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.endpoints.workouts import get_readable_workout
from app.db.session import get_db
from app.models.user import User
from app.schemas.favorite import FavoritedWorkoutRead, FavoriteState, FavoriteStatusRequest
from app.schemas.workout import OwnerProfile
from app.services import favorites

router = APIRouter()


@router.get("", response_model=list[FavoritedWorkoutRead])
async def list_favorites(
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """The viewer's favorited workouts, most recently favorited first."""
    rows = await favorites.list_user_favorites(db, viewer.id)
    return [
        FavoritedWorkoutRead(
            id=w.id,
            owner=w.owner,
            title=w.title,
            description=w.description,
            difficulty=w.difficulty,
            is_public=w.is_public,
            created_at=w.created_at,
            updated_at=w.updated_at,
            owner_profile=OwnerProfile(full_name=owner_name),
            favorited_at=favorited_at,
        )
        for w, owner_name, favorited_at in rows
    ]


@router.post("/status", response_model=dict[uuid.UUID, bool])
async def favorite_status(
    payload: FavoriteStatusRequest,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Favorite state for a batch of workout ids (list pages)."""
    return await favorites.favorite_status_map(db, viewer.id, payload.workout_ids)


@router.get("/{workout_id}", response_model=FavoriteState)
async def get_favorite(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Whether the viewer has favorited this workout."""
    return FavoriteState(
        workout_id=workout_id,
        favorited=await favorites.is_favorited(db, viewer.id, workout_id),
    )


@router.post("/{workout_id}/toggle", response_model=FavoriteState)
async def toggle_favorite(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Flip the viewer's favorite on a readable workout and return the new state."""
    await get_readable_workout(db, workout_id, viewer)
    favorited = await favorites.toggle_favorite(db, viewer.id, workout_id)
    return FavoriteState(workout_id=workout_id, favorited=favorited)
