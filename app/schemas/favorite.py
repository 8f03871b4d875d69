"""Favorite schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.workout import WorkoutRead


class FavoriteState(BaseModel):
    workout_id: UUID
    favorited: bool


class FavoriteStatusRequest(BaseModel):
    workout_ids: list[UUID] = Field(default_factory=list, max_length=500)


class FavoritedWorkoutRead(WorkoutRead):
    """A favorited workout; favorited_at is the favorite row's created_at."""

    favorited_at: datetime
