"""Workout schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import Difficulty
from app.schemas.exercise import ExerciseRead


class WorkoutBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    difficulty: Difficulty | None = None
    is_public: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class WorkoutCreate(WorkoutBase):
    pass


class WorkoutUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    difficulty: Difficulty | None = None
    is_public: bool | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Title is required")
        return v.strip() if v is not None else v


class OwnerProfile(BaseModel):
    full_name: str | None = None


class WorkoutRead(WorkoutBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    owner: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    owner_profile: OwnerProfile = OwnerProfile()


class WorkoutDetail(WorkoutRead):
    """Workout with exercises plus viewer-specific flags for the detail page."""

    exercises: list[ExerciseRead] = []
    is_favorited: bool = False
    can_edit: bool = False
