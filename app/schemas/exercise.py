"""Exercise schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ExerciseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sets: int | None = Field(None, ge=1)
    reps: str | None = Field(None, max_length=50)
    notes: str | None = None


class ExerciseCreate(ExerciseBase):
    pass


class ExerciseUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    sets: int | None = Field(None, ge=1)
    reps: str | None = Field(None, max_length=50)
    notes: str | None = None


class ExerciseRead(ExerciseBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    workout_id: UUID
    created_at: datetime | None = None


class WorkoutRef(BaseModel):
    """Minimal workout info embedded in recent-exercise rows (id + title only)."""

    id: UUID
    title: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RecentExerciseRead(ExerciseRead):
    workout: WorkoutRef
