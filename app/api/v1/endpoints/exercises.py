"""Exercise endpoints addressed by exercise id (write access via the parent workout)."""

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.constants import RECENT_EXERCISES_DAYS, RECENT_EXERCISES_LIMIT
from app.db.session import get_db
from app.models.user import User
from app.models.workout import Exercise, Workout
from app.schemas.exercise import ExerciseRead, ExerciseUpdate, RecentExerciseRead, WorkoutRef
from app.services import policy

router = APIRouter()


async def _get_writable_exercise(db: AsyncSession, exercise_id: uuid.UUID, viewer: User) -> Exercise:
    exercise = await db.get(Exercise, exercise_id)
    if exercise is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    parent = await policy.resolve_parent_workout(db, exercise)
    if parent is None or not policy.can_read_workout(viewer.id, parent):
        raise HTTPException(status_code=404, detail="Exercise not found")
    if not policy.can_write_exercise(viewer.id, exercise, parent):
        raise HTTPException(status_code=403, detail="Only the workout owner can modify this exercise")
    return exercise


@router.get("/recent", response_model=list[RecentExerciseRead])
async def recent_exercises(
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
    days: int = Query(RECENT_EXERCISES_DAYS, ge=1, le=90),
    limit: int = Query(RECENT_EXERCISES_LIMIT, ge=1, le=100),
):
    """The viewer's exercises added in the last `days` days, newest first, with workout title."""
    since = datetime.now(timezone.utc) - timedelta(days=days)
    result = await db.execute(
        select(Exercise, Workout)
        .join(Workout, Workout.id == Exercise.workout_id)
        .where(policy.own_workouts_clause(viewer.id), Exercise.created_at >= since)
        .order_by(Exercise.created_at.desc())
        .limit(limit)
    )
    return [
        RecentExerciseRead(
            **ExerciseRead.model_validate(e).model_dump(),
            workout=WorkoutRef.model_validate(w),
        )
        for e, w in result.all()
    ]


@router.patch("/{exercise_id}", response_model=ExerciseRead)
async def update_exercise(
    exercise_id: uuid.UUID,
    payload: ExerciseUpdate,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Update an exercise (partial; parent workout owner only)."""
    exercise = await _get_writable_exercise(db, exercise_id, viewer)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        raise HTTPException(status_code=422, detail="name cannot be null")
    for k, v in data.items():
        setattr(exercise, k, v)
    await db.flush()
    await db.refresh(exercise)
    return exercise


@router.delete("/{exercise_id}", status_code=204)
async def delete_exercise(
    exercise_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Delete an exercise (parent workout owner only)."""
    exercise = await _get_writable_exercise(db, exercise_id, viewer)
    await db.delete(exercise)
    return None
