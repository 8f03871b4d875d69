"""Workout CRUD endpoints with ownership/visibility rules."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import get_current_user, get_optional_user
from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.enums import Difficulty, WorkoutScope
from app.db.session import get_db
from app.models.user import Profile, User
from app.models.workout import Exercise, Workout
from app.schemas.exercise import ExerciseCreate, ExerciseRead
from app.schemas.workout import (
    OwnerProfile,
    WorkoutCreate,
    WorkoutDetail,
    WorkoutRead,
    WorkoutUpdate,
)
from app.services import favorites, policy
from app.services.profiles import ensure_profile

router = APIRouter()


def _to_read(workout: Workout, owner_name: str | None) -> WorkoutRead:
    return WorkoutRead(
        id=workout.id,
        owner=workout.owner,
        title=workout.title,
        description=workout.description,
        difficulty=workout.difficulty,
        is_public=workout.is_public,
        created_at=workout.created_at,
        updated_at=workout.updated_at,
        owner_profile=OwnerProfile(full_name=owner_name),
    )


async def get_readable_workout(
    db: AsyncSession,
    workout_id: uuid.UUID,
    viewer: User | None,
) -> Workout:
    """Load a workout the viewer may read; missing and private-foreign are both 404."""
    workout = await db.get(Workout, workout_id)
    viewer_id = viewer.id if viewer else None
    if workout is None or not policy.can_read_workout(viewer_id, workout):
        raise HTTPException(status_code=404, detail="Workout not found")
    return workout


async def get_writable_workout(db: AsyncSession, workout_id: uuid.UUID, viewer: User) -> Workout:
    workout = await get_readable_workout(db, workout_id, viewer)
    if not policy.can_write_workout(viewer.id, workout):
        raise HTTPException(status_code=403, detail="Only the owner can modify this workout")
    return workout


@router.get("", response_model=list[WorkoutRead])
async def list_workouts(
    db: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
    scope: WorkoutScope = WorkoutScope.PUBLIC,
    q: str | None = Query(None, max_length=100),
    difficulty: Difficulty | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """List workouts for one posture: public, mine (dashboard) or discover (public + own)."""
    if scope is WorkoutScope.MINE and viewer is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    viewer_id = viewer.id if viewer else None
    stmt = (
        select(Workout, Profile.full_name)
        .outerjoin(Profile, Profile.id == Workout.owner)
        .where(policy.scope_clause(scope, viewer_id))
    )
    if q:
        stmt = stmt.where(Workout.title.icontains(q.strip(), autoescape=True))
    if difficulty:
        stmt = stmt.where(Workout.difficulty == difficulty)
    stmt = stmt.order_by(Workout.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return [_to_read(w, name) for w, name in result.all()]


@router.post("", response_model=WorkoutRead, status_code=201)
async def create_workout(
    payload: WorkoutCreate,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Create a workout owned by the viewer (provisions the profile if it is missing)."""
    await ensure_profile(db, viewer)
    workout = Workout(owner=viewer.id, **payload.model_dump())
    db.add(workout)
    await db.flush()
    await db.refresh(workout)
    profile = await db.get(Profile, viewer.id)
    return _to_read(workout, profile.full_name if profile else None)


@router.get("/{workout_id}", response_model=WorkoutDetail)
async def get_workout(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
):
    """Workout with exercises (oldest first) plus the viewer's favorite/edit flags."""
    await get_readable_workout(db, workout_id, viewer)
    result = await db.execute(
        select(Workout, Profile.full_name)
        .outerjoin(Profile, Profile.id == Workout.owner)
        .where(Workout.id == workout_id)
        .options(selectinload(Workout.exercises))
        .execution_options(populate_existing=True)
    )
    workout, owner_name = result.one()
    viewer_id = viewer.id if viewer else None
    is_favorited = False
    if viewer_id is not None:
        is_favorited = await favorites.is_favorited(db, viewer_id, workout.id)
    return WorkoutDetail(
        **_to_read(workout, owner_name).model_dump(),
        exercises=[ExerciseRead.model_validate(e) for e in workout.exercises],
        is_favorited=is_favorited,
        can_edit=policy.can_write_workout(viewer_id, workout),
    )


@router.patch("/{workout_id}", response_model=WorkoutRead)
async def update_workout(
    workout_id: uuid.UUID,
    payload: WorkoutUpdate,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Update title/description/difficulty/visibility (owner only)."""
    workout = await get_writable_workout(db, workout_id, viewer)
    data = payload.model_dump(exclude_unset=True)
    if data.get("title", "") is None or data.get("is_public", False) is None:
        raise HTTPException(status_code=422, detail="title and is_public cannot be null")
    for k, v in data.items():
        setattr(workout, k, v)
    await db.flush()
    await db.refresh(workout)
    profile = await db.get(Profile, workout.owner)
    return _to_read(workout, profile.full_name if profile else None)


@router.delete("/{workout_id}", status_code=204)
async def delete_workout(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Delete a workout with its exercises and favorites (owner only)."""
    workout = await get_writable_workout(db, workout_id, viewer)
    await db.delete(workout)
    return None


@router.get("/{workout_id}/exercises", response_model=list[ExerciseRead])
async def list_workout_exercises(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
):
    """Exercises of a readable workout, oldest first."""
    await get_readable_workout(db, workout_id, viewer)
    result = await db.execute(
        select(Exercise).where(Exercise.workout_id == workout_id).order_by(Exercise.created_at.asc())
    )
    return list(result.scalars().all())


@router.post("/{workout_id}/exercises", response_model=ExerciseRead, status_code=201)
async def add_exercise(
    workout_id: uuid.UUID,
    payload: ExerciseCreate,
    db: AsyncSession = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    """Add an exercise to a workout (owner only)."""
    await get_writable_workout(db, workout_id, viewer)
    exercise = Exercise(workout_id=workout_id, **payload.model_dump())
    db.add(exercise)
    await db.flush()
    await db.refresh(exercise)
    return exercise
