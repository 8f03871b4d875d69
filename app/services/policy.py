"""Ownership/visibility rules for workouts and exercises.

Read: public workouts for anyone, private ones for their owner only.
Write (update/delete): owner only. Exercises have no owner column; write access
follows the parent workout's owner, which must be resolved first.

These checks drive API responses and UI affordances (can_edit); the listing
clauses keep private rows out of queries entirely.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ColumnElement, false, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import WorkoutScope
from app.models.workout import Exercise, Workout


def can_read_workout(viewer_id: uuid.UUID | None, workout: Workout) -> bool:
    if workout.is_public:
        return True
    return viewer_id is not None and viewer_id == workout.owner


def can_write_workout(viewer_id: uuid.UUID | None, workout: Workout) -> bool:
    return viewer_id is not None and viewer_id == workout.owner


def can_write_exercise(viewer_id: uuid.UUID | None, exercise: Exercise, parent: Workout) -> bool:
    """Exercise write check against its (already resolved) parent workout."""
    if exercise.workout_id != parent.id:
        return False
    return can_write_workout(viewer_id, parent)


async def resolve_parent_workout(db: AsyncSession, exercise: Exercise) -> Workout | None:
    """Parent workout of an exercise; its owner is the exercise's owner. None if gone."""
    return await db.get(Workout, exercise.workout_id)


def public_workouts_clause() -> ColumnElement[bool]:
    return Workout.is_public.is_(True)


def own_workouts_clause(viewer_id: uuid.UUID | None) -> ColumnElement[bool]:
    if viewer_id is None:
        return false()
    return Workout.owner == viewer_id


def readable_workouts_clause(viewer_id: uuid.UUID | None) -> ColumnElement[bool]:
    if viewer_id is None:
        return public_workouts_clause()
    return or_(public_workouts_clause(), own_workouts_clause(viewer_id))


def scope_clause(scope: WorkoutScope, viewer_id: uuid.UUID | None) -> ColumnElement[bool]:
    """WHERE clause for a listing posture."""
    if scope is WorkoutScope.MINE:
        return own_workouts_clause(viewer_id)
    if scope is WorkoutScope.DISCOVER:
        return readable_workouts_clause(viewer_id)
    return public_workouts_clause()
