"""Favorite state: at most one row per (user, workout), flipped with toggle semantics.

toggle_favorite does not read-then-act. It first deletes the pair's row with
RETURNING; if nothing came back it inserts with ON CONFLICT DO NOTHING. Two
concurrent toggles that both find no row therefore both end in "favorited"
with a single row, instead of one of them failing on the unique constraint.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.favorite import Favorite
from app.models.user import Profile
from app.models.workout import Workout
from app.services.policy import readable_workouts_clause

logger = logging.getLogger(__name__)


async def is_favorited(db: AsyncSession, user_id: uuid.UUID, workout_id: uuid.UUID) -> bool:
    """True if the pair has a favorite row. No row is False, not an error."""
    result = await db.execute(
        select(Favorite.id).where(Favorite.user_id == user_id, Favorite.workout_id == workout_id)
    )
    return result.first() is not None


async def _delete_favorite(db: AsyncSession, user_id: uuid.UUID, workout_id: uuid.UUID) -> bool:
    """Delete the pair's row; True if one existed."""
    result = await db.execute(
        delete(Favorite)
        .where(Favorite.user_id == user_id, Favorite.workout_id == workout_id)
        .returning(Favorite.id)
    )
    return len(result.all()) > 0


async def insert_favorite(db: AsyncSession, user_id: uuid.UUID, workout_id: uuid.UUID) -> bool:
    """Insert the pair's row unless present. Returns True if this call inserted it."""
    dialect = db.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = (
            insert(Favorite)
            .values(user_id=user_id, workout_id=workout_id)
            .on_conflict_do_nothing(index_elements=["user_id", "workout_id"])
            .returning(Favorite.id)
        )
        result = await db.execute(stmt)
        return result.first() is not None

    # No ON CONFLICT: a unique violation means another request already favorited it
    try:
        async with db.begin_nested():
            db.add(Favorite(user_id=user_id, workout_id=workout_id))
            await db.flush()
    except IntegrityError:
        logger.info("Favorite (%s, %s) already present", user_id, workout_id)
        return False
    return True


async def toggle_favorite(db: AsyncSession, user_id: uuid.UUID, workout_id: uuid.UUID) -> bool:
    """Flip the favorite for the pair and return the new state."""
    if await _delete_favorite(db, user_id, workout_id):
        logger.info("User %s unfavorited workout %s", user_id, workout_id)
        return False
    await insert_favorite(db, user_id, workout_id)
    logger.info("User %s favorited workout %s", user_id, workout_id)
    return True


async def favorite_status_map(
    db: AsyncSession,
    user_id: uuid.UUID,
    workout_ids: list[uuid.UUID],
) -> dict[uuid.UUID, bool]:
    """Favorite state for many workouts at once; every requested id is present."""
    status = {wid: False for wid in workout_ids}
    if not workout_ids:
        return status
    result = await db.execute(
        select(Favorite.workout_id).where(
            Favorite.user_id == user_id, Favorite.workout_id.in_(workout_ids)
        )
    )
    for wid in result.scalars().all():
        status[wid] = True
    return status


async def list_user_favorites(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> list[tuple[Workout, str | None, datetime]]:
    """(workout, owner full_name, favorited_at) for the user's favorites, newest first.

    Favorites on workouts that have since gone private are dropped unless the
    user owns them.
    """
    result = await db.execute(
        select(Workout, Profile.full_name, Favorite.created_at)
        .join(Favorite, Favorite.workout_id == Workout.id)
        .outerjoin(Profile, Profile.id == Workout.owner)
        .where(Favorite.user_id == user_id)
        .where(readable_workouts_clause(user_id))
        .order_by(Favorite.created_at.desc())
    )
    return [(w, name, favorited_at) for w, name, favorited_at in result.all()]
