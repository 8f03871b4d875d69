"""Print row counts per table and any (user, workout) pairs favorited more than once."""

import asyncio

from sqlalchemy import func, select, text

from app.db.session import async_session_maker, engine
from app.models.favorite import Favorite

TABLES = ["users", "profiles", "workouts", "exercises", "favorites"]


async def check_data():
    async with async_session_maker() as session:
        for table in TABLES:
            result = await session.execute(text(f"SELECT count(*) FROM {table}"))
            print(f"Table '{table}' row count: {result.scalar()}")

        dupes = await session.execute(
            select(Favorite.user_id, Favorite.workout_id, func.count().label("n"))
            .group_by(Favorite.user_id, Favorite.workout_id)
            .having(func.count() > 1)
        )
        rows = dupes.all()
        if rows:
            print(f"Duplicate favorites: {len(rows)} pair(s)")
            for user_id, workout_id, n in rows:
                print(f"  user={user_id} workout={workout_id} rows={n}")
        else:
            print("Favorites: no duplicate (user, workout) pairs")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(check_data())
