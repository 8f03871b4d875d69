"""Drop every application table (and the Alembic version table). Development only."""

import asyncio
import sys

from sqlalchemy import text

import app.models  # noqa: F401 - register all models
from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine


async def drop_tables():
    print(f"Dropping all tables on {engine.url.render_as_string(hide_password=True)} ...")
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        await conn.run_sync(Base.metadata.drop_all)
    print("Tables dropped.")
    await engine.dispose()


if __name__ == "__main__":
    if get_settings().environment == "production" and "--force" not in sys.argv:
        sys.exit("Refusing to drop tables in production without --force")
    asyncio.run(drop_tables())
