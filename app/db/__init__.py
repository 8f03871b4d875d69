"""Database package: engine, session, base."""

from app.db.session import async_session_maker, create_tables, get_db

__all__ = ["async_session_maker", "create_tables", "get_db"]
