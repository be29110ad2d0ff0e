"""Database connection and session management."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cinesync.config import settings


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the catalog database.

    SQLite connections get foreign key enforcement switched on so the
    ON DELETE CASCADE rules between movies, shows and showtimes apply
    there too (used for local runs and tests).
    """
    engine = create_async_engine(database_url, echo=echo, future=True)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = create_engine(settings.database_url)

AsyncSessionLocal = create_session_factory(engine)
