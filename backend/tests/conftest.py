"""Shared test fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from cinesync.api.routes import admin, health
from cinesync.database import create_engine, create_session_factory
from cinesync.models import Base, Cinema

SEEDED_CINEMAS = [
    (101, "Cinéscope Louvain-la-Neuve", "https://www.cinescope.be"),
    (102, "Ciné Centre Rixensart", "https://www.cinecentre.be"),
]


@pytest.fixture
def test_app() -> FastAPI:
    """Minimal FastAPI app without the APScheduler lifespan, for API tests."""
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(admin.router, prefix="/api")
    return app


@pytest.fixture
async def db_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """SQLite catalog database with the schema created and two cinemas seeded."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = create_session_factory(engine)
    async with factory() as session:
        session.add_all(
            [Cinema(id=id, name=name, website=website) for id, name, website in SEEDED_CINEMAS]
        )
        await session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)
