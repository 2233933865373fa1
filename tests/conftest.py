"""Shared fixtures: a throwaway SQLite database per test and an API client bound to it."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import events_platform.models  # noqa: F401 (registers tables)
from events_platform.database import Base, get_db
from events_platform.main import app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory(tmp_path):
    # NullPool: every session opens its own connection on whichever event
    # loop is running, so seeding (asyncio.run) and TestClient can share it.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def seed(session_factory):
    """Persist ORM objects; returns them refreshed."""

    def _seed(*objects):
        async def _run():
            async with session_factory() as session:
                session.add_all(objects)
                await session.commit()
                for obj in objects:
                    await session.refresh(obj)
            return objects

        return asyncio.run(_run())

    return _seed


@pytest.fixture
def client(session_factory):
    original_overrides = app.dependency_overrides.copy()

    async def get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)

