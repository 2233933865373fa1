# events_platform/database.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

load_dotenv()


def _default_db_url() -> str:
    """File-based SQLite next to the project when no database is configured."""
    root = Path(__file__).resolve().parents[1]
    return f"sqlite+aiosqlite:///{(root / 'events.db').as_posix()}"


def _ssl_flag(sslmode: str) -> Optional[str]:
    """Map a libpq ``sslmode`` onto asyncpg's ``ssl`` query flag.

    Modes without an asyncpg equivalent ("prefer", "allow") map to None so the
    driver default applies.
    """
    mode = sslmode.strip().lower()
    if mode in {"require", "verify-ca", "verify-full"}:
        return "true"
    if mode == "disable":
        return "false"
    return None


def normalize_database_url(raw_url: Optional[str]) -> Optional[str]:
    """Force an async driver onto Postgres URLs; leave everything else alone."""

    if not raw_url:
        return raw_url

    try:
        url = make_url(raw_url)
    except Exception:
        return raw_url

    if url.drivername.lower().split("+")[0] in {"postgres", "postgresql"}:
        url = url.set(drivername="postgresql+asyncpg")
        query = dict(url.query)
        sslmode = query.pop("sslmode", None)
        if sslmode is not None:
            flag = _ssl_flag(sslmode)
            if flag is not None:
                query["ssl"] = flag
        if query != dict(url.query):
            url = url.set(query=query)

    return url.render_as_string(hide_password=False)


def _pg_env_database_url(env: Mapping[str, str]) -> Optional[str]:
    """Build a Postgres URL out of the PG* variables set by hosting providers."""

    host, name, user = env.get("PGHOST"), env.get("PGDATABASE"), env.get("PGUSER")
    if not (host and name and user):
        return None

    try:
        port = int(env["PGPORT"]) if env.get("PGPORT") else None
    except ValueError:
        port = None

    query: dict[str, str] = {}
    flag = _ssl_flag(env["PGSSLMODE"]) if env.get("PGSSLMODE") else None
    if flag is not None:
        query["ssl"] = flag

    return URL.create(
        drivername="postgresql+asyncpg",
        username=user,
        password=env.get("PGPASSWORD") or None,
        host=host,
        port=port,
        database=name,
        query=query,
    ).render_as_string(hide_password=False)


def database_url_from_env(env: Mapping[str, str]) -> Optional[str]:
    """DATABASE_URL wins, then POSTGRES_URL, then the PG* variables."""

    for key in ("DATABASE_URL", "POSTGRES_URL"):
        normalized = normalize_database_url(env.get(key))
        if normalized:
            return normalized
    return _pg_env_database_url(env)


DEFAULT_SQLITE_URL: str = _default_db_url()
DATABASE_URL: str = database_url_from_env(os.environ) or DEFAULT_SQLITE_URL

ECHO = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes"}

Base = declarative_base()

engine: AsyncEngine
SessionLocal: async_sessionmaker[AsyncSession]
CURRENT_DATABASE_URL: str


def configure_engine(database_url: str) -> None:
    """(Re)bind the module-level engine and session factory."""

    global engine, SessionLocal, CURRENT_DATABASE_URL

    engine = create_async_engine(database_url, echo=ECHO, pool_pre_ping=True)
    SessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    CURRENT_DATABASE_URL = database_url


configure_engine(DATABASE_URL)


async def get_db():
    """FastAPI dependency that yields an AsyncSession."""

    async with SessionLocal() as session:
        yield session


async def init_models() -> None:
    """Register every mapped class with Base and create missing tables."""

    import events_platform.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
