# eventify/database.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.engine.url import make_url

load_dotenv()


def _default_db_url() -> str:
    """File-based SQLite DB at the project root when DATABASE_URL is not provided."""
    root = Path(__file__).resolve().parents[1]
    return f"sqlite+aiosqlite:///{(root / 'eventify.db').as_posix()}"


def _translate_sslmode(value: str) -> Optional[str]:
    """Translate libpq sslmode values to asyncpg-compatible flags."""

    normalized = value.strip().lower()
    if normalized in {"require", "verify-ca", "verify-full"}:
        return "true"
    if normalized == "disable":
        return "false"
    # "prefer"/"allow" have no asyncpg equivalent; leave the driver default.
    return None


def _normalize_database_url(raw_url: Optional[str]) -> Optional[str]:
    """Force an async driver onto Postgres URLs that were given without one."""

    if not raw_url:
        return raw_url

    try:
        url = make_url(raw_url)
    except Exception:
        return raw_url

    driver = url.drivername.lower()
    if driver in {"postgresql", "postgres"} or driver.startswith("postgresql+"):
        url = url.set(drivername="postgresql+asyncpg")

    if url.drivername == "postgresql+asyncpg":
        query = dict(url.query)
        sslmode = query.pop("sslmode", None)
        if sslmode is not None:
            translated = _translate_sslmode(sslmode)
            if translated is not None:
                query["ssl"] = translated
        if query != dict(url.query):
            url = url.set(query=query)

    return url.render_as_string(hide_password=False)


def _database_url_from_env(env: Mapping[str, str]) -> Optional[str]:
    for raw in (env.get("DATABASE_URL"), env.get("POSTGRES_URL")):
        normalized = _normalize_database_url(raw)
        if normalized:
            return normalized
    return None


DEFAULT_SQLITE_URL: str = _default_db_url()
DATABASE_URL: str = _database_url_from_env(os.environ) or DEFAULT_SQLITE_URL

ECHO = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes"}


def _serialize_sqlite_writers(bind_engine: AsyncEngine) -> None:
    """Open every SQLite transaction with BEGIN IMMEDIATE and enforce foreign keys.

    pysqlite only issues BEGIN in front of the first DML statement, so two
    writers racing for the last slot would meet halfway through and one of
    them would get "database is locked" instead of a clean answer.
    """

    @event.listens_for(bind_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(bind_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _build_engine(database_url: str, **engine_kwargs) -> AsyncEngine:
    engine_kwargs.setdefault("echo", ECHO)
    engine_kwargs.setdefault("pool_pre_ping", True)
    bind_engine = create_async_engine(database_url, **engine_kwargs)
    if bind_engine.dialect.name == "sqlite":
        _serialize_sqlite_writers(bind_engine)
    return bind_engine


def build_session_factory(bind_engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=bind_engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


Base = declarative_base()

engine: AsyncEngine
async_session: sessionmaker
CURRENT_DATABASE_URL: str


def configure_engine(database_url: str) -> None:
    """Configure the global engine/session factory pair."""

    global engine, async_session, CURRENT_DATABASE_URL

    engine = _build_engine(database_url)
    async_session = build_session_factory(engine)
    CURRENT_DATABASE_URL = database_url


configure_engine(DATABASE_URL)


async def get_db():
    """FastAPI dependency that yields an AsyncSession."""

    async with async_session() as session:
        yield session


async def init_models(bind: Optional[AsyncEngine] = None) -> None:
    """Import every model module so it registers with Base, then create tables."""

    import eventify.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
