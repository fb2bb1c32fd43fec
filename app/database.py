"""Engine, session factory and table bootstrap for the school manager."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings

# Every model module must be imported before create_all runs.
from app.models import Base
from app.models import lecture, log, report, rubric, school  # noqa: F401
from app.models import school_class, teacher, user  # noqa: F401

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _engine_options(backend: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug, "future": True}
    if backend == "sqlite":
        # aiosqlite connections are file handles, pooling buys nothing.
        options["poolclass"] = NullPool
        return options

    options["pool_pre_ping"] = True
    if settings.database.serverless or settings.debug:
        options["poolclass"] = NullPool
    return options


def _create_engine() -> AsyncEngine:
    url = make_url(settings.database.url)
    created = create_async_engine(url, **_engine_options(url.get_backend_name()))

    if created.dialect.name == "sqlite":

        @event.listens_for(created.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            # ON DELETE CASCADE on lectures/reports is inert without this.
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return created


def _resolve_schema(dialect: str) -> str | None:
    """Return the configured PostgreSQL schema, or None to use the default."""

    raw = settings.database.schema_name
    if dialect != "postgresql" or raw is None or not raw.strip():
        return None
    if not _IDENTIFIER.fullmatch(raw.strip()):
        logger.warning("Ignoring invalid schema name %r", raw)
        return None
    return raw.strip()


engine: AsyncEngine = _create_engine()
SCHEMA = _resolve_schema(engine.dialect.name)

if SCHEMA:
    for table in Base.metadata.tables.values():
        table.schema = table.schema or SCHEMA

SessionFactory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _use_schema(target: AsyncSession | AsyncConnection) -> None:
    if SCHEMA:
        await target.execute(text(f'SET search_path TO "{SCHEMA}", public'))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the configured schema.

    Used directly by background jobs (the analysis pipeline, request log
    persistence) that live outside a request's dependency scope.
    """

    async with SessionFactory() as session:
        await _use_schema(session)
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency wrapping :func:`session_scope`."""

    async with session_scope() as session:
        yield session


async def init_models() -> None:
    """Create missing tables (and the schema itself on PostgreSQL)."""

    async with engine.begin() as conn:
        if SCHEMA:
            await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{SCHEMA}"'))
        await _use_schema(conn)
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Database ready (%s, schema=%s, %d tables)",
        engine.dialect.name,
        SCHEMA or "default",
        len(Base.metadata.tables),
    )


async def dispose_engine() -> None:
    await engine.dispose()
