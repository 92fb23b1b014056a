# ──── Usage Guide ────
# ROUTERS: take a session via Depends(get_db) and pass it to service functions.
#   Pattern: async def endpoint(session: AsyncSession = Depends(get_db)):
#                inputs = await build_dimension_inputs(session, entity_id)
#
# SCRIPTS / CLI: use the context manager, it commits on success.
#   Pattern: async with get_async_db() as session:
#                result = await session.execute(select(Model).where(...))
#
# DATABASE: SQLite (default, data/dmphq.db) or PostgreSQL via DATABASE_URL.

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool
from src.core.config import settings


class ToDictMixin:
    """Mixin to add dictionary serialization to models."""
    def to_dict(self):
        """Convert model instance to dictionary."""
        from sqlalchemy import inspect
        import datetime
        from decimal import Decimal
        from enum import Enum

        result = {}
        for key in inspect(self).mapper.column_attrs.keys():
            value = getattr(self, key)
            if isinstance(value, datetime.datetime):
                result[key] = value.isoformat()
            elif isinstance(value, datetime.date):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = float(value)
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result


class Base(ToDictMixin, DeclarativeBase):
    metadata = MetaData()


def resolve_async_url(url: str) -> str:
    """Pick the async driver for a plain database URL."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def build_engine(url: str):
    db_url = resolve_async_url(url)
    engine_kwargs = {"echo": False, "future": True}
    if db_url.startswith("sqlite"):
        # SQLite connections must not outlive the event loop that opened them
        engine_kwargs["poolclass"] = StaticPool if ":memory:" in db_url else NullPool
    return create_async_engine(db_url, **engine_kwargs)


# ──── Single Async Engine ────
engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# ──── Session Providers (FastAPI Dependencies) ────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


# ──── Context Managers ────
@asynccontextmanager
async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create all tables registered on Base.metadata."""
    # Import models so they register with the metadata
    import src.operations.database  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ──── End of Database Configuration ────
