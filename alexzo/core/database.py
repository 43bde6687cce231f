"""
Database engine and session management

Provides the async SQLAlchemy engine and session factory used by the lead
capture tables, with pooling appropriate to the configured backend.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from alexzo.core.config import Settings

# Base class for SQLAlchemy models
Base = declarative_base()


class Database:
    """Owns one async engine and its session factory"""

    def __init__(self, settings: Settings):
        engine_kwargs = {
            "echo": settings.DEBUG,
        }

        if settings.DATABASE_URL.startswith("sqlite"):
            # SQLite: one connection per session, nothing to pool
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
            engine_kwargs["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
            engine_kwargs["pool_pre_ping"] = True
            engine_kwargs["pool_recycle"] = 3600

        self.engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def init_models(self) -> None:
        """
        Create all tables.

        Called on application startup; production schemas are expected to
        exist already, in which case this is a no-op.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI routes to get a database session.

    Usage:
        @router.post("/contact")
        async def contact(db: AsyncSession = Depends(get_db)):
            ...

    Yields:
        AsyncSession: session committed on success, rolled back on error.
    """
    database: Database = request.app.state.database
    async with database.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
