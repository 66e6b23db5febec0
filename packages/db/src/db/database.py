# This project was developed with assistance from AI tools.
"""Async engine, session factory, and FastAPI session dependency."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .config import db_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_size=db_settings.SQL_POOL_SIZE,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class DatabaseService:
    """Owns an engine and answers health checks against it."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def health_check(self) -> bool:
        """Run ``SELECT 1``. Returns False instead of raising on failure."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self.engine.dispose()


db_service = DatabaseService(engine=engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, rolled back on error."""
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_db_service() -> DatabaseService:
    return db_service
