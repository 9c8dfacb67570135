"""Database engine, session factory and transaction scope.

PostgreSQL (asyncpg) and SQLite (aiosqlite) are both supported; the driver
is picked from the scheme of the configured URL.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from mes.core.config import settings
from mes.core.exceptions import MESError, PersistenceError
import logging

logger = logging.getLogger(__name__)


def _create_engine(db_url: str | None = None):
    """Create the async engine matching the database URL."""
    db_url = db_url or settings.effective_database_url

    if db_url.startswith("postgresql://") or db_url.startswith("postgresql+asyncpg://"):
        if not db_url.startswith("postgresql+asyncpg://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")

        logger.info(f"Using PostgreSQL database: {db_url.split('@')[-1]}")
        return create_async_engine(
            db_url,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            echo=settings.DB_ECHO,
        )

    elif db_url.startswith("sqlite://") or db_url.startswith("sqlite+aiosqlite://"):
        if db_url.startswith("sqlite://"):
            db_url = "sqlite+aiosqlite://" + db_url[len("sqlite://"):]
        logger.info(f"Using SQLite database: {db_url}")
        return create_async_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
            echo=settings.DB_ECHO,
        )

    else:
        raise ValueError(f"Unsupported database URL scheme: {db_url}")


engine = _create_engine()
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block of writes as one unit of work.

    Commits when the block exits normally. Any other exit, including
    business errors and task cancellation, rolls the session back before
    the error propagates. Raw driver errors surface as PersistenceError.
    """
    try:
        yield session
        await session.commit()
    except MESError:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Transaction rolled back after database error")
        raise PersistenceError(f"Database operation failed: {e.__class__.__name__}") from e
    except BaseException:
        await session.rollback()
        raise
