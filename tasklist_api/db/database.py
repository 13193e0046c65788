import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tasklist_api.core.errors import ConflictError, StorageError
from tasklist_api.models.orm import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection, otherwise every checkout sees an empty database.
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, pool_pre_ping=True)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def init_models(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything staged in the block at once, or roll all of it back.

    Rolls back on any exception, cancellation included. Storage failures are
    re-raised as ``ConflictError`` (constraint violations) or ``StorageError``.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Constraint violation, transaction rolled back: %s", exc.orig)
        raise ConflictError("The change conflicts with existing data.") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError("Database error occurred.") from exc
    except BaseException:
        await session.rollback()
        raise
