"""Async engine, session factory and the request-scoped transaction dependency."""

from collections.abc import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from herbarium.config import get_settings
from herbarium.errors import ConstraintViolationError

engine = create_async_engine(
    get_settings().database_url,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield one session per request; commit on success, roll back on any error.

    The session is closed on every exit path by the ``async with`` block.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def flush_checked(session: AsyncSession) -> None:
    """Flush pending writes, surfacing schema rejections as a domain error.

    The failed flush leaves the transaction unusable; the request scope in
    ``get_db`` rolls it back, so no partial batch is ever committed.
    """
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConstraintViolationError(f"Rejected by a schema constraint: {exc.orig}") from exc
