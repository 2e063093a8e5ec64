"""FastAPI dependencies for BetLedger."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session dependency.

    The whole request runs in one transaction: services only flush, and the
    commit happens here once the handler returns without raising.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
