# backend/pricecatalog/db/session.py

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from pricecatalog.config.settings import settings

engine = create_async_engine(settings.database_url, echo=False)
AsyncSessionLocal = async_sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session on the shared storefront engine."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def job_session() -> AsyncIterator[AsyncSession]:
    """Session for worker code that runs inside its own ``asyncio.run`` loop.

    asyncpg connections are bound to the loop that opened them, so the job gets
    an unpooled engine of its own, disposed when the block exits.
    """
    job_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with AsyncSession(job_engine, autoflush=False, expire_on_commit=False) as session:
            yield session
    finally:
        await job_engine.dispose()
