"""
Database session management.

Provides the async SQLAlchemy engine and a request-scoped session dependency.
The engine is created lazily by SQLAlchemy: nothing connects until the first
statement, so requests served entirely from mock data never touch the pool.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from globaledge.core.config import settings

if settings.USE_SQLITE:
    # StaticPool makes every connection share the same in-memory database.
    from sqlalchemy.pool import StaticPool

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    # Attribute access after commit must not trigger a lazy (sync) reload.
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request, closed afterwards."""
    async with AsyncSessionLocal() as session:
        yield session
