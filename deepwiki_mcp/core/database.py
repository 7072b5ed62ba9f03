"""Database configuration and connection management"""

from typing import AsyncGenerator, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    AsyncEngine
)
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool
from deepwiki_mcp.core.config import settings


engine: Optional[AsyncEngine] = None
async_session_factory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Construct the async database URL (DATABASE_URL wins over the MySQL pieces)"""
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    return (
        f"mysql+aiomysql://{settings.MYSQL_USER}:{settings.MYSQL_PASSWORD}"
        f"@{settings.MYSQL_HOST}:{settings.MYSQL_PORT}/{settings.MYSQL_DATABASE}"
    )


def create_session_factory(bind: AsyncEngine) -> sessionmaker:
    """Build an AsyncSession factory bound to the given engine"""
    return sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_database() -> None:
    """Initialize the async engine and session factory"""
    global engine, async_session_factory

    url = get_database_url()
    engine_kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("mysql"):
        engine_kwargs.update(
            pool_size=10,  # Maximum number of connections in the pool
            max_overflow=20,  # Maximum overflow connections beyond pool_size
            pool_timeout=30,  # Timeout for getting connection from pool
            pool_recycle=3600,  # Recycle connections after 1 hour
            poolclass=AsyncAdaptedQueuePool,
        )

    engine = create_async_engine(url, **engine_kwargs)
    async_session_factory = create_session_factory(engine)


async def close_database() -> None:
    """Close the engine and cleanup connections"""
    global engine, async_session_factory
    if engine:
        await engine.dispose()
        engine = None
        async_session_factory = None


def get_session_factory() -> sessionmaker:
    """Return the session factory, failing loudly when the database is not initialized"""
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection for database sessions.

    Usage in FastAPI:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    factory = get_session_factory()

    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """
    Check if the database connection is healthy.
    Used for health checks.
    """
    if engine is None:
        return False

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
