"""
Database configuration and session management.
Uses PostgreSQL via asyncpg with SQLAlchemy 2 async engine.
"""

import logging
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from admonitor.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    """Pool sizing and connect timeout only apply to the Postgres driver."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "connect_args": {"timeout": 30},  # Fail fast if DB unreachable
    }


engine = create_async_engine(
    settings.database_url,
    echo=False,
    **_engine_kwargs(settings.database_url),
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Dependency that provides a database session with auto-commit/rollback."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """
    Create all tables defined in models.
    Uses create_all, which only creates tables that don't exist yet.
    """
    # Import models to ensure they are registered with Base.metadata
    import admonitor.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized with {len(Base.metadata.tables)} tables: "
                     f"{', '.join(Base.metadata.tables.keys())}")


async def check_db_connection() -> bool:
    """Test database connectivity."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
