"""Database connection and session management using SQLAlchemy async ORM"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./school.db")

# Convert sync postgresql:// to async postgresql+asyncpg://
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the project format."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)


def _engine_options(url: str) -> dict:
    # Pool sizing only applies to server databases; sqlite uses its own pool
    if url.startswith("sqlite"):
        return {"echo": SQL_ECHO}
    return {
        "echo": SQL_ECHO,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


def make_engine(url: str = DATABASE_URL, **overrides) -> AsyncEngine:
    """Create an async engine for the given database URL."""
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    options = _engine_options(url)
    options.update(overrides)
    return create_async_engine(url, **options)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to an engine.

    Services receive a factory like this one instead of reaching for a
    module-level session, so tests and callers can point them at any store.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = make_engine(DATABASE_URL)

# Base class for declarative models
Base = declarative_base()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create all tables from the ORM metadata."""
    # Import models so every table is registered on Base.metadata
    import school_core.models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_db(bind: Optional[AsyncEngine] = None) -> None:
    """Drop all tables."""
    import school_core.models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")

