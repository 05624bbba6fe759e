"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, edugen.configs
System role: Database schema initialization

Usage:
    python -m edugen.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from edugen.boundary.db.base import Base
from edugen.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from edugen.boundary.db.models.content_model import ContentModel  # noqa: F401
from edugen.boundary.db.models.job_model import JobModel  # noqa: F401
from edugen.configs import get_settings
from edugen.observability.logger import configure_logging

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: calls CREATE TABLE IF NOT EXISTS for each model, so safe
    to run multiple times. Existing tables remain unchanged.

    Args:
        engine: Engine to use (a new one from settings when omitted)

    Raises:
        SQLAlchemyError: If database connection fails or table creation fails
    """
    owns_engine = engine is None
    engine = engine or get_async_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"{__name__}:create_all_tables - Tables created: {sorted(Base.metadata.tables)}")
    finally:
        if owns_engine:
            await engine.dispose()


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.

    Args:
        engine: Engine to use (a new one from settings when omitted)
    """
    owns_engine = engine is None
    engine = engine or get_async_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info(f"{__name__}:drop_all_tables - All tables dropped")
    finally:
        if owns_engine:
            await engine.dispose()


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    asyncio.run(create_all_tables())
