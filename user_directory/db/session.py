"""
Async SQLAlchemy engine & session factory, owned by an explicit handle.

The application lifespan opens a :class:`Database`, keeps it on
``app.state`` and closes it at shutdown; nothing holds a connection at
import time.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from user_directory.db.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Handle over one async engine and its session factory."""

    def __init__(self, url: str, **engine_kwargs) -> None:
        engine_args = {
            "echo": False,
            "pool_pre_ping": True,
        }
        if "postgresql" in url:
            engine_args.update(
                {
                    "pool_size": 20,
                    "max_overflow": 10,
                    "pool_recycle": 300,
                }
            )
        engine_args.update(engine_kwargs)

        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_args)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
