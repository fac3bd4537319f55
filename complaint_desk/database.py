"""
Async database and Supabase client management for the category directory
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from supabase import create_client, Client

from complaint_desk.config import settings
from complaint_desk.logging_config import logger


class DatabaseManager:
    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine = None
        self.async_session_maker = None
        self.supabase_client: Optional[Client] = None
        self._initialized = False

    async def initialize(self):
        """Initialize the database engine and the Supabase client, whichever are configured"""
        if self._initialized:
            return

        try:
            if self.database_url:
                self.engine = create_async_engine(
                    self.database_url,
                    echo=settings.DATABASE_ECHO,
                    poolclass=NullPool,  # Use NullPool for serverless environments
                    pool_pre_ping=True,
                )

                self.async_session_maker = async_sessionmaker(
                    self.engine, class_=AsyncSession, expire_on_commit=False
                )

            if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
                self.supabase_client = create_client(
                    settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY
                )

            self._initialized = True
            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

    async def close(self):
        """Close database connections"""
        if self.engine:
            await self.engine.dispose()
        self._initialized = False
        logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get an async database session"""
        if not self._initialized:
            await self.initialize()
        if self.async_session_maker is None:
            raise RuntimeError("DATABASE_URL is not configured")

        async with self.async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def health_check(self) -> bool:
        """Check if database is accessible"""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False


# Global database manager instance
db_manager = DatabaseManager()
