"""
Database infrastructure components.
"""

from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = structlog.get_logger(__name__)


class DatabaseManager:
    """MongoDB database manager."""

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        min_pool_size: int = 0,
        max_pool_size: int = 100
    ):
        self.connection_string = connection_string
        self.database_name = database_name
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._connected = False

    async def connect(self) -> None:
        """Connect to the database."""
        try:
            # tz_aware so stored UTC datetimes come back comparable with utc_now()
            self._client = AsyncIOMotorClient(
                self.connection_string,
                tz_aware=True,
                minPoolSize=self.min_pool_size,
                maxPoolSize=self.max_pool_size
            )
            self._database = self._client[self.database_name]

            # Test the connection
            await self._client.admin.command("ping")
            self._connected = True

            logger.info("Database connected successfully", database=self.database_name)
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._client:
            self._client.close()
            self._connected = False
            logger.info("Database disconnected")

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        if self._database is None:
            raise RuntimeError("Database not connected")
        return self._database

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            if not self._connected or not self._client:
                return False

            await self._client.admin.command("ping")
            return True
        except Exception:
            return False

    async def create_indexes(self) -> None:
        """Create database indexes."""
        if self._database is None:
            return

        try:
            await self._database.interviews.create_index("user_id")
            await self._database.interviews.create_index("application_id")
            await self._database.interviews.create_index([("status", 1), ("scheduled_date", 1)])
            await self._database.job_applications.create_index("user_id")
            await self._database.users.create_index("email", unique=True)

            logger.info("Database indexes created successfully")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
