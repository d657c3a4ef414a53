"""
Database Connection Manager

Handles connection lifecycle for the admin database and workspace databases.
"""
import logging
from databases import Database
from typing import Optional

logger = logging.getLogger("supacontent.database.connection")


class ConnectionManager:
    """
    Manages database connection lifecycle.
    """

    def __init__(self, database_url: str):
        """
        Initialize connection manager.

        Args:
            database_url: Database URL. There is no global fallback; callers
                resolve it from Settings or the workspace registry.
        """
        if not database_url:
            raise ValueError("A database URL is required")
        self.database_url = database_url
        self._database: Optional[Database] = None

    @property
    def database(self) -> Database:
        """
        Get the database instance. Creates it if it doesn't exist.
        """
        if self._database is None:
            self._database = Database(self.database_url)
        return self._database

    async def connect(self) -> Database:
        """
        Establish database connection.
        """
        database = self.database
        if not database.is_connected:
            await database.connect()
            logger.info("Database connection established")
        return database

    async def disconnect(self) -> None:
        """
        Close database connection.
        """
        if self._database and self._database.is_connected:
            await self._database.disconnect()
            logger.info("Database connection closed")

    async def health_check(self) -> bool:
        """
        Check if database connection is healthy.
        """
        try:
            if not self._database or not self._database.is_connected:
                return False
            await self._database.fetch_val("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
