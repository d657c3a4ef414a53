"""
Migration Tracker

Tracks which migrations have been applied to a workspace database.
"""
import logging
from typing import Optional, Set
from datetime import datetime, timezone
from databases import Database
from supacontent.core.migrations.migration_models import BundledMigration, MigrationSchema, MigrationStatus

logger = logging.getLogger("supacontent.migrations.tracker")

TRACKING_TABLE = "supacontent_schema_migrations"


class MigrationTracker:
    """
    Tracks applied migrations in the database.
    """

    def __init__(self, database: Database):
        """
        Initialize migration tracker.

        Args:
            database: Database instance
        """
        self.database = database

    async def create_tracking_table(self) -> None:
        """
        Create the tracking table if it doesn't exist.
        """
        query = f"""
        CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} (
            version VARCHAR(14) NOT NULL,
            schema_name VARCHAR(63) NOT NULL,
            name VARCHAR(255) NOT NULL,
            applied_at TIMESTAMPTZ,
            error_message TEXT,
            PRIMARY KEY (version, schema_name)
        )
        """
        try:
            await self.database.execute(query)
            logger.debug("Migration tracking table created/verified")
        except Exception as e:
            logger.error(f"Failed to create migration tracking table: {e}")
            raise

    async def _versions(self, schema: MigrationSchema, failed: bool) -> Set[str]:
        condition = "IS NOT NULL" if failed else "IS NULL"
        query = f"""
        SELECT version FROM {TRACKING_TABLE}
        WHERE schema_name = :schema AND error_message {condition}
        """
        rows = await self.database.fetch_all(query, {"schema": MigrationSchema(schema).value})
        return {row["version"] for row in rows}

    async def get_applied_versions(self, schema: MigrationSchema) -> Set[str]:
        """
        Get versions successfully applied in a schema.
        """
        return await self._versions(schema, failed=False)

    async def get_failed_versions(self, schema: MigrationSchema) -> Set[str]:
        return await self._versions(schema, failed=True)

    async def mark_applied(self, migration: BundledMigration) -> None:
        """
        Record a migration as successfully applied.
        """
        query = f"""
        INSERT INTO {TRACKING_TABLE} (version, schema_name, name, applied_at)
        VALUES (:version, :schema, :name, :applied_at)
        ON CONFLICT (version, schema_name)
        DO UPDATE SET
            name = EXCLUDED.name,
            applied_at = EXCLUDED.applied_at,
            error_message = NULL
        """

        await self.database.execute(query, {
            "version": migration.version,
            "schema": migration.schema.value,
            "name": migration.name,
            "applied_at": datetime.now(timezone.utc),
        })
        logger.info(f"Marked migration {migration.version} as applied: {migration.name}")

    async def mark_failed(self, migration: BundledMigration, error_message: str) -> None:
        """
        Record a migration as failed.
        """
        query = f"""
        INSERT INTO {TRACKING_TABLE} (version, schema_name, name, error_message)
        VALUES (:version, :schema, :name, :error)
        ON CONFLICT (version, schema_name)
        DO UPDATE SET error_message = EXCLUDED.error_message
        """

        await self.database.execute(query, {
            "version": migration.version,
            "schema": migration.schema.value,
            "name": migration.name,
            "error": error_message,
        })
        logger.error(f"Marked migration {migration.version} as failed: {migration.name} - {error_message}")

    async def get_migration_status(self, version: str, schema: MigrationSchema) -> Optional[MigrationStatus]:
        """
        Get the status of a specific migration.
        """
        query = f"""
        SELECT error_message FROM {TRACKING_TABLE}
        WHERE version = :version AND schema_name = :schema
        """

        row = await self.database.fetch_one(query, {"version": version, "schema": MigrationSchema(schema).value})
        if not row:
            return MigrationStatus.PENDING

        if row["error_message"]:
            return MigrationStatus.FAILED

        return MigrationStatus.APPLIED
