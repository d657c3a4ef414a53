"""
Migration Runner

Reconciles and executes bundled migrations against a workspace database.
"""
import logging
from typing import Dict, List, Sequence
from databases import Database
from supacontent.core.migrations.exceptions import MigrationApplyError
from supacontent.core.migrations.migration_tracker import MigrationTracker
from supacontent.core.migrations.migration_models import BundledMigration, MigrationSchema

logger = logging.getLogger("supacontent.database.migrations")


def split_statements(sql: str) -> List[str]:
    # Split by semicolon and execute each statement
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


class MigrationRunner:
    """
    Reports and executes outstanding migrations for one workspace.
    """

    def __init__(self, database: Database, manifest: Sequence[BundledMigration]):
        """
        Initialize migration runner.

        Args:
            database: Workspace database instance
            manifest: Bundled migrations, any order
        """
        self.database = database
        self.manifest = sorted(manifest, key=lambda m: (m.version, m.schema.value))
        self.tracker = MigrationTracker(database)

    async def pending_versions(self, schema: MigrationSchema) -> Dict[str, List[str]]:
        """
        Versions of a schema the workspace has not applied.

        Returns:
            {"versions": [...not yet attempted...], "failed": [...attempted and failed...]}
        """
        schema = MigrationSchema(schema)
        await self.tracker.create_tracking_table()
        applied = await self.tracker.get_applied_versions(schema)
        failed = await self.tracker.get_failed_versions(schema)

        versions, failed_versions = [], []
        for migration in self.manifest:
            if migration.schema != schema or migration.version in applied:
                continue
            if migration.version in failed:
                failed_versions.append(migration.version)
            else:
                versions.append(migration.version)

        return {"versions": versions, "failed": failed_versions}

    async def outstanding_migrations(self) -> List[BundledMigration]:
        applied = {schema: await self.tracker.get_applied_versions(schema) for schema in MigrationSchema}
        return [m for m in self.manifest if m.version not in applied[m.schema]]

    async def _execute_migration(self, migration: BundledMigration) -> None:
        """
        Execute a single migration inside one transaction.
        """
        logger.info(f"Executing migration {migration.version}: {migration.name} ({migration.schema.value})")

        statements = split_statements(migration.sql)
        async with self.database.transaction():
            for i, statement in enumerate(statements, 1):
                await self.database.execute(statement)
                logger.debug(f"  Executed statement {i}/{len(statements)}")

    async def run_migrations(self) -> List[BundledMigration]:
        """
        Run every outstanding migration in version order.

        Stops at the first failure: later migrations may depend on the
        failed one. The failure is recorded before it is raised.

        Returns:
            Migrations applied by this run.

        Raises:
            MigrationApplyError: if a migration fails.
        """
        await self.tracker.create_tracking_table()

        outstanding = await self.outstanding_migrations()
        if not outstanding:
            logger.info(f"All {len(self.manifest)} migrations are already applied")
            return []

        logger.info(f"Found {len(outstanding)} pending migrations out of {len(self.manifest)} total")

        applied: List[BundledMigration] = []
        for migration in outstanding:
            try:
                await self._execute_migration(migration)
            except Exception as e:
                await self.tracker.mark_failed(migration, str(e))
                raise MigrationApplyError(
                    f"Migration {migration.version} ({migration.name}) failed: {e}",
                    payload={"version": migration.version, "applied": [m.version for m in applied]},
                ) from e

            await self.tracker.mark_applied(migration)
            applied.append(migration)
            logger.info(f"Migration {migration.version} applied successfully: {migration.name}")

        logger.info(f"Migration run complete. {len(applied)} migrations applied.")
        return applied
