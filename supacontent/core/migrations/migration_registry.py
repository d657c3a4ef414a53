"""
Migration Registry

Loads the bundled migration manifest from a migrations directory.
"""
import os
import logging
from typing import Dict, List, Optional, Tuple

from supacontent.core.migrations.exceptions import (
    DuplicateMigrationVersionError,
    MigrationNotFoundError,
)
from supacontent.core.migrations.migration_models import BundledMigration, MigrationSchema
from supacontent.core.migrations.migration_names import list_migration_files

logger = logging.getLogger("supacontent.migrations.registry")

VERSION_LENGTH = 14


class MigrationRegistry:
    """
    Discovers versioned migrations and exposes them as an immutable manifest.

    Layout:
        <migrations_dir>/<version>_<name>.sql           -> supacontent schema
        <migrations_dir>/<schema>/<version>_<name>.sql  -> that schema (any but supacontent)
    """

    def __init__(self, migrations_dir: str = "supabase/migrations"):
        """
        Initialize migration registry.

        Args:
            migrations_dir: Path to the versioned migrations directory.
        """
        self.migrations_dir = migrations_dir
        self._manifest: Optional[Tuple[BundledMigration, ...]] = None

    def _schema_directories(self) -> List[Tuple[MigrationSchema, str]]:
        directories = [(MigrationSchema.CONTENT, self.migrations_dir)]
        for schema in MigrationSchema:
            # the root directory already holds the content schema
            if schema == MigrationSchema.CONTENT:
                continue
            path = os.path.join(self.migrations_dir, schema.value)
            if os.path.isdir(path):
                directories.append((schema, path))
        return directories

    @staticmethod
    def _read_description(sql: str) -> Optional[str]:
        first_line = sql.lstrip().split("\n", 1)[0].strip()
        if first_line.startswith("--"):
            return first_line.lstrip("-").strip() or None
        return None

    def _discover_schema(self, schema: MigrationSchema, directory: str) -> List[BundledMigration]:
        migrations: Dict[str, BundledMigration] = {}

        for entry in list_migration_files(directory):
            if len(entry.prefix) != VERSION_LENGTH:
                logger.warning(f"Skipping unversioned migration file: {entry.filename}")
                continue

            if entry.prefix in migrations:
                raise DuplicateMigrationVersionError(
                    f"Duplicate migration version {entry.prefix} in {directory}: "
                    f"{migrations[entry.prefix].filename}, {entry.filename}"
                )

            with open(entry.filepath, "r", encoding="utf-8") as f:
                sql = f.read()

            migrations[entry.prefix] = BundledMigration(
                version=entry.prefix,
                name=entry.name,
                filename=entry.filepath,
                sql=sql,
                schema=schema,
                description=self._read_description(sql),
            )

        return list(migrations.values())

    def discover_migrations(self) -> Tuple[BundledMigration, ...]:
        """
        Discover all versioned migrations.

        Returns:
            Tuple of BundledMigration, sorted by version then schema.

        Raises:
            DuplicateMigrationVersionError: If a schema holds two files with one version.
            MalformedMigrationFilenameError: If a file does not follow the naming scheme.
        """
        if not os.path.isdir(self.migrations_dir):
            logger.warning(f"Migrations directory not found: {self.migrations_dir}")
            return ()

        result: List[BundledMigration] = []
        for schema, directory in self._schema_directories():
            result.extend(self._discover_schema(schema, directory))

        result.sort(key=lambda m: (m.version, m.schema.value))
        logger.info(f"Discovered {len(result)} migrations from {self.migrations_dir}")
        return tuple(result)

    def load_manifest(self) -> Tuple[BundledMigration, ...]:
        """Discover migrations once and keep the result for later calls."""
        if self._manifest is None:
            self._manifest = self.discover_migrations()
        return self._manifest

    def for_schema(self, schema: MigrationSchema) -> Tuple[BundledMigration, ...]:
        return tuple(m for m in self.load_manifest() if m.schema == schema)

    def get_migration_by_version(self, version: str, schema: MigrationSchema = None) -> BundledMigration:
        """
        Get a specific migration by version.

        Raises:
            MigrationNotFoundError: If migration not found
        """
        for migration in self.load_manifest():
            if migration.version == version and (schema is None or migration.schema == schema):
                return migration

        raise MigrationNotFoundError(f"Migration {version} not found")
