"""
Migration Scaffolder

Copies the bundled migration templates into a project's migration directory,
once per logical migration name.
"""
import os
import shutil
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List

from supacontent.core.migrations.migration_models import MigrationTemplate, ScaffoldedMigration
from supacontent.core.migrations.migration_names import (
    base_version,
    list_migration_files,
    scaffold_filename,
    version_for,
)

logger = logging.getLogger("supacontent.migrations.scaffolder")

DEFAULT_TARGET_DIRECTORY = "supabase/migrations"

# Templates ship inside the package: supacontent/migrations
TEMPLATES_DIR = str(Path(__file__).parent.parent.parent / "migrations")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MigrationScaffolder:
    """
    Brings a migration directory up to date with the bundled templates.

    Files already written by a previous run are recognised by their logical
    name, whatever their version prefix, so re-running never duplicates or
    reorders a migration.
    """

    def __init__(self, templates_dir: str = None, clock: Callable[[], datetime] = _utcnow):
        """
        Args:
            templates_dir: Directory of `<ordinal>_<name>.sql` templates.
                Defaults to the templates bundled with the package.
            clock: Returns the current UTC time; versions derive from it.
        """
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.clock = clock

    def find_templates(self) -> List[MigrationTemplate]:
        return [MigrationTemplate.from_filename(entry) for entry in list_migration_files(self.templates_dir)]

    def find_existing_names(self, target_directory: str) -> set:
        """Names of migrations this tool already scaffolded into the directory."""
        return {entry.name for entry in list_migration_files(target_directory) if entry.has_source_tag}

    def pending_templates(self, target_directory: str) -> List[MigrationTemplate]:
        existing = self.find_existing_names(target_directory)
        return [t for t in self.find_templates() if t.name not in existing]

    def scaffold(self, target_directory: str = DEFAULT_TARGET_DIRECTORY) -> List[ScaffoldedMigration]:
        """
        Scaffold every template whose name is not yet in the target directory.

        Copies run one at a time in template order. The first I/O error
        propagates; files copied before it stay on disk.

        Returns:
            The migrations created by this run (empty when nothing was new).

        Raises:
            MalformedMigrationFilenameError: if an existing or template file
                does not follow the naming scheme.
            OSError: on any filesystem failure.
        """
        if not os.path.exists(target_directory):
            logger.info(f"Directory {target_directory} does not exist. Creating...")
            os.makedirs(target_directory, exist_ok=True)

        to_create = self.pending_templates(target_directory)

        if not to_create:
            logger.info("No new migrations detected. Exiting.")
            return []

        logger.info(f"Creating migrations in {target_directory} ...")

        base = base_version(self.clock())
        created: List[ScaffoldedMigration] = []
        for template in to_create:
            version = version_for(base, template.index)
            filename = scaffold_filename(version, template.name)
            destination = os.path.join(target_directory, filename)

            shutil.copyfile(template.filepath, destination)
            logger.info(f"Migration created: {filename}")

            # file bytes are copied as-is; only the returned text is decoded
            with open(destination, "r", encoding="utf-8", errors="replace") as f:
                sql = f.read()
            created.append(ScaffoldedMigration(version=version, name=template.name, filename=filename, sql=sql))

        logger.info(f"{len(created)} migrations created.")
        return created


def scaffold(target_directory: str = DEFAULT_TARGET_DIRECTORY, templates_dir: str = None) -> List[ScaffoldedMigration]:
    """Scaffold bundled migrations into `target_directory`."""
    return MigrationScaffolder(templates_dir=templates_dir).scaffold(target_directory)
