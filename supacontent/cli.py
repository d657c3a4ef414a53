#!/usr/bin/env python3
"""
supacontent command line

    supacontent migrations [-d DIR]        scaffold bundled migrations into DIR
    supacontent preview [-d DIR]           list versioned migrations in execution order
    supacontent status --workspace-id N    applied/pending view from the remote
    supacontent apply --workspace-id N     run all outstanding migrations remotely
    supacontent migrate [--preview]        apply the manifest directly to DATABASE_URL
"""
import argparse
import asyncio
import logging
import sys

from supacontent.core.migrations.exceptions import MigrationError
from supacontent.core.migrations.migration_models import MigrationSchema, MigrationStatus
from supacontent.core.migrations.migration_registry import MigrationRegistry
from supacontent.core.migrations.migration_scaffolder import DEFAULT_TARGET_DIRECTORY, MigrationScaffolder
from supacontent.modules.settings import Settings
from supacontent.services.database.connection_manager import ConnectionManager
from supacontent.services.database.migration_runner import MigrationRunner
from supacontent.services.migrations.migrations_api import MigrationsApi

logger = logging.getLogger("supacontent.cli")

SQL_PREVIEW_LENGTH = 100


def run_scaffold(args, settings: Settings) -> int:
    MigrationScaffolder().scaffold(args.directory)
    return 0


def run_preview(args, settings: Settings) -> int:
    migrations = MigrationRegistry(args.directory or settings.migrations_dir).load_manifest()
    if not migrations:
        print("No migrations found.")
        return 0

    print("Found migrations (in execution order):")
    for index, migration in enumerate(migrations, 1):
        print(f"{index}. {migration.name} ({migration.schema.value})")
        print(f"   File: {migration.filename}")
        print(f"   SQL: {migration.sql[:SQL_PREVIEW_LENGTH]}...")
        print("")
    return 0


def run_status(args, settings: Settings) -> int:
    api = MigrationsApi(settings)
    records = asyncio.run(api.list_migrations(args.workspace_id, MigrationSchema(args.schema)))
    if not records:
        print("No migrations found.")
        return 0

    for record in records:
        print(f"{record.version}  {record.status.value:<8} {record.name}")
    applied = sum(1 for r in records if r.status == MigrationStatus.APPLIED)
    print(f"{applied}/{len(records)} migrations applied.")
    return 0


def run_apply(args, settings: Settings) -> int:
    api = MigrationsApi(settings)
    asyncio.run(api.run_all_migrations(args.workspace_id))
    print(f"Migrations applied for workspace {args.workspace_id}.")
    return 0


async def migrate_database(database_url: str, manifest, preview: bool = False) -> int:
    """Apply (or with `preview`, only report) outstanding migrations of one database."""
    connection = ConnectionManager(database_url)
    database = await connection.connect()
    try:
        runner = MigrationRunner(database, manifest)
        if not preview:
            applied = await runner.run_migrations()
            print(f"{len(applied)} migrations applied.")
            return 0

        names = {(m.version, m.schema): m.name for m in manifest}
        outstanding = 0
        for schema in MigrationSchema:
            report = await runner.pending_versions(schema)
            for label, key in (("pending", "versions"), ("failed", "failed")):
                for version in report[key]:
                    print(f"{version}  {label:<8} {names[(version, schema)]} ({schema.value})")
                    outstanding += 1
        print(f"{outstanding} migrations outstanding.")
        return 0
    finally:
        await connection.disconnect()


def run_migrate(args, settings: Settings) -> int:
    database_url = args.database_url or settings.database_url
    if not database_url:
        logger.error("❌ No database URL: pass --database-url or set DATABASE_URL")
        return 1

    manifest = MigrationRegistry(args.directory or settings.migrations_dir).load_manifest()
    if not manifest:
        print("No migrations found.")
        return 0
    return asyncio.run(migrate_database(database_url, manifest, args.preview))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="supacontent", description="supacontent migration tools")
    parser.add_argument("--env-file", default=None, help="Load settings from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scaffold = subparsers.add_parser("migrations", help="Scaffold bundled migrations into a project")
    scaffold.add_argument("-d", "--directory", default=DEFAULT_TARGET_DIRECTORY,
                          help=f"custom output directory (default: {DEFAULT_TARGET_DIRECTORY})")
    scaffold.set_defaults(handler=run_scaffold)

    preview = subparsers.add_parser("preview", help="List versioned migrations in execution order")
    preview.add_argument("-d", "--directory", default=None, help="migrations directory")
    preview.set_defaults(handler=run_preview)

    status = subparsers.add_parser("status", help="Show applied/pending migrations of a workspace")
    status.add_argument("--workspace-id", type=int, required=True)
    status.add_argument("--schema", choices=[s.value for s in MigrationSchema], default=MigrationSchema.CONTENT.value)
    status.set_defaults(handler=run_status)

    apply = subparsers.add_parser("apply", help="Run all outstanding migrations of a workspace")
    apply.add_argument("--workspace-id", type=int, required=True)
    apply.set_defaults(handler=run_apply)

    migrate = subparsers.add_parser("migrate", help="Apply versioned migrations directly to a database")
    migrate.add_argument("--database-url", default=None, help="target database (default: DATABASE_URL)")
    migrate.add_argument("-d", "--directory", default=None, help="migrations directory")
    migrate.add_argument("--preview", action="store_true", help="only show pending migrations")
    migrate.set_defaults(handler=run_migrate)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    settings = Settings.from_env(args.env_file)
    try:
        return args.handler(args, settings)
    except (MigrationError, OSError) as e:
        logger.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
