"""
Tests for MigrationRunner and MigrationTracker against a mocked database.
"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from supacontent.core.migrations.exceptions import MigrationApplyError
from supacontent.core.migrations.migration_models import BundledMigration, MigrationSchema, MigrationStatus
from supacontent.core.migrations.migration_tracker import MigrationTracker
from supacontent.services.database.migration_runner import MigrationRunner, split_statements
from conftest import FakeDatabase


@pytest.fixture
def manifest():
    """Three migrations, deliberately out of order, across two schemas."""
    return [
        BundledMigration(version="20240103000000", name="create_forums", filename="f.sql",
                         sql="CREATE TABLE forums (id INT)", schema=MigrationSchema.COMMUNITY),
        BundledMigration(version="20240101000000", name="create_users", filename="u.sql",
                         sql="CREATE TABLE users (id INT); CREATE INDEX users_idx ON users (id);"),
        BundledMigration(version="20240102000000", name="add_posts", filename="p.sql",
                         sql="CREATE TABLE posts (id INT)"),
    ]


def test_split_statements():
    assert split_statements("SELECT 1;\n\n  SELECT 2 ;\n") == ["SELECT 1", "SELECT 2"]


@pytest.mark.asyncio
async def test_pending_versions_excludes_applied(manifest):
    database = FakeDatabase(applied={"supacontent": {"20240101000000"}})
    runner = MigrationRunner(database, manifest)

    result = await runner.pending_versions(MigrationSchema.CONTENT)

    assert result == {"versions": ["20240102000000"], "failed": []}


@pytest.mark.asyncio
async def test_pending_versions_reports_failed_separately(manifest):
    database = FakeDatabase(failed={"supacommunity": {"20240103000000"}})
    runner = MigrationRunner(database, manifest)

    result = await runner.pending_versions(MigrationSchema.COMMUNITY)

    assert result == {"versions": [], "failed": ["20240103000000"]}


@pytest.mark.asyncio
async def test_run_migrations_applies_in_version_order(manifest):
    database = FakeDatabase()
    runner = MigrationRunner(database, manifest)

    applied = await runner.run_migrations()

    assert [m.version for m in applied] == ["20240101000000", "20240102000000", "20240103000000"]
    assert database.statements() == [
        "CREATE TABLE users (id INT)",
        "CREATE INDEX users_idx ON users (id)",
        "CREATE TABLE posts (id INT)",
        "CREATE TABLE forums (id INT)",
    ]
    assert database.tracked() == [
        ("20240101000000", False),
        ("20240102000000", False),
        ("20240103000000", False),
    ]
    assert database.transaction.call_count == 3


@pytest.mark.asyncio
async def test_run_migrations_skips_applied(manifest):
    database = FakeDatabase(applied={"supacontent": {"20240101000000", "20240102000000"}})
    runner = MigrationRunner(database, manifest)

    applied = await runner.run_migrations()

    assert [m.name for m in applied] == ["create_forums"]


@pytest.mark.asyncio
async def test_run_migrations_nothing_outstanding(manifest):
    database = FakeDatabase(applied={
        "supacontent": {"20240101000000", "20240102000000"},
        "supacommunity": {"20240103000000"},
    })

    assert await MigrationRunner(database, manifest).run_migrations() == []
    assert database.statements() == []


@pytest.mark.asyncio
async def test_run_migrations_stops_at_first_failure(manifest):
    database = FakeDatabase(broken="posts")
    runner = MigrationRunner(database, manifest)

    with pytest.raises(MigrationApplyError) as exc_info:
        await runner.run_migrations()

    assert exc_info.value.payload == {"version": "20240102000000", "applied": ["20240101000000"]}
    assert "CREATE TABLE forums (id INT)" not in database.statements()
    assert database.tracked() == [("20240101000000", False), ("20240102000000", True)]


@pytest.mark.asyncio
async def test_tracker_migration_status():
    database = MagicMock()
    database.fetch_one = AsyncMock(side_effect=[None, {"error_message": "boom"}, {"error_message": None}])
    tracker = MigrationTracker(database)

    assert await tracker.get_migration_status("1", MigrationSchema.CONTENT) == MigrationStatus.PENDING
    assert await tracker.get_migration_status("1", MigrationSchema.CONTENT) == MigrationStatus.FAILED
    assert await tracker.get_migration_status("1", MigrationSchema.CONTENT) == MigrationStatus.APPLIED


@pytest.mark.asyncio
async def test_tracker_records_applied_at_in_utc(manifest):
    database = FakeDatabase()

    await MigrationTracker(database).mark_applied(manifest[1])

    query, values = database.executed[0]
    assert values["version"] == "20240101000000"
    assert values["applied_at"].utcoffset() == timedelta(0)
