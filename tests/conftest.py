"""
Shared fixtures for supacontent tests.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def write_sql(directory, filename, sql="SELECT 1;"):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(sql, encoding="utf-8")
    return path


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2024-05-01 12:30:00 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def templates_dir(tmp_path):
    """Template directory with two templates."""
    directory = tmp_path / "templates"
    write_sql(directory, "001_create_table.sql", "CREATE TABLE things (id INT);\n")
    write_sql(directory, "002_add_index.sql", "CREATE INDEX things_id_idx ON things (id);\n")
    return directory


@pytest.fixture
def target_dir(tmp_path):
    """Target migration directory (not created yet)."""
    return tmp_path / "project" / "supabase" / "migrations"


class FakeDatabase:
    """Records executed statements; tracking rows live in dicts keyed by schema."""

    def __init__(self, applied=None, failed=None, broken=None):
        self.applied = applied or {}
        self.failed = failed or {}
        self.broken = broken
        self.executed = []
        self.execute = AsyncMock(side_effect=self._execute)
        self.fetch_all = AsyncMock(side_effect=self._fetch_all)
        self.fetch_one = AsyncMock(return_value=None)
        self.transaction = MagicMock()

    async def _execute(self, query, values=None):
        if self.broken and self.broken in query:
            raise RuntimeError(f"syntax error near {self.broken}")
        self.executed.append((query.strip(), values))

    async def _fetch_all(self, query, values=None):
        source = self.failed if "IS NOT NULL" in query else self.applied
        return [{"version": v} for v in source.get(values["schema"], ())]

    def statements(self):
        return [q for q, values in self.executed if values is None and "supacontent_schema_migrations" not in q]

    def tracked(self):
        return [(values["version"], "error" in values) for q, values in self.executed if values]
