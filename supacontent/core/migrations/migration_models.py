"""
Migration Models

Data models for migration templates, scaffolded files and status views.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from datetime import datetime


SOURCE_TAG = "supacontent"


class MigrationStatus(Enum):
    """Migration execution status."""
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"


class MigrationSchema(str, Enum):
    """Schema namespaces migrations are reconciled against."""
    CONTENT = "supacontent"
    COMMUNITY = "supacommunity"


@dataclass(frozen=True)
class MigrationFilename:
    """
    A migration filename parsed into its parts.

    `prefix` is the leading digit run (an ordinal for templates, a
    YYYYMMDDHHmmss version for scaffolded files). `has_source_tag` is True
    when the file carries the `_supacontent` infix, i.e. it was written by
    the scaffolder.
    """
    prefix: str
    has_source_tag: bool
    name: str
    filename: str
    filepath: str
    index: int


@dataclass(frozen=True)
class MigrationTemplate:
    """A bundled migration template."""
    name: str
    filepath: str
    index: int

    @classmethod
    def from_filename(cls, parsed: MigrationFilename) -> "MigrationTemplate":
        return cls(name=parsed.name, filepath=parsed.filepath, index=parsed.index)


@dataclass(frozen=True)
class ScaffoldedMigration:
    """A migration file written into a consumer's migration directory."""
    version: str
    name: str
    filename: str
    sql: str


@dataclass(frozen=True)
class BundledMigration:
    """
    An entry of the bundled migration manifest.
    """
    version: str
    name: str
    filename: str
    sql: str
    schema: MigrationSchema = MigrationSchema.CONTENT
    description: Optional[str] = None

    def __str__(self) -> str:
        return f"Migration({self.version}_{self.name})"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass
class MigrationStatusRecord:
    """
    Applied/pending view of one bundled migration. Never persisted.
    """
    version: str
    name: str
    sql: str
    filename: str
    status: MigrationStatus = MigrationStatus.PENDING
    description: Optional[str] = None
    applied_at: Optional[datetime] = None

    @classmethod
    def from_bundled(cls, migration: BundledMigration, status: MigrationStatus) -> "MigrationStatusRecord":
        return cls(
            version=migration.version,
            name=migration.name,
            sql=migration.sql,
            filename=migration.filename,
            status=status,
            description=migration.description,
        )
