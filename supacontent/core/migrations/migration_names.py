"""
Migration Names

Parses migration filenames and produces sortable timestamp versions.

Filenames follow `<digits>(_supacontent)?_<name>.sql`. Templates bundled with
the package use a short ordinal as the digit prefix; scaffolded files use a
YYYYMMDDHHmmss version and carry the `_supacontent` infix.
"""
import os
import re
from datetime import datetime, timezone
from typing import List, Optional

from supacontent.core.migrations.exceptions import MalformedMigrationFilenameError
from supacontent.core.migrations.migration_models import MigrationFilename, SOURCE_TAG

MIGRATION_FILENAME_PATTERN = re.compile(r"^([0-9]+)(_" + SOURCE_TAG + r")?_(.+)\.sql$")

VERSION_FORMAT = "%Y%m%d%H%M%S"


def parse_migration_filename(filename: str, index: int = 0, directory: str = "") -> MigrationFilename:
    """
    Parse a migration filename into a MigrationFilename.

    Raises:
        MalformedMigrationFilenameError: if the name does not match the scheme.
    """
    match = MIGRATION_FILENAME_PATTERN.match(filename)
    if not match:
        raise MalformedMigrationFilenameError(filename, directory or None)

    return MigrationFilename(
        prefix=match.group(1),
        has_source_tag=match.group(2) is not None,
        name=match.group(3),
        filename=filename,
        filepath=os.path.join(directory, filename),
        index=index,
    )


def is_migration_entry(directory: str, filename: str) -> bool:
    """Regular, non-hidden files are migration entries; schema folders and dotfiles are not."""
    if filename.startswith("."):
        return False
    return os.path.isfile(os.path.join(directory, filename))


def list_migration_files(directory: str) -> List[MigrationFilename]:
    """
    Parse every migration entry of a directory, in sorted filename order.

    The position in that order becomes the entry's `index`.
    """
    filenames = [f for f in sorted(os.listdir(directory)) if is_migration_entry(directory, f)]
    return [parse_migration_filename(f, index, directory) for index, f in enumerate(filenames)]


def format_version(moment: Optional[datetime] = None) -> str:
    """Format a moment (default: now) as a UTC YYYYMMDDHHmmss version string."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(VERSION_FORMAT)


def base_version(moment: Optional[datetime] = None) -> int:
    return int(format_version(moment))


def version_for(base: int, index: int) -> str:
    """
    Version assigned to the template at `index` within one scaffold run.

    Seconds granularity is too coarse to separate templates written in the
    same run, so the enumeration index is added to the base.
    """
    return str(base + index)


def scaffold_filename(version: str, name: str) -> str:
    return f"{version}_{SOURCE_TAG}_{name}.sql"
