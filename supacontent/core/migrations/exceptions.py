"""
Migrations - Exceptions
"""


class MigrationError(Exception):
    """Base exception for migration errors"""
    pass


class MalformedMigrationFilenameError(MigrationError):
    """Raised when a file in a migrations directory does not follow the naming scheme"""

    def __init__(self, filename: str, directory: str = None):
        self.filename = filename
        self.directory = directory
        location = f" in {directory}" if directory else ""
        super().__init__(f"Malformed migration filename{location}: {filename}")


class DuplicateMigrationVersionError(MigrationError):
    """Raised when two bundled migrations share a version within one schema"""
    pass


class MigrationNotFoundError(MigrationError):
    """Raised when a migration version is not part of the manifest"""
    pass


class ReconciliationUnavailableError(MigrationError):
    """Raised when the remote could not tell which migrations are pending"""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class MigrationApplyError(MigrationError):
    """Raised when outstanding migrations could not be applied"""

    def __init__(self, message: str, status_code: int = None, payload=None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class WorkspaceNotFoundError(MigrationError):
    """Raised when a workspace id has no registered database"""
    pass
