"""
Migration Services

Client side of the migrations API:
- Status reconciliation against a workspace
- Remote execution of outstanding migrations
"""

from supacontent.services.migrations.migrations_api import MigrationsApi

__all__ = [
    "MigrationsApi",
]
