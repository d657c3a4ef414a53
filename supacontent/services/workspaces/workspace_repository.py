"""
Workspace Repository - resolves workspace ids to their database URLs
"""
import logging
from databases import Database
from supacontent.core.migrations.exceptions import WorkspaceNotFoundError

logger = logging.getLogger("supacontent.workspaces.repository")


class WorkspaceRepository:
    """Repository for workspace lookups in the admin database"""

    def __init__(self, database: Database):
        self.database = database

    async def get_database_url(self, workspace_id: int) -> str:
        """Get the database URL of a workspace, or raise WorkspaceNotFoundError"""
        query = "SELECT database_url FROM workspaces WHERE id = :id"
        try:
            row = await self.database.fetch_one(query=query, values={"id": workspace_id})
        except Exception as e:
            logger.error(f"Failed to look up workspace {workspace_id}: {e}")
            raise

        if not row or not row["database_url"]:
            raise WorkspaceNotFoundError(f"Workspace {workspace_id} not found")
        return row["database_url"]
