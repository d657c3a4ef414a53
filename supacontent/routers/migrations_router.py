"""
Migrations - Router

Reconciliation and apply endpoints consumed by MigrationsApi.
"""
import logging
from typing import AsyncIterator, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from supacontent.core.migrations.exceptions import MigrationApplyError, WorkspaceNotFoundError
from supacontent.core.migrations.migration_models import MigrationSchema
from supacontent.core.migrations.migration_registry import MigrationRegistry
from supacontent.services.database.connection_manager import ConnectionManager
from supacontent.services.database.migration_runner import MigrationRunner
from supacontent.services.workspaces.workspace_repository import WorkspaceRepository

logger = logging.getLogger("supacontent.migrations.router")

router = APIRouter(prefix="/migrations", tags=["migrations"])


class PendingVersionsResponse(BaseModel):
    """Versions a workspace has not applied yet"""
    versions: List[str]
    failed: List[str] = []


class RunMigrationsResponse(BaseModel):
    result: str = "success"
    applied: List[str] = []


def get_registry(request: Request) -> MigrationRegistry:
    return request.app.state.registry


async def get_workspace_runner(
    request: Request,
    workspace_id: int = Query(..., alias="workspaceId"),
    registry: MigrationRegistry = Depends(get_registry),
) -> AsyncIterator[MigrationRunner]:
    """Connect to the workspace database for the duration of one request"""
    repository = WorkspaceRepository(request.app.state.database)
    try:
        database_url = await repository.get_database_url(workspace_id)
    except WorkspaceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    connection = ConnectionManager(database_url)
    database = await connection.connect()
    try:
        yield MigrationRunner(database, registry.load_manifest())
    finally:
        await connection.disconnect()


@router.get("/{schema}/pending", response_model=PendingVersionsResponse)
async def pending_migrations(schema: MigrationSchema, runner: MigrationRunner = Depends(get_workspace_runner)):
    """List manifest versions of a schema the workspace has not applied"""
    try:
        return await runner.pending_versions(schema)
    except Exception as e:
        logger.error(f"Failed to reconcile migrations for {schema.value}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=RunMigrationsResponse)
async def run_all_migrations(runner: MigrationRunner = Depends(get_workspace_runner)):
    """
    Apply every outstanding migration of the workspace, in version order.
    """
    try:
        applied = await runner.run_migrations()
    except MigrationApplyError as e:
        raise HTTPException(status_code=500, detail={"error": str(e), **(e.payload or {})})
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"result": "success", "applied": [m.version for m in applied]}
