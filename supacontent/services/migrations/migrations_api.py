"""
Migrations API

Client for the remote migrations endpoints: reconciles the bundled manifest
with what a workspace has applied, and triggers remote execution.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from supacontent.core.migrations.exceptions import MigrationApplyError, ReconciliationUnavailableError
from supacontent.core.migrations.migration_models import (
    MigrationSchema,
    MigrationStatus,
    MigrationStatusRecord,
)
from supacontent.core.migrations.migration_registry import MigrationRegistry
from supacontent.modules.settings import Settings

logger = logging.getLogger("supacontent.migrations.api")


class MigrationsApi:
    """
    Status and apply client for one project.

    The remote is the source of truth for applied state: a migration is
    pending only because the remote says so, never because of local files.
    """

    def __init__(self, settings: Settings, registry: MigrationRegistry = None, client: httpx.AsyncClient = None):
        """
        Args:
            settings: Project connection settings.
            registry: Bundled manifest. Defaults to `settings.migrations_dir`.
            client: Optional shared HTTP client; one is opened per call otherwise.
        """
        self.settings = settings
        self.registry = registry or MigrationRegistry(settings.migrations_dir)
        self._client = client

    async def _send(self, method: str, path: str, params: Dict[str, Any]) -> httpx.Response:
        url = f"{self.settings.functions_url}/{path}"
        headers = self.settings.auth_headers()
        if self._client is not None:
            return await self._client.request(method, url, params=params, headers=headers)
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            return await client.request(method, url, params=params, headers=headers)

    async def fetch_pending_versions(self, workspace_id: int, schema: MigrationSchema) -> Dict[str, List[str]]:
        """
        Ask the remote which versions it has not applied yet.

        Returns:
            {"versions": [...], "failed": [...]}

        Raises:
            ReconciliationUnavailableError: on transport failure, non-2xx
                status or a body without a `versions` list (or with a
                non-list `failed`).
        """
        schema = MigrationSchema(schema)
        try:
            response = await self._send("GET", f"migrations/{schema.value}/pending", {"workspaceId": workspace_id})
        except httpx.HTTPError as e:
            logger.error(f"Reconciliation request failed for workspace {workspace_id}: {e}")
            raise ReconciliationUnavailableError(f"Reconciliation request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Reconciliation returned {response.status_code} for workspace {workspace_id}")
            raise ReconciliationUnavailableError(
                f"Reconciliation endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ReconciliationUnavailableError("Reconciliation response is not JSON",
                                                 status_code=response.status_code) from e

        versions = body.get("versions") if isinstance(body, dict) else None
        if not isinstance(versions, list):
            raise ReconciliationUnavailableError("Reconciliation response has no versions list",
                                                 status_code=response.status_code)

        failed = body.get("failed") or []
        if not isinstance(failed, list):
            raise ReconciliationUnavailableError("Reconciliation response has a malformed failed list",
                                                 status_code=response.status_code)

        return {"versions": [str(v) for v in versions], "failed": [str(v) for v in failed]}

    async def list_migrations(self, workspace_id: int,
                              schema: MigrationSchema = MigrationSchema.CONTENT) -> List[MigrationStatusRecord]:
        """
        Applied/pending view of the bundled migrations of one schema.

        Read-only: neither the manifest nor any local state is changed.
        """
        schema = MigrationSchema(schema)
        remote = await self.fetch_pending_versions(workspace_id, schema)
        pending = set(remote["versions"])
        failed = set(remote["failed"])

        records = []
        for migration in self.registry.for_schema(schema):
            if migration.version in failed:
                status = MigrationStatus.FAILED
            elif migration.version in pending:
                status = MigrationStatus.PENDING
            else:
                status = MigrationStatus.APPLIED
            records.append(MigrationStatusRecord.from_bundled(migration, status))

        logger.debug(f"Workspace {workspace_id} ({schema.value}): {len(pending)} pending of {len(records)}")
        return records

    async def run_all_migrations(self, workspace_id: int) -> Dict[str, str]:
        """
        Run every outstanding migration of the workspace remotely, in one call.

        No retry: a failure is raised to the caller as-is.

        Raises:
            MigrationApplyError: on transport failure, non-2xx status or an
                unexpected body.
        """
        try:
            response = await self._send("POST", "migrations", {"workspaceId": workspace_id})
        except httpx.HTTPError as e:
            logger.error(f"Apply request failed for workspace {workspace_id}: {e}")
            raise MigrationApplyError(f"Apply request failed: {e}") from e

        payload: Optional[Any]
        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        if not response.is_success:
            logger.error(f"Apply returned {response.status_code} for workspace {workspace_id}: {payload}")
            raise MigrationApplyError(
                f"Migrations endpoint returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        if not isinstance(payload, dict) or payload.get("result") != "success":
            raise MigrationApplyError("Unexpected response from migrations endpoint",
                                      status_code=response.status_code, payload=payload)

        logger.info(f"Migrations applied for workspace {workspace_id}")
        return {"result": "success"}
