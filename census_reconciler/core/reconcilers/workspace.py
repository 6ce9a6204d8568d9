from typing import Any

from census_reconciler.clients.census.types import ListOptions, Pagination
from census_reconciler.core.models import (
    ResourceKind,
    ResourceState,
    WorkspaceDefinition,
)
from census_reconciler.core.reconcilers.base import (
    BaseReconciler,
    pick,
    require_org_credential,
)

WORKSPACE_UPDATABLE_FIELDS = ("name", "notification_emails")


class WorkspaceReconciler(BaseReconciler[WorkspaceDefinition]):
    """Workspaces are organization-scoped and use the organization credential directly."""

    kind = ResourceKind.WORKSPACE
    workspace_scoped = False

    async def resolve_token(self, workspace_id: int | None) -> str:
        return require_org_credential(self.org_credential)

    def workspace_id_of(self, definition: WorkspaceDefinition) -> int | None:
        return None

    async def _create(
        self, definition: WorkspaceDefinition, token: str
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"name": definition.name}
        if definition.notification_emails:
            body["notification_emails"] = definition.notification_emails
        if definition.return_workspace_api_key:
            body["return_workspace_api_key"] = True
        return await self.client.create_workspace(body, token)

    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        return await self.client.get_workspace(resource_id, token)

    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        await self.client.update_workspace(resource_id, body, token)

    async def _delete(self, resource_id: int, token: str) -> None:
        await self.client.delete_workspace(resource_id, token)

    async def build_update_body(
        self, definition: WorkspaceDefinition, changed: set[str], token: str
    ) -> dict[str, Any]:
        return {
            field: getattr(definition, field)
            for field in WORKSPACE_UPDATABLE_FIELDS
            if field in changed
        }

    def to_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        attributes = pick(raw, "name", "organization_id", "created_at")
        attributes["notification_emails"] = raw.get("notification_emails") or []
        return attributes

    async def after_create(
        self,
        state: ResourceState,
        definition: WorkspaceDefinition,
        created: dict[str, Any],
        token: str,
    ) -> ResourceState:
        # the key is only ever returned by the create call
        if created.get("api_key"):
            state.attributes["api_key"] = created["api_key"]
        return state

    async def list_all(
        self, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        return await self.client.list_workspaces(
            require_org_credential(self.org_credential), options
        )
