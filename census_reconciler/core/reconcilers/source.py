from typing import Any

from loguru import logger

from census_reconciler.clients.census.types import (
    ConnectLink,
    ListOptions,
    Pagination,
    RefreshStatus,
)
from census_reconciler.clients.census.client import CensusClient
from census_reconciler.core.credentials.catalog import ConnectorKind
from census_reconciler.core.credentials.validator import CredentialValidator
from census_reconciler.core.models import ResourceKind, ResourceState, SourceDefinition
from census_reconciler.core.reconcilers.base import BaseReconciler, pick

SOURCE_SYNC_ENGINE = "basic"


class SourceReconciler(BaseReconciler[SourceDefinition]):
    kind = ResourceKind.SOURCE

    def __init__(
        self,
        client: CensusClient,
        org_credential: str,
        validator: CredentialValidator,
    ):
        super().__init__(client, org_credential)
        self.validator = validator

    def workspace_id_of(self, definition: SourceDefinition) -> int | None:
        return definition.workspace_id

    async def _validated_credentials(
        self, definition: SourceDefinition, token: str
    ) -> dict[str, Any]:
        return await self.validator.validate(
            ConnectorKind.SOURCE,
            definition.type,
            dict(definition.credentials),
            token,
        )

    async def _create(self, definition: SourceDefinition, token: str) -> dict[str, Any]:
        credentials = await self._validated_credentials(definition, token)
        body = {
            "connection": {
                "label": definition.name,
                "type": definition.type,
                "sync_engine": SOURCE_SYNC_ENGINE,
                "credentials": credentials,
            }
        }
        return await self.client.create_source(body, token)

    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        return await self.client.get_source(resource_id, token)

    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        await self.client.update_source(resource_id, body, token)

    async def _delete(self, resource_id: int, token: str) -> None:
        await self.client.delete_source(resource_id, token)

    async def build_update_body(
        self, definition: SourceDefinition, changed: set[str], token: str
    ) -> dict[str, Any]:
        connection: dict[str, Any] = {}
        if "name" in changed:
            connection["label"] = definition.name
        if "credentials" in changed:
            connection["credentials"] = await self._validated_credentials(
                definition, token
            )
        return {"connection": connection} if connection else {}

    def to_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        return pick(
            raw,
            "name",
            "type",
            "status",
            "test_status",
            "created_at",
            "updated_at",
            "last_tested",
        )

    async def after_create(
        self,
        state: ResourceState,
        definition: SourceDefinition,
        created: dict[str, Any],
        token: str,
    ) -> ResourceState:
        if definition.auto_refresh_tables:
            await self.client.refresh_source_tables(
                self.require_resource_id(state), token
            )
        return state

    async def after_update(
        self,
        state: ResourceState,
        definition: SourceDefinition,
        changed: set[str],
        token: str,
    ) -> None:
        if definition.auto_refresh_tables and "credentials" in changed:
            logger.info(f"Credentials of source {state.identity} changed, refreshing tables")
            await self.client.refresh_source_tables(
                self.require_resource_id(state), token
            )

    async def list_all(
        self, workspace_id: int, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        token = await self.resolve_token(workspace_id)
        return await self.client.list_sources(token, options)

    async def get_objects(self, state: ResourceState) -> list[dict[str, Any]]:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.get_source_objects(resource_id, token)

    async def refresh_tables(self, state: ResourceState) -> None:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        await self.client.refresh_source_tables(resource_id, token)

    async def refresh_tables_status(self, state: ResourceState) -> RefreshStatus:
        """One status snapshot. Polling is left to the caller."""
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.get_source_refresh_status(resource_id, token)

    async def create_connect_link(self, state: ResourceState) -> ConnectLink:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.create_source_connect_link(resource_id, token)
