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
from census_reconciler.core.models import (
    DestinationDefinition,
    ResourceKind,
    ResourceState,
)
from census_reconciler.core.reconcilers.base import BaseReconciler, pick


class DestinationReconciler(BaseReconciler[DestinationDefinition]):
    kind = ResourceKind.DESTINATION

    def __init__(
        self,
        client: CensusClient,
        org_credential: str,
        validator: CredentialValidator,
    ):
        super().__init__(client, org_credential)
        self.validator = validator

    def workspace_id_of(self, definition: DestinationDefinition) -> int | None:
        return definition.workspace_id

    async def _validated_credentials(
        self, definition: DestinationDefinition, token: str
    ) -> dict[str, Any]:
        return await self.validator.validate(
            ConnectorKind.DESTINATION,
            definition.type,
            dict(definition.credentials),
            token,
        )

    async def _create(
        self, definition: DestinationDefinition, token: str
    ) -> dict[str, Any]:
        credentials = await self._validated_credentials(definition, token)
        body = {
            "type": definition.type,
            "service_connection": {
                "label": definition.name,
                "type": definition.type,
                "credentials": credentials,
            },
        }
        return await self.client.create_destination(body, token)

    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        return await self.client.get_destination(resource_id, token)

    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        await self.client.update_destination(resource_id, body, token)

    async def _delete(self, resource_id: int, token: str) -> None:
        await self.client.delete_destination(resource_id, token)

    async def build_update_body(
        self, definition: DestinationDefinition, changed: set[str], token: str
    ) -> dict[str, Any]:
        if not changed & {"name", "credentials"}:
            return {}
        # Census rejects a service_connection without credentials, and the
        # connector type cannot change after creation.
        if "credentials" in changed:
            credentials = await self._validated_credentials(definition, token)
        else:
            credentials = dict(definition.credentials)
        return {
            "service_connection": {
                "name": definition.name,
                "credentials": credentials,
            }
        }

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
        definition: DestinationDefinition,
        created: dict[str, Any],
        token: str,
    ) -> ResourceState:
        if definition.auto_refresh_objects:
            await self.client.refresh_destination_objects(
                self.require_resource_id(state), token
            )
        return state

    async def after_update(
        self,
        state: ResourceState,
        definition: DestinationDefinition,
        changed: set[str],
        token: str,
    ) -> None:
        if definition.auto_refresh_objects and "credentials" in changed:
            logger.info(
                f"Credentials of destination {state.identity} changed, refreshing objects"
            )
            await self.client.refresh_destination_objects(
                self.require_resource_id(state), token
            )

    async def list_all(
        self, workspace_id: int, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        token = await self.resolve_token(workspace_id)
        return await self.client.list_destinations(token, options)

    async def get_objects(self, state: ResourceState) -> list[dict[str, Any]]:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.get_destination_objects(resource_id, token)

    async def refresh_objects(
        self, state: ResourceState, object_types: list[str] | None = None
    ) -> None:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        await self.client.refresh_destination_objects(
            resource_id, token, object_types
        )

    async def refresh_objects_status(self, state: ResourceState) -> RefreshStatus:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.get_destination_refresh_status(
            resource_id, token
        )

    async def create_connect_link(self, state: ResourceState) -> ConnectLink:
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.create_destination_connect_link(
            resource_id, token
        )
