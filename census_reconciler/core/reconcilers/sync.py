from typing import Any

from census_reconciler.clients.census.types import ListOptions, Pagination
from census_reconciler.core.mappings.compiler import (
    compile_field_mappings,
    expand_alerts,
    expand_destination_attributes,
    expand_field_mappings,
    expand_run_mode,
    expand_schedule,
    expand_source_attributes,
    flatten_alerts,
    flatten_destination_attributes,
    flatten_field_mappings,
    flatten_run_mode,
    flatten_schedule,
    flatten_source_attributes,
)
from census_reconciler.core.models import ResourceKind, ResourceState, SyncDefinition
from census_reconciler.core.reconcilers.base import BaseReconciler, pick

# declarative members sent under the same name when set
SYNC_PASSTHROUGH_FIELDS = (
    "label",
    "field_behavior",
    "field_normalization",
    "field_order",
    "advanced_configuration",
    "high_water_mark_attribute",
)


class SyncReconciler(BaseReconciler[SyncDefinition]):
    kind = ResourceKind.SYNC

    def workspace_id_of(self, definition: SyncDefinition) -> int | None:
        return definition.workspace_id

    def check(self, definition: SyncDefinition) -> None:
        compile_field_mappings(definition.field_mappings)

    def build_create_body(self, definition: SyncDefinition) -> dict[str, Any]:
        body: dict[str, Any] = {
            "operation": definition.operation,
            "source_attributes": expand_source_attributes(
                definition.source_attributes
            ),
            "destination_attributes": expand_destination_attributes(
                definition.destination_attributes
            ),
            "mappings": expand_field_mappings(definition.field_mappings),
        }
        for field in SYNC_PASSTHROUGH_FIELDS:
            value = getattr(definition, field)
            if value is not None:
                body[field] = value
        if definition.alerts:
            body["alert_attributes"] = expand_alerts(definition.alerts)
        body.update(expand_schedule(definition.schedule))
        mode = expand_run_mode(definition.run_mode)
        if mode is not None:
            body["mode"] = mode
        if definition.paused:
            body["paused"] = True
        return body

    async def _create(self, definition: SyncDefinition, token: str) -> dict[str, Any]:
        sync_id = await self.client.create_sync(
            self.build_create_body(definition), token
        )
        return {"id": sync_id}

    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        return await self.client.get_sync(resource_id, token)

    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        await self.client.update_sync(resource_id, body, token)

    async def _delete(self, resource_id: int, token: str) -> None:
        await self.client.delete_sync(resource_id, token)

    async def build_update_body(
        self, definition: SyncDefinition, changed: set[str], token: str
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if "operation" in changed:
            body["operation"] = definition.operation
        if "source_attributes" in changed:
            body["source_attributes"] = expand_source_attributes(
                definition.source_attributes
            )
        if "destination_attributes" in changed:
            body["destination_attributes"] = expand_destination_attributes(
                definition.destination_attributes
            )
        if "field_mappings" in changed:
            body["mappings"] = expand_field_mappings(definition.field_mappings)
        for field in SYNC_PASSTHROUGH_FIELDS:
            if field in changed:
                body[field] = getattr(definition, field)
        if "alerts" in changed:
            body["alert_attributes"] = expand_alerts(definition.alerts)
        if "schedule" in changed:
            body.update(expand_schedule(definition.schedule))
        if "run_mode" in changed:
            body["mode"] = expand_run_mode(definition.run_mode)
        if "paused" in changed:
            body["paused"] = definition.paused
        return body

    def to_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        attributes = pick(
            raw,
            "label",
            "status",
            "operation",
            "field_behavior",
            "field_normalization",
            "field_order",
            "advanced_configuration",
            "high_water_mark_attribute",
            "created_at",
            "updated_at",
            "last_run_at",
            "next_run_at",
            "last_run_id",
        )
        attributes["paused"] = bool(raw.get("paused", False))
        attributes["source_attributes"] = flatten_source_attributes(
            raw.get("source_attributes")
        )
        attributes["destination_attributes"] = flatten_destination_attributes(
            raw.get("destination_attributes")
        )
        attributes["field_mappings"] = [
            mapping.to_declarative() for mapping in flatten_field_mappings(raw)
        ]
        attributes["alerts"] = flatten_alerts(raw.get("alert_attributes"))
        attributes["schedule"] = flatten_schedule(raw)
        attributes["run_mode"] = flatten_run_mode(raw.get("mode"))
        return attributes

    async def list_all(
        self, workspace_id: int, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        token = await self.resolve_token(workspace_id)
        return await self.client.list_syncs(token, options)

    async def trigger(self, state: ResourceState, force_full_sync: bool = False) -> int:
        """Start a run and return its sync run id."""
        resource_id = self.require_resource_id(state)
        token = await self.resolve_token(state.workspace_id)
        return await self.client.trigger_sync(resource_id, token, force_full_sync)

    async def get_sync_run(self, workspace_id: int, sync_run_id: int) -> dict[str, Any]:
        token = await self.resolve_token(workspace_id)
        return await self.client.get_sync_run(sync_run_id, token)

    async def cancel_sync_run(self, workspace_id: int, sync_run_id: int) -> None:
        token = await self.resolve_token(workspace_id)
        await self.client.cancel_sync_run(sync_run_id, token)
