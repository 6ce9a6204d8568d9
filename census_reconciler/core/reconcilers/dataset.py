from typing import Any

from census_reconciler.core.models import DatasetDefinition, ResourceKind
from census_reconciler.core.reconcilers.base import BaseReconciler, pick

DATASET_TYPE = "sql"
DATASET_UPDATABLE_FIELDS = ("name", "description", "query")


class DatasetReconciler(BaseReconciler[DatasetDefinition]):
    """SQL datasets.

    Dataset payloads never include the owning workspace, so the workspace id
    always comes from the caller's state.
    """

    kind = ResourceKind.DATASET

    def workspace_id_of(self, definition: DatasetDefinition) -> int | None:
        return definition.workspace_id

    async def _create(self, definition: DatasetDefinition, token: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": definition.name,
            "type": DATASET_TYPE,
            "query": definition.query,
            "source_id": definition.source_id,
        }
        if definition.description is not None:
            body["description"] = definition.description
        return await self.client.create_dataset(body, token)

    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        return await self.client.get_dataset(resource_id, token)

    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        await self.client.update_dataset(resource_id, body, token)

    async def _delete(self, resource_id: int, token: str) -> None:
        await self.client.delete_dataset(resource_id, token)

    async def build_update_body(
        self, definition: DatasetDefinition, changed: set[str], token: str
    ) -> dict[str, Any]:
        return {
            field: getattr(definition, field)
            for field in DATASET_UPDATABLE_FIELDS
            if field in changed
        }

    def to_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        attributes = pick(
            raw,
            "name",
            "type",
            "description",
            "query",
            "source_id",
            "resource_identifier",
            "cached_record_count",
            "created_at",
            "updated_at",
        )
        attributes["columns"] = [
            {"name": column.get("name"), "data_type": column.get("data_type")}
            for column in raw.get("columns") or []
        ]
        return attributes

    async def list_all(self, workspace_id: int) -> list[dict[str, Any]]:
        token = await self.resolve_token(workspace_id)
        return await self.client.list_datasets(token)
