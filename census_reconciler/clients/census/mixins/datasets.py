from typing import Any

from loguru import logger

from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.clients.census.utils import send_request, unwrap_data


class DatasetClientMixin:
    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def create_dataset(
        self, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Creating dataset with name: {body.get('name')}")
        response = await send_request(
            self.transport, "POST", "/datasets", workspace_token, body=body
        )
        return unwrap_data(response) or {}

    async def get_dataset(self, dataset_id: int, workspace_token: str) -> dict[str, Any]:
        logger.info(f"Fetching dataset with id: {dataset_id}")
        response = await send_request(
            self.transport, "GET", f"/datasets/{dataset_id}", workspace_token
        )
        return unwrap_data(response) or {}

    async def update_dataset(
        self, dataset_id: int, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Patching dataset with id: {dataset_id}")
        response = await send_request(
            self.transport,
            "PATCH",
            f"/datasets/{dataset_id}",
            workspace_token,
            body=body,
        )
        return unwrap_data(response) or {}

    async def delete_dataset(self, dataset_id: int, workspace_token: str) -> None:
        logger.info(f"Deleting dataset with id: {dataset_id}")
        await send_request(
            self.transport,
            "DELETE",
            f"/datasets/{dataset_id}",
            workspace_token,
            success_statuses=(200, 204),
        )

    async def list_datasets(self, workspace_token: str) -> list[dict[str, Any]]:
        response = await send_request(
            self.transport,
            "GET",
            "/datasets",
            workspace_token,
            params={"type": "sql"},
        )
        return unwrap_data(response) or []
