from typing import Any

from loguru import logger

from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.clients.census.types import ListOptions, Pagination
from census_reconciler.clients.census.utils import (
    parse_list_response,
    send_request,
    unwrap_data,
)


class SyncClientMixin:
    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def create_sync(self, body: dict[str, Any], workspace_token: str) -> int:
        """Create a sync and return the id the platform assigned to it."""
        logger.info(
            f"Creating sync {body.get('label') or ''} with operation: {body.get('operation')}"
        )
        response = await send_request(
            self.transport, "POST", "/syncs", workspace_token, body=body
        )
        data = unwrap_data(response) or {}
        return int(data["sync_id"])

    async def get_sync(self, sync_id: int, workspace_token: str) -> dict[str, Any]:
        logger.info(f"Fetching sync with id: {sync_id}")
        response = await send_request(
            self.transport, "GET", f"/syncs/{sync_id}", workspace_token
        )
        return unwrap_data(response) or {}

    async def update_sync(
        self, sync_id: int, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Patching sync with id: {sync_id}")
        response = await send_request(
            self.transport,
            "PATCH",
            f"/syncs/{sync_id}",
            workspace_token,
            body=body,
        )
        return unwrap_data(response) or {}

    async def delete_sync(self, sync_id: int, workspace_token: str) -> None:
        logger.info(f"Deleting sync with id: {sync_id}")
        await send_request(
            self.transport,
            "DELETE",
            f"/syncs/{sync_id}",
            workspace_token,
            success_statuses=(200, 204),
        )

    async def list_syncs(
        self, workspace_token: str, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        response = await send_request(
            self.transport,
            "GET",
            "/syncs",
            workspace_token,
            params=(options or ListOptions()).to_params(),
        )
        return parse_list_response(response)

    async def trigger_sync(
        self, sync_id: int, workspace_token: str, force_full_sync: bool = False
    ) -> int:
        logger.info(f"Triggering sync: {sync_id} (full sync: {force_full_sync})")
        response = await send_request(
            self.transport,
            "POST",
            f"/syncs/{sync_id}/trigger",
            workspace_token,
            body={"force_full_sync": True} if force_full_sync else None,
        )
        data = unwrap_data(response) or {}
        return int(data["sync_run_id"])

    async def get_sync_run(
        self, sync_run_id: int, workspace_token: str
    ) -> dict[str, Any]:
        response = await send_request(
            self.transport, "GET", f"/sync_runs/{sync_run_id}", workspace_token
        )
        return unwrap_data(response) or {}

    async def cancel_sync_run(self, sync_run_id: int, workspace_token: str) -> None:
        logger.info(f"Cancelling sync run: {sync_run_id}")
        await send_request(
            self.transport,
            "POST",
            f"/sync_runs/{sync_run_id}/cancel",
            workspace_token,
        )
