from typing import Any

from loguru import logger

from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.clients.census.types import ListOptions, Pagination
from census_reconciler.clients.census.utils import (
    parse_list_response,
    send_request,
    unwrap_data,
)


class WorkspaceClientMixin:
    """Organization-scoped endpoints, authenticated with the organization credential."""

    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def create_workspace(
        self, body: dict[str, Any], org_token: str
    ) -> dict[str, Any]:
        logger.info(f"Creating workspace with name: {body.get('name')}")
        response = await send_request(
            self.transport, "POST", "/workspaces", org_token, body=body
        )
        return unwrap_data(response) or {}

    async def get_workspace(self, workspace_id: int, org_token: str) -> dict[str, Any]:
        logger.info(f"Fetching workspace with id: {workspace_id}")
        response = await send_request(
            self.transport, "GET", f"/workspaces/{workspace_id}", org_token
        )
        return unwrap_data(response) or {}

    async def update_workspace(
        self, workspace_id: int, body: dict[str, Any], org_token: str
    ) -> dict[str, Any]:
        logger.info(f"Patching workspace with id: {workspace_id}")
        response = await send_request(
            self.transport,
            "PATCH",
            f"/workspaces/{workspace_id}",
            org_token,
            body=body,
        )
        return unwrap_data(response) or {}

    async def delete_workspace(self, workspace_id: int, org_token: str) -> None:
        logger.info(f"Deleting workspace with id: {workspace_id}")
        await send_request(
            self.transport,
            "DELETE",
            f"/workspaces/{workspace_id}",
            org_token,
            success_statuses=(200, 204),
        )

    async def list_workspaces(
        self, org_token: str, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        logger.info("Listing workspaces")
        response = await send_request(
            self.transport,
            "GET",
            "/workspaces",
            org_token,
            params=(options or ListOptions()).to_params(),
        )
        return parse_list_response(response)
