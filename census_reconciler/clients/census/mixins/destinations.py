from typing import Any

from loguru import logger

from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.clients.census.types import (
    ConnectLink,
    ListOptions,
    Pagination,
    RefreshStatus,
)
from census_reconciler.clients.census.utils import (
    parse_list_response,
    send_request,
    unwrap_data,
)


class DestinationClientMixin:
    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def create_destination(
        self, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Creating destination of type: {body.get('type')}")
        response = await send_request(
            self.transport, "POST", "/destinations", workspace_token, body=body
        )
        return unwrap_data(response) or {}

    async def get_destination(
        self, destination_id: int, workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Fetching destination with id: {destination_id}")
        response = await send_request(
            self.transport, "GET", f"/destinations/{destination_id}", workspace_token
        )
        return unwrap_data(response) or {}

    async def update_destination(
        self, destination_id: int, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Patching destination with id: {destination_id}")
        response = await send_request(
            self.transport,
            "PATCH",
            f"/destinations/{destination_id}",
            workspace_token,
            body=body,
        )
        return unwrap_data(response) or {}

    async def delete_destination(
        self, destination_id: int, workspace_token: str
    ) -> None:
        logger.info(f"Deleting destination with id: {destination_id}")
        await send_request(
            self.transport,
            "DELETE",
            f"/destinations/{destination_id}",
            workspace_token,
            success_statuses=(200, 204),
        )

    async def list_destinations(
        self, workspace_token: str, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        response = await send_request(
            self.transport,
            "GET",
            "/destinations",
            workspace_token,
            params=(options or ListOptions()).to_params(),
        )
        return parse_list_response(response)

    async def get_destination_objects(
        self, destination_id: int, workspace_token: str
    ) -> list[dict[str, Any]]:
        logger.info(f"Fetching objects of destination: {destination_id}")
        response = await send_request(
            self.transport,
            "GET",
            f"/destinations/{destination_id}/objects",
            workspace_token,
        )
        return unwrap_data(response) or []

    async def refresh_destination_objects(
        self,
        destination_id: int,
        workspace_token: str,
        object_types: list[str] | None = None,
    ) -> None:
        logger.info(f"Starting object refresh of destination: {destination_id}")
        await send_request(
            self.transport,
            "POST",
            f"/destinations/{destination_id}/refresh_objects",
            workspace_token,
            body={"object_types": object_types} if object_types else None,
        )

    async def get_destination_refresh_status(
        self, destination_id: int, workspace_token: str
    ) -> RefreshStatus:
        response = await send_request(
            self.transport,
            "GET",
            f"/destinations/{destination_id}/refresh_objects_status",
            workspace_token,
        )
        data = unwrap_data(response) or {}
        return {
            "status": data.get("status", ""),
            "in_progress": bool(data.get("in_progress", False)),
        }

    async def create_destination_connect_link(
        self, destination_id: int, workspace_token: str
    ) -> ConnectLink:
        logger.info(f"Creating connect link for destination: {destination_id}")
        response = await send_request(
            self.transport,
            "POST",
            f"/destinations/{destination_id}/connect_links",
            workspace_token,
        )
        data = unwrap_data(response) or {}
        return {"url": data.get("url", ""), "expires_at": data.get("expires_at", "")}

    async def get_connectors(self, workspace_token: str) -> list[dict[str, Any]]:
        logger.info("Fetching destination connectors")
        response = await send_request(
            self.transport, "GET", "/connectors", workspace_token
        )
        return unwrap_data(response) or []
