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


class SourceClientMixin:
    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def create_source(
        self, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        connection = body.get("connection", {})
        logger.info(
            f"Creating source {connection.get('label')} of type: {connection.get('type')}"
        )
        response = await send_request(
            self.transport, "POST", "/sources", workspace_token, body=body
        )
        return unwrap_data(response) or {}

    async def get_source(self, source_id: int, workspace_token: str) -> dict[str, Any]:
        logger.info(f"Fetching source with id: {source_id}")
        response = await send_request(
            self.transport, "GET", f"/sources/{source_id}", workspace_token
        )
        return unwrap_data(response) or {}

    async def update_source(
        self, source_id: int, body: dict[str, Any], workspace_token: str
    ) -> dict[str, Any]:
        logger.info(f"Patching source with id: {source_id}")
        response = await send_request(
            self.transport,
            "PATCH",
            f"/sources/{source_id}",
            workspace_token,
            body=body,
        )
        return unwrap_data(response) or {}

    async def delete_source(self, source_id: int, workspace_token: str) -> None:
        logger.info(f"Deleting source with id: {source_id}")
        await send_request(
            self.transport,
            "DELETE",
            f"/sources/{source_id}",
            workspace_token,
            success_statuses=(200, 204),
        )

    async def list_sources(
        self, workspace_token: str, options: ListOptions | None = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        response = await send_request(
            self.transport,
            "GET",
            "/sources",
            workspace_token,
            params=(options or ListOptions()).to_params(),
        )
        return parse_list_response(response)

    async def get_source_objects(
        self, source_id: int, workspace_token: str
    ) -> list[dict[str, Any]]:
        logger.info(f"Fetching objects of source: {source_id}")
        response = await send_request(
            self.transport, "GET", f"/sources/{source_id}/objects", workspace_token
        )
        return unwrap_data(response) or []

    async def refresh_source_tables(self, source_id: int, workspace_token: str) -> None:
        logger.info(f"Starting table refresh of source: {source_id}")
        await send_request(
            self.transport,
            "POST",
            f"/sources/{source_id}/refresh_tables",
            workspace_token,
        )

    async def get_source_refresh_status(
        self, source_id: int, workspace_token: str
    ) -> RefreshStatus:
        response = await send_request(
            self.transport,
            "GET",
            f"/sources/{source_id}/refresh_tables_status",
            workspace_token,
        )
        data = unwrap_data(response) or {}
        return {
            "status": data.get("status", ""),
            "in_progress": bool(data.get("in_progress", False)),
        }

    async def create_source_connect_link(
        self, source_id: int, workspace_token: str
    ) -> ConnectLink:
        logger.info(f"Creating connect link for source: {source_id}")
        response = await send_request(
            self.transport,
            "POST",
            f"/sources/{source_id}/connect_links",
            workspace_token,
        )
        data = unwrap_data(response) or {}
        return {"url": data.get("url", ""), "expires_at": data.get("expires_at", "")}

    async def get_source_types(self, workspace_token: str) -> list[dict[str, Any]]:
        logger.info("Fetching source types")
        response = await send_request(
            self.transport, "GET", "/source_types", workspace_token
        )
        return unwrap_data(response) or []
