from enum import Enum
from typing import Any

from loguru import logger

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.core.credentials.models import ConnectorSchema
from census_reconciler.exceptions.clients import NotFoundError


class ConnectorKind(Enum):
    SOURCE = "source"
    DESTINATION = "destination"


class SchemaCatalog:
    """Fetches connector field schemas. Nothing is cached between calls."""

    def __init__(self, client: CensusClient):
        self.client = client

    async def _fetch_raw(
        self, kind: ConnectorKind, workspace_token: str
    ) -> list[dict[str, Any]]:
        if kind is ConnectorKind.SOURCE:
            return await self.client.get_source_types(workspace_token)
        return await self.client.get_connectors(workspace_token)

    async def fetch(
        self, kind: ConnectorKind, workspace_token: str
    ) -> dict[str, ConnectorSchema] | None:
        """Return the schemas of `kind` keyed by service name.

        Returns None when the catalog endpoint itself answers 404.
        """
        try:
            raw_schemas = await self._fetch_raw(kind, workspace_token)
        except NotFoundError:
            logger.warning(f"Schema catalog endpoint for {kind.value}s not found")
            return None

        schemas: dict[str, ConnectorSchema] = {}
        for raw in raw_schemas:
            if not isinstance(raw, dict):
                continue
            schema = ConnectorSchema.from_raw(raw)
            # first entry wins on duplicate service names
            schemas.setdefault(schema.service_name, schema)
        return schemas

    async def get(
        self, kind: ConnectorKind, connector_type: str, workspace_token: str
    ) -> ConnectorSchema | None:
        schemas = await self.fetch(kind, workspace_token)
        if schemas is None:
            return None
        return schemas.get(connector_type)
