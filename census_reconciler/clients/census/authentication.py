from loguru import logger
from pydantic import BaseModel, Field

from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.clients.census.utils import handle_census_status_code
from census_reconciler.exceptions.clients import AuthError, NotFoundError


class WorkspaceKeyResponse(BaseModel):
    api_key: str = Field(default="")


class TokenBroker:
    """Exchanges the organization credential for a workspace-scoped token.

    Every call to `resolve` performs one fresh lookup against
    `GET /workspaces/{id}/api_key`; workspace tokens can be rotated out of
    band, so nothing is kept between calls.
    """

    def __init__(self, transport: CensusTransport):
        self.transport = transport

    async def resolve(self, org_credential: str, workspace_id: int) -> str:
        if not org_credential:
            raise AuthError(
                "An organization credential (personal access token) is required "
                f"to resolve the token of workspace {workspace_id}"
            )

        logger.info(f"Resolving workspace token for workspace: {workspace_id}")
        path = f"/workspaces/{workspace_id}/api_key"
        status_code, body = await self.transport.request(
            "GET", path, auth_token=org_credential
        )
        try:
            handle_census_status_code(status_code, body, "GET", path)
        except NotFoundError as e:
            e.add_note(f"Workspace {workspace_id} does not exist")
            raise
        except AuthError as e:
            raise AuthError(
                f"Organization credential rejected while resolving workspace {workspace_id}",
                status_code=e.status_code,
            ) from e

        key = WorkspaceKeyResponse.parse_obj(body if isinstance(body, dict) else {})
        if not key.api_key:
            raise AuthError(f"Workspace API key is empty for workspace {workspace_id}")
        return key.api_key
