from typing import Any, TYPE_CHECKING

import httpx
from loguru import logger

from census_reconciler.clients.census.types import Pagination
from census_reconciler.exceptions.clients import APIError, AuthError, NotFoundError

if TYPE_CHECKING:
    from census_reconciler.clients.census.transport import CensusTransport

CENSUS_HTTP_MAX_CONNECTIONS_LIMIT = 20
CENSUS_HTTP_MAX_KEEP_ALIVE_CONNECTIONS = 10
CENSUS_HTTP_TIMEOUT = 30.0

CENSUS_HTTPX_LIMITS = httpx.Limits(
    max_connections=CENSUS_HTTP_MAX_CONNECTIONS_LIMIT,
    max_keepalive_connections=CENSUS_HTTP_MAX_KEEP_ALIVE_CONNECTIONS,
)


def build_api_error(
    status_code: int, body: Any, method: str = "", path: str = ""
) -> APIError:
    """Decode the `{status, message?, status_text?}` error envelope.

    A body that is not a JSON object is used verbatim as the message.
    """
    message = ""
    status_text = ""
    if isinstance(body, dict):
        message = str(body.get("message") or "")
        status_text = str(body.get("status_text") or "")
    elif body is not None:
        message = str(body)

    error_class = NotFoundError if status_code == 404 else APIError
    return error_class(
        status_code,
        message=message,
        status_text=status_text,
        method=method,
        path=path,
    )


def handle_census_status_code(
    status_code: int,
    body: Any,
    method: str = "",
    path: str = "",
    should_log: bool = True,
) -> None:
    if status_code < 400:
        return

    error = build_api_error(status_code, body, method, path)
    if should_log and status_code != 404:
        logger.error(
            f"Request failed with status code: {status_code}, Error: {error.message}"
        )
    if status_code in (401, 403):
        raise AuthError(
            f"Credential rejected by Census on {method} {path}: {error.message or status_code}",
            status_code=status_code,
        ) from error
    raise error


def unwrap_data(body: Any) -> Any:
    """Return the `data` member of the `{status, data, pagination?}` envelope."""
    if isinstance(body, dict):
        return body.get("data")
    return None


async def send_request(
    transport: "CensusTransport",
    method: str,
    path: str,
    auth_token: str,
    body: Any = None,
    params: dict[str, str] | None = None,
    success_statuses: tuple[int, ...] | None = None,
) -> Any:
    status_code, response_body = await transport.request(
        method, path, body=body, auth_token=auth_token, params=params
    )
    handle_census_status_code(status_code, response_body, method, path)
    if success_statuses is not None and status_code not in success_statuses:
        raise build_api_error(status_code, response_body, method, path)
    return response_body


def parse_list_response(body: Any) -> tuple[list[dict[str, Any]], Pagination]:
    items = unwrap_data(body) or []
    pagination = body.get("pagination") if isinstance(body, dict) else None
    return list(items), Pagination.parse_obj(pagination or {})
