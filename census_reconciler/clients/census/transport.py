import json
from typing import Any

import httpx
from loguru import logger

from census_reconciler.clients.census.types import ResponseBody
from census_reconciler.clients.census.utils import (
    CENSUS_HTTP_TIMEOUT,
    CENSUS_HTTPX_LIMITS,
)
from census_reconciler.exceptions.clients import AuthError, TransportError
from census_reconciler.version import __version__


class CensusTransport:
    """Issues authenticated requests against the Census Management API.

    Returns the raw status code and decoded body. Status codes are not
    interpreted here, and nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = CENSUS_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=CENSUS_HTTPX_LIMITS,
            transport=transport,
        )

    async def __aenter__(self) -> "CensusTransport":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def user_agent(self) -> str:
        return f"census-reconciler/{__version__}"

    def headers(self, auth_token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {auth_token}",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent(),
        }

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        auth_token: str = "",
        params: dict[str, str] | None = None,
    ) -> tuple[int, ResponseBody]:
        if not auth_token:
            raise AuthError(f"No token provided for {method} {path}")

        content: bytes | None = None
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise TransportError(
                    f"failed to encode request body: {e}", method, path
                ) from e

        logger.debug(f"Sending {method} {path}")
        try:
            response = await self.client.request(
                method,
                f"{self.base_url}{path}",
                content=content,
                params=params or None,
                headers=self.headers(auth_token),
            )
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__, method, path) from e

        return response.status_code, _decode_body(response)


def _decode_body(response: httpx.Response) -> ResponseBody:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
