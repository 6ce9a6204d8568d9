from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.core.reconcilers.registry import ReconcilerRegistry
from census_reconciler.log.sensitive import SensitiveLogFilter
from census_reconciler.tests.helpers.census import (
    BASE_URL,
    ORG_TOKEN,
    WORKSPACE_ID,
    WORKSPACE_TOKEN,
)
from census_reconciler.tests.helpers.transport import InterceptTransport


@pytest.fixture(autouse=True)
def reset_compiled_patterns() -> Generator[None, None, None]:
    original_patterns = SensitiveLogFilter.compiled_patterns.copy()
    yield
    SensitiveLogFilter.compiled_patterns = original_patterns


@pytest.fixture
def intercept() -> InterceptTransport:
    return InterceptTransport()


@pytest.fixture
def workspace_token_route(intercept: InterceptTransport) -> InterceptTransport:
    intercept.add_route(
        "GET",
        f"/workspaces/{WORKSPACE_ID}/api_key",
        {"json": {"api_key": WORKSPACE_TOKEN}},
    )
    return intercept


@pytest_asyncio.fixture
async def census_transport(
    intercept: InterceptTransport,
) -> AsyncGenerator[CensusTransport, None]:
    async with CensusTransport(BASE_URL, transport=intercept) as transport:
        yield transport


@pytest.fixture
def client(census_transport: CensusTransport) -> CensusClient:
    return CensusClient(census_transport)


@pytest.fixture
def registry(client: CensusClient) -> ReconcilerRegistry:
    return ReconcilerRegistry(client, ORG_TOKEN)
