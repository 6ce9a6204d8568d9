import pytest

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.core.models import DatasetDefinition, ResourceState
from census_reconciler.core.reconcilers.base import parse_import_key
from census_reconciler.core.reconcilers.registry import ReconcilerRegistry
from census_reconciler.exceptions.clients import APIError, AuthError
from census_reconciler.exceptions.core import (
    ConfigError,
    IncompleteCreateError,
    ReadError,
)
from census_reconciler.tests.helpers.census import (
    ORG_TOKEN,
    WORKSPACE_ID,
    WORKSPACE_TOKEN,
    envelope,
    error_response,
)
from census_reconciler.tests.helpers.transport import InterceptTransport

DATASET_ID = 789
DATASET_PATH = f"/datasets/{DATASET_ID}"
DATASET_PAYLOAD = {
    "id": DATASET_ID,
    "name": "users",
    "type": "sql",
    "query": "select * from users",
    "source_id": 3,
    "description": None,
    "columns": [{"name": "id", "data_type": "integer"}],
}


def dataset_state() -> ResourceState:
    return ResourceState(workspace_id=WORKSPACE_ID, resource_id=DATASET_ID)


def dataset_definition(**overrides: object) -> DatasetDefinition:
    values: dict[str, object] = {
        "workspace_id": WORKSPACE_ID,
        "name": "users",
        "query": "select * from users",
        "source_id": 3,
    }
    values.update(overrides)
    return DatasetDefinition.parse_obj(values)


class TestParseImportKey:
    def test_workspace_scoped_key(self) -> None:
        assert parse_import_key("69962:789") == (69962, 789)

    def test_bare_workspace_key(self) -> None:
        assert parse_import_key(" 42 ", workspace_scoped=False) == (None, 42)

    @pytest.mark.parametrize("key", ["789", "", "1:2:3", "a:b", "69962:", "0:5", "5:-1"])
    def test_invalid_scoped_keys(self, key: str) -> None:
        with pytest.raises(ConfigError, match="invalid import key"):
            parse_import_key(key)

    @pytest.mark.parametrize("key", ["1:2", "abc", "0"])
    def test_invalid_workspace_keys(self, key: str) -> None:
        with pytest.raises(ConfigError):
            parse_import_key(key, workspace_scoped=False)


class TestRead:
    @pytest.mark.asyncio
    async def test_import_reads_dataset_with_workspace_from_key(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept = workspace_token_route
        intercept.add_route("GET", DATASET_PATH, envelope(DATASET_PAYLOAD))

        state = await registry.dataset.import_resource(f"{WORKSPACE_ID}:{DATASET_ID}")

        assert state.workspace_id == WORKSPACE_ID
        assert state.resource_id == DATASET_ID
        assert state.attributes["name"] == "users"
        assert state.attributes["columns"] == [{"name": "id", "data_type": "integer"}]
        assert "workspace_id" not in state.attributes
        token_call = intercept.calls_for(f"/workspaces/{WORKSPACE_ID}/api_key")[0]
        assert token_call.request.headers["Authorization"] == f"Bearer {ORG_TOKEN}"
        read_call = intercept.calls_for(DATASET_PATH)[0]
        assert read_call.request.headers["Authorization"] == f"Bearer {WORKSPACE_TOKEN}"

    @pytest.mark.asyncio
    async def test_malformed_import_key_makes_no_call(
        self, intercept: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        with pytest.raises(ConfigError):
            await registry.dataset.import_resource(str(DATASET_ID))

        assert intercept.calls == []

    @pytest.mark.asyncio
    async def test_import_of_missing_resource_fails(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        workspace_token_route.add_route(
            "GET", DATASET_PATH, error_response(404, "Not Found")
        )

        with pytest.raises(ConfigError, match="does not exist"):
            await registry.dataset.import_resource(f"{WORKSPACE_ID}:{DATASET_ID}")

    @pytest.mark.asyncio
    async def test_read_not_found_marks_absent(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        workspace_token_route.add_route(
            "GET", DATASET_PATH, error_response(404, "Not Found")
        )

        state = await registry.dataset.read(dataset_state())

        assert state.is_absent
        assert state.workspace_id == WORKSPACE_ID

    @pytest.mark.asyncio
    async def test_read_of_deleted_workspace_marks_absent(
        self, intercept: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept.add_route(
            "GET", f"/workspaces/{WORKSPACE_ID}/api_key", error_response(404, "Not Found")
        )

        state = await registry.dataset.read(dataset_state())

        assert state.is_absent
        assert intercept.calls_for(DATASET_PATH) == []

    @pytest.mark.asyncio
    async def test_read_server_error_is_read_error(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        workspace_token_route.add_route("GET", DATASET_PATH, error_response(500, "boom"))

        with pytest.raises(ReadError) as exc_info:
            await registry.dataset.read(dataset_state())

        assert exc_info.value.kind == "dataset"
        assert exc_info.value.identity == f"{WORKSPACE_ID}:{DATASET_ID}"
        assert isinstance(exc_info.value.__cause__, APIError)

    @pytest.mark.asyncio
    async def test_read_without_workspace_is_config_error(
        self, intercept: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        with pytest.raises(ReadError) as exc_info:
            await registry.dataset.read(ResourceState(resource_id=DATASET_ID))

        assert isinstance(exc_info.value.__cause__, ConfigError)
        assert intercept.calls == []

    @pytest.mark.asyncio
    async def test_absent_state_is_returned_as_is(
        self, intercept: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        state = await registry.dataset.read(ResourceState(workspace_id=WORKSPACE_ID))

        assert state.is_absent
        assert intercept.calls == []


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_dataset(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept = workspace_token_route
        intercept.add_route("POST", "/datasets", envelope({"id": DATASET_ID}))
        intercept.add_route("GET", DATASET_PATH, envelope(DATASET_PAYLOAD))

        state = await registry.dataset.create(
            dataset_definition(description="all users")
        )

        assert state.identity == f"{WORKSPACE_ID}:{DATASET_ID}"
        assert intercept.calls_for("/datasets", "POST")[0].json() == {
            "name": "users",
            "type": "sql",
            "query": "select * from users",
            "source_id": 3,
            "description": "all users",
        }
        # create and the follow-up read share one token resolution
        assert len(intercept.calls_for("/api_key")) == 1

    @pytest.mark.asyncio
    async def test_failed_read_after_create_keeps_resource_id(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept = workspace_token_route
        intercept.add_route("POST", "/datasets", envelope({"id": DATASET_ID}))
        intercept.add_route("GET", DATASET_PATH, error_response(500, "boom"))

        with pytest.raises(IncompleteCreateError) as exc_info:
            await registry.dataset.create(dataset_definition())

        assert exc_info.value.kind == "dataset"
        assert exc_info.value.workspace_id == WORKSPACE_ID
        assert exc_info.value.resource_id == DATASET_ID
        assert isinstance(exc_info.value.__cause__, APIError)
        assert len(intercept.calls_for("/datasets", "POST")) == 1

    @pytest.mark.asyncio
    async def test_create_with_empty_org_credential_fails_without_calls(
        self, intercept: InterceptTransport, client: CensusClient
    ) -> None:
        registry = ReconcilerRegistry(client, "")

        with pytest.raises(AuthError):
            await registry.dataset.create(dataset_definition())

        assert intercept.calls == []


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_patches_only_changed_fields(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept = workspace_token_route
        intercept.add_route("PATCH", DATASET_PATH, envelope({"id": DATASET_ID}))
        intercept.add_route(
            "GET", DATASET_PATH, envelope({**DATASET_PAYLOAD, "query": "select 2"})
        )

        state = await registry.dataset.update(
            dataset_state(), dataset_definition(query="select 2"), {"query"}
        )

        assert intercept.calls_for(DATASET_PATH, "PATCH")[0].json() == {
            "query": "select 2"
        }
        assert state.attributes["query"] == "select 2"

    @pytest.mark.asyncio
    async def test_update_with_nothing_changed_only_rereads(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        intercept = workspace_token_route
        intercept.add_route("GET", DATASET_PATH, envelope(DATASET_PAYLOAD))

        await registry.dataset.update(dataset_state(), dataset_definition(), set())

        assert intercept.calls_for(DATASET_PATH, "PATCH") == []
        assert len(intercept.calls_for(DATASET_PATH, "GET")) == 1

    @pytest.mark.asyncio
    async def test_update_error_carries_identity(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        workspace_token_route.add_route(
            "PATCH", DATASET_PATH, error_response(422, "query is invalid")
        )

        with pytest.raises(APIError) as exc_info:
            await registry.dataset.update(
                dataset_state(), dataset_definition(query="nope"), {"query"}
            )

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "query is invalid"
        assert f"while reconciling dataset {WORKSPACE_ID}:{DATASET_ID}" in (
            exc_info.value.__notes__
        )


class TestDelete:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [envelope(None), {"status_code": 204, "body": ""}],
    )
    async def test_delete_accepts_200_and_204(
        self,
        workspace_token_route: InterceptTransport,
        registry: ReconcilerRegistry,
        response: dict[str, object],
    ) -> None:
        workspace_token_route.add_route("DELETE", DATASET_PATH, response)

        await registry.dataset.delete(dataset_state())

        assert len(workspace_token_route.calls_for(DATASET_PATH, "DELETE")) == 1

    @pytest.mark.asyncio
    async def test_delete_not_found_propagates(
        self, workspace_token_route: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        workspace_token_route.add_route(
            "DELETE", DATASET_PATH, error_response(404, "Not Found")
        )

        with pytest.raises(APIError) as exc_info:
            await registry.dataset.delete(dataset_state())

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_absent_state_is_a_no_op(
        self, intercept: InterceptTransport, registry: ReconcilerRegistry
    ) -> None:
        await registry.dataset.delete(ResourceState(workspace_id=WORKSPACE_ID))

        assert intercept.calls == []
