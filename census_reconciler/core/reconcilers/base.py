from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Generic, Iterable, Iterator, TypeVar

from loguru import logger
from pydantic import BaseModel

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.core.models import ResourceKind, ResourceState
from census_reconciler.exceptions.base import BaseCensusError
from census_reconciler.exceptions.clients import AuthError, NotFoundError
from census_reconciler.exceptions.core import (
    ConfigError,
    IncompleteCreateError,
    ReadError,
)

DefinitionT = TypeVar("DefinitionT", bound=BaseModel)


def parse_import_key(key: str, workspace_scoped: bool = True) -> tuple[int | None, int]:
    """Split an import key into `(workspace_id, resource_id)`.

    Workspace-scoped kinds are imported as `<workspace_id>:<resource_id>`,
    workspaces themselves by their bare id.
    """
    parts = key.strip().split(":")
    expected = "<workspace_id>:<resource_id>" if workspace_scoped else "<workspace_id>"
    if len(parts) != (2 if workspace_scoped else 1):
        raise ConfigError(f"invalid import key {key!r}, expected {expected}")
    try:
        ids = [int(part) for part in parts]
    except ValueError:
        raise ConfigError(
            f"invalid import key {key!r}, ids must be integers ({expected})"
        ) from None
    if any(value <= 0 for value in ids):
        raise ConfigError(f"invalid import key {key!r}, ids must be positive")
    if workspace_scoped:
        return ids[0], ids[1]
    return None, ids[0]


@contextmanager
def error_context(kind: ResourceKind, identity: str) -> Iterator[None]:
    try:
        yield
    except BaseCensusError as e:
        e.add_note(f"while reconciling {kind.value} {identity}")
        raise


class BaseReconciler(ABC, Generic[DefinitionT]):
    """Create/read/update/delete/import for one Census resource kind.

    Workspace-scoped kinds resolve a fresh workspace token through the
    client's token broker at the start of every operation. The token is
    passed down explicitly and never stored.
    """

    kind: ResourceKind
    workspace_scoped = True

    def __init__(self, client: CensusClient, org_credential: str):
        self.client = client
        self.org_credential = org_credential

    async def resolve_token(self, workspace_id: int | None) -> str:
        if workspace_id is None:
            raise ConfigError(
                f"workspace_id is required to address a {self.kind.value}, "
                "re-import it as <workspace_id>:<resource_id>"
            )
        return await self.client.token_broker.resolve(
            self.org_credential, workspace_id
        )

    def require_resource_id(self, state: ResourceState) -> int:
        if state.resource_id is None:
            raise ConfigError(
                f"{self.kind.value} does not exist yet, it has no resource id"
            )
        return state.resource_id

    def check(self, definition: DefinitionT) -> None:
        """Static checks that must fail before any network call."""

    @abstractmethod
    def workspace_id_of(self, definition: DefinitionT) -> int | None:
        pass

    @abstractmethod
    async def _create(self, definition: DefinitionT, token: str) -> dict[str, Any]:
        pass

    @abstractmethod
    async def _get(self, resource_id: int, token: str) -> dict[str, Any]:
        pass

    @abstractmethod
    async def _update(self, resource_id: int, body: dict[str, Any], token: str) -> None:
        pass

    @abstractmethod
    async def _delete(self, resource_id: int, token: str) -> None:
        pass

    @abstractmethod
    async def build_update_body(
        self, definition: DefinitionT, changed: set[str], token: str
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    def to_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        pass

    def resource_id_of(self, created: dict[str, Any]) -> int:
        return int(created["id"])

    async def after_create(
        self,
        state: ResourceState,
        definition: DefinitionT,
        created: dict[str, Any],
        token: str,
    ) -> ResourceState:
        return state

    async def after_update(
        self,
        state: ResourceState,
        definition: DefinitionT,
        changed: set[str],
        token: str,
    ) -> None:
        pass

    async def _read_with_token(self, state: ResourceState, token: str) -> ResourceState:
        raw = await self._get(self.require_resource_id(state), token)
        return ResourceState(
            workspace_id=state.workspace_id,
            resource_id=state.resource_id,
            attributes=self.to_attributes(raw),
        )

    async def create(self, definition: DefinitionT) -> ResourceState:
        self.check(definition)
        workspace_id = self.workspace_id_of(definition)
        identity = f"{workspace_id}:<new>" if self.workspace_scoped else "<new>"
        with logger.contextualize(kind=self.kind.value), error_context(
            self.kind, identity
        ):
            token = await self.resolve_token(workspace_id)
            created = await self._create(definition, token)
            resource_id = self.resource_id_of(created)
            logger.info(f"Created {self.kind.value} with id: {resource_id}")

            state = ResourceState(workspace_id=workspace_id, resource_id=resource_id)
            try:
                state = await self._read_with_token(state, token)
                return await self.after_create(state, definition, created, token)
            except BaseCensusError as e:
                logger.error(
                    f"{self.kind.value} {state.identity} was created but could not "
                    f"be finished: {e}"
                )
                raise IncompleteCreateError(
                    self.kind.value, workspace_id, resource_id, e
                ) from e

    async def read(self, state: ResourceState) -> ResourceState:
        """Refresh `state` from the API.

        A 404 is reported as an absent state instead of an error. Any other
        failure is raised as a `ReadError` carrying the kind and identity.
        """
        if state.is_absent:
            return state
        with logger.contextualize(kind=self.kind.value, identity=state.identity):
            try:
                token = await self.resolve_token(state.workspace_id)
                return await self._read_with_token(state, token)
            except NotFoundError:
                logger.warning(
                    f"{self.kind.value} {state.identity} no longer exists, "
                    "marking it absent"
                )
                return state.absent()
            except BaseCensusError as e:
                raise ReadError(self.kind.value, state.identity, e) from e

    async def update(
        self,
        state: ResourceState,
        definition: DefinitionT,
        changed: Iterable[str],
    ) -> ResourceState:
        """PATCH the keys named in `changed`, then re-read the resource."""
        if state.is_absent:
            raise ConfigError(f"cannot update a {self.kind.value} that does not exist")
        resource_id = self.require_resource_id(state)
        changed = set(changed)
        self.check(definition)
        with logger.contextualize(
            kind=self.kind.value, identity=state.identity
        ), error_context(self.kind, state.identity):
            token = await self.resolve_token(state.workspace_id)
            body = await self.build_update_body(definition, changed, token)
            if body:
                logger.info(
                    f"Updating {self.kind.value} {state.identity} fields: "
                    f"{', '.join(sorted(body))}"
                )
                await self._update(resource_id, body, token)
            else:
                logger.debug(f"Nothing to update on {self.kind.value} {state.identity}")
            await self.after_update(state, definition, changed, token)
            return await self._read_with_token(state, token)

    async def delete(self, state: ResourceState) -> None:
        if state.is_absent:
            return
        with logger.contextualize(
            kind=self.kind.value, identity=state.identity
        ), error_context(self.kind, state.identity):
            token = await self.resolve_token(state.workspace_id)
            await self._delete(self.require_resource_id(state), token)
            logger.info(f"Deleted {self.kind.value} {state.identity}")

    async def import_resource(self, key: str) -> ResourceState:
        workspace_id, resource_id = parse_import_key(key, self.workspace_scoped)
        state = await self.read(
            ResourceState(workspace_id=workspace_id, resource_id=resource_id)
        )
        if state.is_absent:
            raise ConfigError(
                f"cannot import {self.kind.value} {key}: it does not exist"
            )
        return state


def pick(raw: dict[str, Any], *keys: str) -> dict[str, Any]:
    return {key: raw.get(key) for key in keys}


def require_org_credential(org_credential: str) -> str:
    if not org_credential:
        raise AuthError(
            "An organization credential (personal access token) is required "
            "to manage workspaces"
        )
    return org_credential
