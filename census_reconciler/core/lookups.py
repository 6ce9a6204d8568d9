from loguru import logger

from census_reconciler.core.models import ResourceKind, ResourceState
from census_reconciler.core.reconcilers.registry import ReconcilerRegistry
from census_reconciler.exceptions.clients import NotFoundError


class Lookups:
    """Read-only lookups of existing resources by their composite identity.

    Unlike a reconciler read, a lookup of a missing resource is an error.
    """

    def __init__(self, registry: ReconcilerRegistry):
        self.registry = registry

    async def get(
        self,
        kind: ResourceKind | str,
        resource_id: int,
        workspace_id: int | None = None,
    ) -> ResourceState:
        kind = ResourceKind(kind)
        reconciler = self.registry.for_kind(kind)
        if not reconciler.workspace_scoped:
            workspace_id = None
        state = await reconciler.read(
            ResourceState(workspace_id=workspace_id, resource_id=resource_id)
        )
        if state.is_absent:
            identity = (
                f"{workspace_id}:{resource_id}" if workspace_id else str(resource_id)
            )
            logger.error(f"{kind.value} {identity} was not found")
            raise NotFoundError(404, message=f"{kind.value} {identity} not found")
        return state

    async def workspace(self, workspace_id: int) -> ResourceState:
        return await self.get(ResourceKind.WORKSPACE, workspace_id)

    async def source(self, workspace_id: int, source_id: int) -> ResourceState:
        return await self.get(ResourceKind.SOURCE, source_id, workspace_id)

    async def destination(
        self, workspace_id: int, destination_id: int
    ) -> ResourceState:
        return await self.get(ResourceKind.DESTINATION, destination_id, workspace_id)

    async def dataset(self, workspace_id: int, dataset_id: int) -> ResourceState:
        return await self.get(ResourceKind.DATASET, dataset_id, workspace_id)

    async def sync(self, workspace_id: int, sync_id: int) -> ResourceState:
        return await self.get(ResourceKind.SYNC, sync_id, workspace_id)
