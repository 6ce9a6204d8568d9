from census_reconciler.clients.census.authentication import TokenBroker
from census_reconciler.clients.census.mixins.datasets import DatasetClientMixin
from census_reconciler.clients.census.mixins.destinations import (
    DestinationClientMixin,
)
from census_reconciler.clients.census.mixins.sources import SourceClientMixin
from census_reconciler.clients.census.mixins.syncs import SyncClientMixin
from census_reconciler.clients.census.mixins.workspaces import WorkspaceClientMixin
from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.config.settings import CensusSettings


class CensusClient(
    WorkspaceClientMixin,
    SourceClientMixin,
    DestinationClientMixin,
    DatasetClientMixin,
    SyncClientMixin,
):
    def __init__(self, transport: CensusTransport):
        self.transport = transport
        self.token_broker = TokenBroker(transport)
        WorkspaceClientMixin.__init__(self, transport)
        SourceClientMixin.__init__(self, transport)
        DestinationClientMixin.__init__(self, transport)
        DatasetClientMixin.__init__(self, transport)
        SyncClientMixin.__init__(self, transport)

    @classmethod
    def from_settings(cls, settings: CensusSettings) -> "CensusClient":
        return cls(
            CensusTransport(settings.base_url, timeout=settings.client_timeout)
        )

    async def aclose(self) -> None:
        await self.transport.aclose()
