from typing import Any

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.clients.census.transport import CensusTransport
from census_reconciler.config.settings import CensusSettings
from census_reconciler.core.lookups import Lookups
from census_reconciler.core.reconcilers.registry import ReconcilerRegistry
from census_reconciler.log.logger_setup import setup_logger


class Census:
    """Entry point wiring settings, logging, the API client and the reconcilers."""

    def __init__(
        self,
        settings: CensusSettings | None = None,
        transport: CensusTransport | None = None,
        **settings_override: Any,
    ):
        self.settings = settings or CensusSettings(**settings_override)
        setup_logger(
            self.settings.log_level, *self.settings.get_sensitive_fields_data()
        )

        self.client = (
            CensusClient(transport)
            if transport is not None
            else CensusClient.from_settings(self.settings)
        )
        self.reconcilers = ReconcilerRegistry(
            self.client, self.settings.personal_access_token
        )
        self.lookups = Lookups(self.reconcilers)

    async def __aenter__(self) -> "Census":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()
