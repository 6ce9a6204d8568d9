from typing import Any

from census_reconciler.clients.census.client import CensusClient
from census_reconciler.core.credentials.catalog import SchemaCatalog
from census_reconciler.core.credentials.validator import CredentialValidator
from census_reconciler.core.models import ResourceKind
from census_reconciler.core.reconcilers.base import BaseReconciler
from census_reconciler.core.reconcilers.dataset import DatasetReconciler
from census_reconciler.core.reconcilers.destination import DestinationReconciler
from census_reconciler.core.reconcilers.source import SourceReconciler
from census_reconciler.core.reconcilers.sync import SyncReconciler
from census_reconciler.core.reconcilers.workspace import WorkspaceReconciler


class ReconcilerRegistry:
    def __init__(self, client: CensusClient, org_credential: str):
        validator = CredentialValidator(SchemaCatalog(client))
        self.workspace = WorkspaceReconciler(client, org_credential)
        self.source = SourceReconciler(client, org_credential, validator)
        self.destination = DestinationReconciler(client, org_credential, validator)
        self.dataset = DatasetReconciler(client, org_credential)
        self.sync = SyncReconciler(client, org_credential)

    def for_kind(self, kind: ResourceKind | str) -> BaseReconciler[Any]:
        return getattr(self, ResourceKind(kind).value)
