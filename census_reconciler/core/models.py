from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ResourceKind(str, Enum):
    WORKSPACE = "workspace"
    SOURCE = "source"
    DESTINATION = "destination"
    DATASET = "dataset"
    SYNC = "sync"


class ResourceState(BaseModel):
    """Reconciled state handed back to the orchestrator.

    A `resource_id` of None means the remote object is absent and the caller
    should drop its local identity.
    """

    workspace_id: int | None = None
    resource_id: int | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_absent(self) -> bool:
        return self.resource_id is None

    @property
    def identity(self) -> str:
        if self.workspace_id is None:
            return str(self.resource_id)
        return f"{self.workspace_id}:{self.resource_id}"

    def absent(self) -> "ResourceState":
        return ResourceState(workspace_id=self.workspace_id)


class WorkspaceDefinition(BaseModel):
    name: str
    notification_emails: list[str] = Field(default_factory=list)
    return_workspace_api_key: bool = False


class SourceDefinition(BaseModel):
    workspace_id: int
    name: str
    type: str
    credentials: dict[str, Any] = Field(default_factory=dict)
    auto_refresh_tables: bool = False


class DestinationDefinition(BaseModel):
    workspace_id: int
    name: str
    type: str
    credentials: dict[str, Any] = Field(default_factory=dict)
    auto_refresh_objects: bool = False


class DatasetDefinition(BaseModel):
    workspace_id: int
    name: str
    query: str
    source_id: int
    description: str | None = None


class SyncDefinition(BaseModel):
    workspace_id: int
    operation: Literal["upsert", "append", "mirror"]
    source_attributes: dict[str, Any]
    destination_attributes: dict[str, Any]
    field_mappings: list[dict[str, Any]] = Field(default_factory=list)
    label: str | None = None
    schedule: dict[str, Any] | None = None
    run_mode: dict[str, Any] | None = None
    alerts: list[dict[str, Any]] = Field(default_factory=list)
    field_behavior: Literal["specific_properties", "sync_all_properties"] | None = None
    field_normalization: str | None = None
    field_order: str | None = None
    paused: bool = False
    advanced_configuration: dict[str, Any] | None = None
    high_water_mark_attribute: str | None = None
