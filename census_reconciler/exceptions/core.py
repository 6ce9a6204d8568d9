from typing import Any

from census_reconciler.exceptions.base import BaseCensusError


class ConfigError(BaseCensusError):
    """Invalid declarative input, detected locally."""

    def __init__(
        self,
        message: str,
        index: int | None = None,
        field: str | None = None,
    ) -> None:
        self.index = index
        self.field = field
        super().__init__(message)


class ReadError(BaseCensusError):
    def __init__(self, kind: str, identity: Any, cause: Exception) -> None:
        self.kind = kind
        self.identity = identity
        self.cause = cause
        super().__init__(f"Failed to read {kind} {identity}: {cause}")


class IncompleteCreateError(BaseCensusError):
    """The resource was created but a follow-up step failed.

    Callers must keep `workspace_id` and `resource_id` so the created
    resource is tracked instead of being created again.
    """

    def __init__(
        self,
        kind: str,
        workspace_id: int | None,
        resource_id: int,
        cause: Exception,
    ) -> None:
        self.kind = kind
        self.workspace_id = workspace_id
        self.resource_id = resource_id
        self.cause = cause
        super().__init__(
            f"Created {kind} {resource_id} but failed to finish creating it: {cause}"
        )
