from typing import Any

from loguru import logger

from census_reconciler.core.credentials.catalog import ConnectorKind, SchemaCatalog
from census_reconciler.core.credentials.models import (
    CompoundCondition,
    ConnectorSchema,
    RequirementBase,
    RequirementRule,
    SimpleCondition,
)
from census_reconciler.exceptions.core import ConfigError
from census_reconciler.log.sensitive import sensitive_log_filter

TRUTHY_STRINGS = ("true", "1")
FALSY_STRINGS = ("false", "0", "")


def _is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in TRUTHY_STRINGS
    return False


def _matches_expected(value: Any, expected: Any) -> bool:
    if not isinstance(expected, bool):
        return False
    if isinstance(value, bool):
        return value == expected
    if isinstance(value, str):
        return value in (TRUTHY_STRINGS if expected else FALSY_STRINGS)
    return False


def evaluate_requirement(rule: RequirementRule, credentials: dict[str, Any]) -> bool:
    """Decide whether a field governed by `rule` is required for `credentials`.

    The visibility condition can only downgrade a required field to optional,
    and it is applied before any presence check on the field itself. A simple
    condition keeps the field required only when the referenced toggle is
    present and truthy. A compound condition is judged on its first pair
    alone, the way the Census UI evaluates it.
    """
    if rule.base is not RequirementBase.REQUIRED:
        return False

    condition = rule.condition
    if condition is None:
        return True

    if isinstance(condition, SimpleCondition):
        if condition.field not in credentials:
            return False
        return _is_truthy(credentials[condition.field])

    if isinstance(condition, CompoundCondition):
        if not condition.pairs:
            return False
        field, expected = condition.pairs[0]
        if field not in credentials:
            return False
        return _matches_expected(credentials[field], expected)

    return True


def apply_schema(schema: ConnectorSchema, credentials: dict[str, Any]) -> dict[str, Any]:
    """Check `credentials` against `schema` in field order, filling optional gaps with ""."""
    for field in schema.fields:
        required = evaluate_requirement(field.required_rule, credentials)
        if field.id in credentials:
            continue
        if required:
            raise ConfigError(
                f"required field '{field.id}' ({field.label}) is missing "
                f"for connector type {schema.service_name}",
                field=field.id,
            )
        credentials[field.id] = ""
    return credentials


class CredentialValidator:
    def __init__(self, catalog: SchemaCatalog):
        self.catalog = catalog

    async def validate(
        self,
        kind: ConnectorKind,
        connector_type: str,
        credentials: dict[str, Any],
        workspace_token: str,
    ) -> dict[str, Any]:
        schemas = await self.catalog.fetch(kind, workspace_token)
        if schemas is None:
            logger.warning(
                f"Connector schema catalog unavailable for {kind.value}s, "
                f"skipping credential validation of {connector_type}"
            )
            return credentials

        schema = schemas.get(connector_type)
        if schema is None:
            if kind is ConnectorKind.SOURCE:
                raise ConfigError(f"unknown source type: {connector_type}")
            logger.warning(
                f"Connector type {connector_type} is not listed in this workspace, "
                "skipping credential validation"
            )
            return credentials

        masked = sensitive_log_filter.mask_credentials(
            credentials, set(schema.secret_field_ids)
        )
        logger.debug(
            f"Validating credentials of {kind.value} type {connector_type} "
            f"against {len(schema.fields)} schema fields: {masked}"
        )
        return apply_schema(schema, credentials)
