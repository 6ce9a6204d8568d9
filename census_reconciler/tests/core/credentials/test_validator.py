from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from census_reconciler.core.credentials.catalog import ConnectorKind
from census_reconciler.core.credentials.models import (
    CompoundCondition,
    ConnectorSchema,
    RequirementBase,
    RequirementRule,
    SimpleCondition,
)
from census_reconciler.core.credentials.validator import (
    CredentialValidator,
    apply_schema,
    evaluate_requirement,
)
from census_reconciler.exceptions.core import ConfigError

REQUIRED = RequirementBase.REQUIRED


def schema(*fields: dict[str, Any]) -> ConnectorSchema:
    return ConnectorSchema.from_raw(
        {
            "service_name": "postgres",
            "label": "Postgres",
            "configuration_fields": {"fields": list(fields)},
        }
    )


def validator_for(schemas: dict[str, ConnectorSchema] | None) -> CredentialValidator:
    catalog = MagicMock()
    catalog.fetch = AsyncMock(return_value=schemas)
    return CredentialValidator(catalog)


class TestRequirementRuleParsing:
    @pytest.mark.parametrize(
        "rules", ["required", ["required"], ["required:notForEditing"], ["x", "required"]]
    )
    def test_required_rules(self, rules: Any) -> None:
        assert RequirementRule.from_raw(rules, None).base is REQUIRED

    @pytest.mark.parametrize("rules", [None, "", [], ["optional"], {"required": True}])
    def test_optional_rules(self, rules: Any) -> None:
        assert RequirementRule.from_raw(rules, None).base is RequirementBase.OPTIONAL

    def test_simple_and_compound_conditions(self) -> None:
        simple = RequirementRule.from_raw("required", {"if": "use_ssh"})
        compound = RequirementRule.from_raw(
            "required", {"if": {"use_ssh": True, "use_ssl": False}}
        )

        assert simple.condition == SimpleCondition(field="use_ssh")
        assert isinstance(compound.condition, CompoundCondition)
        assert compound.condition.pairs == [("use_ssh", True), ("use_ssl", False)]


class TestEvaluateRequirement:
    def test_unconditional_required(self) -> None:
        assert evaluate_requirement(RequirementRule(base=REQUIRED), {}) is True

    def test_optional_is_never_required(self) -> None:
        rule = RequirementRule(condition=SimpleCondition(field="toggle"))
        assert evaluate_requirement(rule, {"toggle": True}) is False

    @pytest.mark.parametrize(
        "credentials, required",
        [
            ({}, False),
            ({"toggle": True}, True),
            ({"toggle": "true"}, True),
            ({"toggle": "1"}, True),
            ({"toggle": False}, False),
            ({"toggle": "false"}, False),
            ({"toggle": "yes"}, False),
            ({"toggle": 1}, False),
        ],
    )
    def test_simple_condition(self, credentials: dict[str, Any], required: bool) -> None:
        rule = RequirementRule(base=REQUIRED, condition=SimpleCondition(field="toggle"))
        assert evaluate_requirement(rule, credentials) is required

    @pytest.mark.parametrize(
        "expected, value, required",
        [
            (True, True, True),
            (True, "true", True),
            (True, "1", True),
            (True, "0", False),
            (False, False, True),
            (False, "false", True),
            (False, "0", True),
            (False, "", True),
            (False, "true", False),
            (True, None, False),
        ],
    )
    def test_compound_condition(self, expected: bool, value: Any, required: bool) -> None:
        rule = RequirementRule(
            base=REQUIRED, condition=CompoundCondition(pairs=[("mode", expected)])
        )
        assert evaluate_requirement(rule, {"mode": value}) is required

    def test_compound_condition_with_absent_key_downgrades(self) -> None:
        rule = RequirementRule(
            base=REQUIRED, condition=CompoundCondition(pairs=[("mode", False)])
        )
        assert evaluate_requirement(rule, {}) is False

    def test_compound_condition_honours_only_the_first_key(self) -> None:
        # Multi-key conditions are judged on their first pair alone, matching
        # how the Census UI evaluates them. The second pair would fail here.
        rule = RequirementRule(
            base=REQUIRED,
            condition=CompoundCondition(pairs=[("use_ssh", True), ("use_ssl", True)]),
        )
        assert evaluate_requirement(rule, {"use_ssh": True, "use_ssl": False}) is True

        reversed_rule = RequirementRule(
            base=REQUIRED,
            condition=CompoundCondition(pairs=[("use_ssl", True), ("use_ssh", True)]),
        )
        assert (
            evaluate_requirement(reversed_rule, {"use_ssh": True, "use_ssl": False})
            is False
        )


class TestApplySchema:
    def test_missing_unconditional_field_fails_naming_it(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            apply_schema(schema({"id": "host", "label": "Host", "rules": "required"}), {})

        assert exc_info.value.field == "host"
        assert "'host' (Host)" in str(exc_info.value)

    def test_conditional_field_without_toggle_defaults_to_empty(self) -> None:
        credentials = apply_schema(
            schema(
                {
                    "id": "ssh_host",
                    "label": "SSH host",
                    "rules": ["required"],
                    "show": {"if": "use_ssh"},
                }
            ),
            {},
        )

        assert credentials == {"ssh_host": ""}

    def test_conditional_field_with_toggle_on_fails(self) -> None:
        with pytest.raises(ConfigError, match="ssh_host"):
            apply_schema(
                schema(
                    {
                        "id": "ssh_host",
                        "label": "SSH host",
                        "rules": ["required"],
                        "show": {"if": "use_ssh"},
                    }
                ),
                {"use_ssh": True},
            )

    def test_present_values_are_kept(self) -> None:
        credentials = apply_schema(
            schema(
                {"id": "host", "rules": "required"},
                {"id": "port", "rules": []},
            ),
            {"host": "db.internal"},
        )

        assert credentials == {"host": "db.internal", "port": ""}

    def test_fields_are_checked_in_schema_order(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            apply_schema(
                schema(
                    {"id": "user", "rules": "required"},
                    {"id": "host", "rules": "required"},
                ),
                {},
            )

        assert exc_info.value.field == "user"


class TestCredentialValidator:
    @pytest.mark.asyncio
    async def test_catalog_not_found_returns_credentials_unchanged(self) -> None:
        credentials = {"anything": "goes"}

        result = await validator_for(None).validate(
            ConnectorKind.DESTINATION, "unknown_type", credentials, "token"
        )

        assert result == {"anything": "goes"}

    @pytest.mark.asyncio
    async def test_unknown_source_type_fails(self) -> None:
        with pytest.raises(ConfigError, match="unknown source type: mystery"):
            await validator_for({}).validate(
                ConnectorKind.SOURCE, "mystery", {}, "token"
            )

    @pytest.mark.asyncio
    async def test_unknown_destination_type_skips_validation(self) -> None:
        result = await validator_for({}).validate(
            ConnectorKind.DESTINATION, "mystery", {"a": 1}, "token"
        )

        assert result == {"a": 1}

    @pytest.mark.asyncio
    async def test_known_type_is_validated(self) -> None:
        schemas = {"postgres": schema({"id": "host", "rules": "required"})}

        with pytest.raises(ConfigError, match="host"):
            await validator_for(schemas).validate(
                ConnectorKind.SOURCE, "postgres", {}, "token"
            )
