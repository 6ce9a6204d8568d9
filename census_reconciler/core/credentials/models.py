from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

REQUIRED_RULES = ("required", "required:notForEditing")


class RequirementBase(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


class SimpleCondition(BaseModel):
    """`show: {if: "<field>"}`: visible when the named field is truthy."""

    field: str


class CompoundCondition(BaseModel):
    """`show: {if: {"<field>": <bool>, ...}}`.

    Pairs keep the order the schema declared them in. Only the first pair is
    evaluated.
    """

    pairs: list[tuple[str, Any]]


VisibilityCondition = SimpleCondition | CompoundCondition


class RequirementRule(BaseModel):
    base: RequirementBase = RequirementBase.OPTIONAL
    condition: VisibilityCondition | None = None

    @classmethod
    def from_raw(cls, rules: Any, show: Any) -> "RequirementRule":
        # `rules` has been observed both as a bare string and as a list
        if isinstance(rules, str):
            rule_list = [rules]
        elif isinstance(rules, list):
            rule_list = [rule for rule in rules if isinstance(rule, str)]
        else:
            rule_list = []
        base = (
            RequirementBase.REQUIRED
            if any(rule in REQUIRED_RULES for rule in rule_list)
            else RequirementBase.OPTIONAL
        )
        return cls(base=base, condition=parse_visibility_condition(show))


def parse_visibility_condition(show: Any) -> VisibilityCondition | None:
    if not isinstance(show, dict) or "if" not in show:
        return None
    predicate = show["if"]
    if isinstance(predicate, str):
        return SimpleCondition(field=predicate)
    if isinstance(predicate, dict):
        return CompoundCondition(pairs=list(predicate.items()))
    return None


class FieldSpec(BaseModel):
    id: str
    label: str = ""
    kind: str = ""
    is_password: bool = False
    required_rule: RequirementRule = Field(default_factory=RequirementRule)
    allowed_values: list[str] = Field(default_factory=list)

    @property
    def visibility_rule(self) -> VisibilityCondition | None:
        return self.required_rule.condition

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "FieldSpec":
        return cls(
            id=raw.get("id", ""),
            label=raw.get("label") or "",
            kind=raw.get("type") or "",
            is_password=bool(raw.get("is_password_type_field", False)),
            required_rule=RequirementRule.from_raw(raw.get("rules"), raw.get("show")),
            allowed_values=[str(value) for value in raw.get("possible_values") or []],
        )


class ConnectorSchema(BaseModel):
    service_name: str
    label: str = ""
    fields: list[FieldSpec] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ConnectorSchema":
        configuration = raw.get("configuration_fields") or {}
        return cls(
            service_name=raw.get("service_name", ""),
            label=raw.get("label") or "",
            fields=[
                FieldSpec.from_raw(field)
                for field in configuration.get("fields") or []
                if isinstance(field, dict)
            ],
        )

    @property
    def secret_field_ids(self) -> list[str]:
        return [field.id for field in self.fields if field.is_password]
