from typing import Any, Iterable, assert_never

from loguru import logger
from pydantic import ValidationError

from census_reconciler.core.mappings.models import (
    COMMON_FIELDS,
    MAPPING_MODELS,
    PAYLOAD_FIELDS,
    VARIANT_PAYLOAD_FIELD,
    BaseFieldMapping,
    ConstantMapping,
    DirectMapping,
    FieldMapping,
    HashMapping,
    LiquidTemplateMapping,
    MappingVariant,
    SegmentMembershipMapping,
    SyncMetadataMapping,
    WireMapping,
    WireSource,
    WireSourceType,
)
from census_reconciler.exceptions.core import ConfigError

DEFAULT_ALERT_SEND_FOR = "first_time"
NUMERIC_ALERT_OPTIONS = ("threshold",)
SCHEDULE_WIRE_FIELDS = {
    "frequency": "schedule_frequency",
    "day": "schedule_day",
    "hour": "schedule_hour",
    "minute": "schedule_minute",
    "cron_expression": "cron_expression",
}
RUN_MODE_TRIGGER_FIELDS = {
    "schedule": ("frequency", "day", "hour", "minute", "cron_expression"),
    "dbt_cloud": ("project_id", "job_id"),
    "fivetran": ("job_id", "job_name"),
    "sync_sequence": ("sync_id",),
}


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def _as_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value if isinstance(value, str) else str(value)


def _as_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _first_block(value: Any) -> dict[str, Any] | None:
    """Accept a nested block given either as a mapping or as a one-element list."""
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else None


def parse_field_mapping(raw: Any, index: int = 0) -> FieldMapping:
    """Build the variant model for one flat declarative mapping.

    The variant defaults to `direct`. The variant's own payload field must be
    set and every other variant's payload field must be left unset.
    """
    if isinstance(raw, BaseFieldMapping):
        return raw  # type: ignore[return-value]
    if not isinstance(raw, dict):
        raise ConfigError(f"mapping {index}: expected a mapping object", index=index)

    unknown = sorted(set(raw) - set(COMMON_FIELDS) - set(PAYLOAD_FIELDS))
    if unknown:
        raise ConfigError(
            f"mapping {index}: unknown fields {', '.join(unknown)}",
            index=index,
            field=unknown[0],
        )

    try:
        variant = MappingVariant(raw.get("variant") or MappingVariant.DIRECT.value)
    except ValueError:
        raise ConfigError(
            f"mapping {index}: unknown variant {raw.get('variant')!r}",
            index=index,
            field="variant",
        ) from None

    payload_field = VARIANT_PAYLOAD_FIELD[variant]
    forbidden = [
        field
        for field in PAYLOAD_FIELDS
        if field != payload_field and _is_set(raw.get(field))
    ]
    if forbidden:
        raise ConfigError(
            f"mapping {index}: {', '.join(forbidden)} cannot be set on a "
            f"{variant.value} mapping",
            index=index,
            field=forbidden[0],
        )

    if not _is_set(raw.get("to")):
        raise ConfigError(f"mapping {index}: 'to' is required", index=index, field="to")

    value = raw.get(payload_field)
    if variant is MappingVariant.CONSTANT:
        if value is None:
            raise ConfigError(
                f"mapping {index}: 'constant' is required for a constant mapping",
                index=index,
                field="constant",
            )
        if not isinstance(value, (str, int, float, bool)):
            raise ConfigError(
                f"mapping {index}: constant must be a string, number or boolean, "
                f"got {type(value).__name__}",
                index=index,
                field="constant",
            )
    elif not _is_set(value):
        raise ConfigError(
            f"mapping {index}: '{payload_field}' is required for a "
            f"{variant.value} mapping",
            index=index,
            field=payload_field,
        )

    fields = {
        key: item
        for key, item in raw.items()
        if key == payload_field or (key in COMMON_FIELDS and item is not None)
    }
    fields["variant"] = variant
    for optional in ("lookup_object", "lookup_field"):
        if fields.get(optional) == "":
            del fields[optional]
    try:
        return MAPPING_MODELS[variant].parse_obj(fields)  # type: ignore[return-value]
    except ValidationError as e:
        raise ConfigError(f"mapping {index}: {e}", index=index) from e


def _constant_basic_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "text"


def _wire_source(mapping: FieldMapping) -> WireSource:
    if isinstance(mapping, DirectMapping):
        return WireSource(type=WireSourceType.COLUMN, data=mapping.from_)
    if isinstance(mapping, HashMapping):
        return WireSource(type=WireSourceType.COLUMN, data=mapping.from_, hash=True)
    if isinstance(mapping, ConstantMapping):
        return WireSource(
            type=WireSourceType.CONSTANT_VALUE,
            data={
                "basic_type": _constant_basic_type(mapping.constant),
                "value": mapping.constant,
            },
        )
    if isinstance(mapping, SyncMetadataMapping):
        return WireSource(
            type=WireSourceType.SYNC_METADATA, data=mapping.sync_metadata_key
        )
    if isinstance(mapping, SegmentMembershipMapping):
        return WireSource(
            type=WireSourceType.SEGMENT_MEMBERSHIP,
            data={"identify_by": mapping.segment_identify_by},
        )
    if isinstance(mapping, LiquidTemplateMapping):
        return WireSource(
            type=WireSourceType.LIQUID_TEMPLATE,
            data={"liquid_template": mapping.liquid_template},
        )
    assert_never(mapping)


def expand_field_mapping(mapping: FieldMapping) -> WireMapping:
    return WireMapping(
        from_=_wire_source(mapping),
        to=mapping.to,
        is_primary_identifier=mapping.is_primary_identifier,
        lookup_object=mapping.lookup_object,
        lookup_field=mapping.lookup_field,
        preserve_values=mapping.preserve_values,
        generate_field=mapping.generate_field,
        sync_null_values=(
            True if mapping.sync_null_values is None else mapping.sync_null_values
        ),
    )


def compile_field_mappings(mappings: Iterable[Any]) -> list[FieldMapping]:
    """Parse and check a declared mapping list without serializing it."""
    parsed = [parse_field_mapping(raw, index) for index, raw in enumerate(mappings)]
    primary = [
        index for index, mapping in enumerate(parsed) if mapping.is_primary_identifier
    ]
    if not primary:
        raise ConfigError(
            "exactly one mapping must set is_primary_identifier, none does"
        )
    if len(primary) > 1:
        raise ConfigError(
            "exactly one mapping must set is_primary_identifier, mappings "
            f"{', '.join(str(index) for index in primary)} all do",
            index=primary[1],
            field="is_primary_identifier",
        )
    return parsed


def expand_field_mappings(mappings: Iterable[Any]) -> list[dict[str, Any]]:
    """Declarative mappings to the `mappings` request member."""
    return [
        expand_field_mapping(mapping).to_request()
        for mapping in compile_field_mappings(mappings)
    ]


def _common_from_wire(raw: dict[str, Any]) -> dict[str, Any]:
    sync_null_values = raw.get("sync_null_values")
    return {
        "to": _as_string(raw.get("to")),
        "is_primary_identifier": bool(raw.get("is_primary_identifier", False)),
        "lookup_object": raw.get("lookup_object") or None,
        "lookup_field": raw.get("lookup_field") or None,
        "preserve_values": bool(raw.get("preserve_values", False)),
        "generate_field": bool(raw.get("generate_field", False)),
        "sync_null_values": (
            sync_null_values if isinstance(sync_null_values, bool) else None
        ),
    }


def _constant_from_data(data: Any) -> Any:
    value = data.get("value", data) if isinstance(data, dict) else data
    if isinstance(value, (str, bool, int, float)):
        return value
    return _as_string(value)


def _nested_string(data: Any, key: str) -> str:
    if isinstance(data, dict):
        return _as_string(data.get(key))
    return _as_string(data)


def flatten_wire_mapping(raw: dict[str, Any]) -> FieldMapping:
    """Inverse of `expand_field_mapping`, total over every shape the API returns.

    A null `data` reads as a direct mapping with an empty `from`, and unknown
    source types read as direct mappings.
    """
    common = _common_from_wire(raw)
    source = raw.get("from")
    if isinstance(source, str):
        return DirectMapping(from_=source, **common)
    if not isinstance(source, dict) or source.get("data") is None:
        return DirectMapping(from_="", **common)

    source_type = source.get("type")
    data = source["data"]
    if source_type == WireSourceType.CONSTANT_VALUE.value:
        return ConstantMapping(constant=_constant_from_data(data), **common)
    if source_type == WireSourceType.SYNC_METADATA.value:
        return SyncMetadataMapping(sync_metadata_key=_as_string(data), **common)
    if source_type == WireSourceType.SEGMENT_MEMBERSHIP.value:
        return SegmentMembershipMapping(
            segment_identify_by=_nested_string(data, "identify_by"), **common
        )
    if source_type == WireSourceType.LIQUID_TEMPLATE.value:
        return LiquidTemplateMapping(
            liquid_template=_nested_string(data, "liquid_template"), **common
        )
    if source_type not in (None, WireSourceType.COLUMN.value):
        logger.debug(f"Unknown mapping source type {source_type}, reading as column")
    if source.get("hash") is True:
        return HashMapping(from_=_as_string(data), **common)
    return DirectMapping(from_=_as_string(data), **common)


def flatten_legacy_field_mapping(raw: dict[str, Any]) -> FieldMapping:
    """Read one entry of the `field_mappings` list older syncs still return."""
    common = _common_from_wire(raw)
    operation = raw.get("operation") or MappingVariant.DIRECT.value
    if operation == MappingVariant.CONSTANT.value:
        return ConstantMapping(constant=_constant_from_data(raw.get("constant")), **common)
    if operation == MappingVariant.SYNC_METADATA.value:
        return SyncMetadataMapping(
            sync_metadata_key=_as_string(raw.get("sync_metadata_key")), **common
        )
    if operation == MappingVariant.SEGMENT_MEMBERSHIP.value:
        return SegmentMembershipMapping(
            segment_identify_by=_as_string(raw.get("segment_identify_by")), **common
        )
    if operation == MappingVariant.LIQUID_TEMPLATE.value:
        return LiquidTemplateMapping(
            liquid_template=_as_string(raw.get("liquid_template")), **common
        )
    if operation == MappingVariant.HASH.value:
        return HashMapping(from_=_as_string(raw.get("from")), **common)
    return DirectMapping(from_=_as_string(raw.get("from")), **common)


def flatten_field_mappings(sync: dict[str, Any]) -> list[FieldMapping]:
    """Field mappings of a sync read back from the API, in declared order."""
    mappings = sync.get("mappings")
    if mappings:
        return [flatten_wire_mapping(raw) for raw in mappings if isinstance(raw, dict)]
    legacy = sync.get("field_mappings")
    if legacy:
        return [
            flatten_legacy_field_mapping(raw) for raw in legacy if isinstance(raw, dict)
        ]
    return []


def expand_alerts(alerts: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    result = []
    for alert in alerts or []:
        options = {}
        for key, value in (alert.get("options") or {}).items():
            if (
                key in NUMERIC_ALERT_OPTIONS
                and isinstance(value, str)
                and value.lstrip("-").isdigit()
            ):
                value = int(value)
            options[key] = value

        wire_alert = {
            "type": alert.get("type", ""),
            "send_for": alert.get("send_for") or DEFAULT_ALERT_SEND_FOR,
            "should_send_recovery": alert.get("should_send_recovery", True),
            "options": options,
        }
        if alert.get("id"):
            wire_alert["id"] = alert["id"]
        result.append(wire_alert)
    return result


def flatten_alerts(alerts: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [
        {
            "id": alert.get("id"),
            "type": alert.get("type", ""),
            "send_for": alert.get("send_for", ""),
            "should_send_recovery": bool(alert.get("should_send_recovery", False)),
            "options": {
                key: _as_string(value)
                for key, value in (alert.get("options") or {}).items()
            },
        }
        for alert in alerts or []
    ]


def expand_schedule(schedule: dict[str, Any] | None) -> dict[str, Any]:
    """Flat `schedule_*` request members for a declared schedule block."""
    schedule = _first_block(schedule)
    if not schedule:
        return {}
    return {
        wire_key: schedule[key]
        for key, wire_key in SCHEDULE_WIRE_FIELDS.items()
        if _is_set(schedule.get(key))
    }


def flatten_schedule(sync: dict[str, Any]) -> dict[str, Any] | None:
    schedule = {
        key: _as_int(sync[wire_key])
        for key, wire_key in SCHEDULE_WIRE_FIELDS.items()
        if _is_set(sync.get(wire_key))
    }
    return schedule or None


def expand_run_mode(run_mode: Any) -> dict[str, Any] | None:
    run_mode = _first_block(run_mode)
    if not run_mode:
        return None

    mode: dict[str, Any] = {"type": run_mode.get("type", "")}
    triggers_block = _first_block(run_mode.get("triggers"))
    if triggers_block:
        triggers = {}
        for trigger, fields in RUN_MODE_TRIGGER_FIELDS.items():
            block = _first_block(triggers_block.get(trigger))
            if block is None:
                continue
            triggers[trigger] = {
                field: block[field] for field in fields if _is_set(block.get(field))
            }
        mode["triggers"] = triggers
    return mode


def flatten_run_mode(mode: Any) -> dict[str, Any] | None:
    if not isinstance(mode, dict):
        return None

    run_mode: dict[str, Any] = {"type": mode.get("type", "")}
    triggers = mode.get("triggers")
    if isinstance(triggers, dict):
        flattened = {}
        for trigger, fields in RUN_MODE_TRIGGER_FIELDS.items():
            block = triggers.get(trigger)
            if not isinstance(block, dict):
                continue
            flattened[trigger] = {
                field: _as_int(block[field])
                for field in fields
                # the API reports unset schedule members as zero values
                if _is_set(block.get(field)) and block.get(field) != 0
            }
        run_mode["triggers"] = flattened
    return run_mode


def _clean_empty_strings(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value != ""}


def expand_source_attributes(attributes: dict[str, Any] | None) -> dict[str, Any]:
    """Declared source attributes to the request shape.

    A segment or cohort source is declared as an object of that type with the
    segment or cohort id and its `dataset_id`. The API wants the dataset as
    the object, plus `filter_segment_id` or `cohort_id`.
    """
    attributes = _first_block(attributes)
    if not attributes:
        return {}

    result: dict[str, Any] = {}
    if _is_set(attributes.get("connection_id")):
        result["connection_id"] = attributes["connection_id"]
    if _is_set(attributes.get("cohort_id")) and attributes["cohort_id"] != 0:
        result["cohort_id"] = attributes["cohort_id"]

    source_object = _first_block(attributes.get("object"))
    if source_object is not None:
        object_type = source_object.get("type")
        if object_type in ("segment", "cohort"):
            translated: dict[str, Any] = {"type": "dataset"}
            if _is_set(source_object.get("dataset_id")):
                translated["id"] = source_object["dataset_id"]
            result["object"] = translated
            if _is_set(source_object.get("id")):
                id_key = "filter_segment_id" if object_type == "segment" else "cohort_id"
                result[id_key] = source_object["id"]
        else:
            result["object"] = _clean_empty_strings(source_object)
    return result


def flatten_source_attributes(attributes: dict[str, Any] | None) -> dict[str, Any]:
    if not isinstance(attributes, dict):
        return {}

    result: dict[str, Any] = {}
    if "connection_id" in attributes:
        result["connection_id"] = _as_int(attributes["connection_id"])
    if "cohort_id" in attributes:
        result["cohort_id"] = _as_int(attributes["cohort_id"])

    source_object = attributes.get("object")
    if not isinstance(source_object, dict):
        return result

    object_type = _as_string(source_object.get("type"))
    flattened: dict[str, Any] = {}
    if object_type == "filter_segment_source" and "filter_segment_id" in attributes:
        flattened["type"] = "segment"
        flattened["id"] = _as_string(attributes["filter_segment_id"])
        if "dataset_id" in source_object:
            flattened["dataset_id"] = _as_string(source_object["dataset_id"])
    elif object_type == "cohort_source" and "cohort_id" in attributes:
        flattened["type"] = "cohort"
        flattened["id"] = _as_string(attributes["cohort_id"])
        if "dataset_id" in source_object:
            flattened["dataset_id"] = _as_string(source_object["dataset_id"])
    elif object_type == "business_object_source":
        flattened["type"] = "dataset"
        if "dataset_id" in source_object:
            flattened["id"] = _as_string(source_object["dataset_id"])
    elif object_type == "table":
        flattened["type"] = "table"
        for key in ("table_name", "table_schema", "table_catalog"):
            if key in source_object:
                flattened[key] = _as_string(source_object[key])
    else:
        if object_type:
            flattened["type"] = object_type
        if "id" in source_object:
            flattened["id"] = _as_string(source_object["id"])
    result["object"] = flattened
    return result


def expand_destination_attributes(attributes: dict[str, Any] | None) -> dict[str, Any]:
    attributes = _first_block(attributes)
    if not attributes:
        return {}
    return {
        key: attributes[key]
        for key in ("connection_id", "object", "lead_union_insert_to")
        if _is_set(attributes.get(key))
    }


def flatten_destination_attributes(
    attributes: dict[str, Any] | None,
) -> dict[str, Any]:
    if not isinstance(attributes, dict):
        return {}
    result: dict[str, Any] = {}
    if "connection_id" in attributes:
        result["connection_id"] = _as_int(attributes["connection_id"])
    for key in ("object", "lead_union_insert_to"):
        if key in attributes:
            result[key] = _as_string(attributes[key])
    return result
