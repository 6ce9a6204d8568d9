from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr

ConstantValue = Union[StrictStr, StrictBool, StrictInt, StrictFloat]


class MappingVariant(str, Enum):
    DIRECT = "direct"
    HASH = "hash"
    CONSTANT = "constant"
    SYNC_METADATA = "sync_metadata"
    SEGMENT_MEMBERSHIP = "segment_membership"
    LIQUID_TEMPLATE = "liquid_template"


class WireSourceType(str, Enum):
    COLUMN = "column"
    CONSTANT_VALUE = "constant_value"
    SYNC_METADATA = "sync_metadata"
    SEGMENT_MEMBERSHIP = "segment_membership"
    LIQUID_TEMPLATE = "liquid_template"


# declarative key that carries each variant's value
VARIANT_PAYLOAD_FIELD: dict[MappingVariant, str] = {
    MappingVariant.DIRECT: "from",
    MappingVariant.HASH: "from",
    MappingVariant.CONSTANT: "constant",
    MappingVariant.SYNC_METADATA: "sync_metadata_key",
    MappingVariant.SEGMENT_MEMBERSHIP: "segment_identify_by",
    MappingVariant.LIQUID_TEMPLATE: "liquid_template",
}

PAYLOAD_FIELDS = tuple(dict.fromkeys(VARIANT_PAYLOAD_FIELD.values()))

COMMON_FIELDS = (
    "variant",
    "to",
    "is_primary_identifier",
    "lookup_object",
    "lookup_field",
    "preserve_values",
    "generate_field",
    "sync_null_values",
)


class BaseFieldMapping(BaseModel):
    to: str
    is_primary_identifier: bool = False
    lookup_object: str | None = None
    lookup_field: str | None = None
    preserve_values: bool = False
    generate_field: bool = False
    sync_null_values: bool | None = None

    class Config:
        allow_population_by_field_name = True
        extra = "forbid"

    def to_declarative(self) -> dict[str, Any]:
        """The flat declarative shape, leaving out unset optional members."""
        return self.dict(by_alias=True, exclude_none=True)


class DirectMapping(BaseFieldMapping):
    variant: Literal[MappingVariant.DIRECT] = MappingVariant.DIRECT
    from_: str = Field(..., alias="from")


class HashMapping(BaseFieldMapping):
    variant: Literal[MappingVariant.HASH] = MappingVariant.HASH
    from_: str = Field(..., alias="from")


class ConstantMapping(BaseFieldMapping):
    variant: Literal[MappingVariant.CONSTANT] = MappingVariant.CONSTANT
    constant: ConstantValue


class SyncMetadataMapping(BaseFieldMapping):
    variant: Literal[MappingVariant.SYNC_METADATA] = MappingVariant.SYNC_METADATA
    sync_metadata_key: str


class SegmentMembershipMapping(BaseFieldMapping):
    variant: Literal[
        MappingVariant.SEGMENT_MEMBERSHIP
    ] = MappingVariant.SEGMENT_MEMBERSHIP
    segment_identify_by: str


class LiquidTemplateMapping(BaseFieldMapping):
    variant: Literal[MappingVariant.LIQUID_TEMPLATE] = MappingVariant.LIQUID_TEMPLATE
    liquid_template: str


FieldMapping = Union[
    DirectMapping,
    HashMapping,
    ConstantMapping,
    SyncMetadataMapping,
    SegmentMembershipMapping,
    LiquidTemplateMapping,
]

MAPPING_MODELS: dict[MappingVariant, type[BaseFieldMapping]] = {
    MappingVariant.DIRECT: DirectMapping,
    MappingVariant.HASH: HashMapping,
    MappingVariant.CONSTANT: ConstantMapping,
    MappingVariant.SYNC_METADATA: SyncMetadataMapping,
    MappingVariant.SEGMENT_MEMBERSHIP: SegmentMembershipMapping,
    MappingVariant.LIQUID_TEMPLATE: LiquidTemplateMapping,
}


class WireSource(BaseModel):
    type: WireSourceType
    data: Any = None
    hash: bool | None = None

    class Config:
        use_enum_values = True


class WireMapping(BaseModel):
    from_: WireSource = Field(..., alias="from")
    to: str
    is_primary_identifier: bool = False
    lookup_object: str | None = None
    lookup_field: str | None = None
    preserve_values: bool = False
    generate_field: bool = False
    sync_null_values: bool | None = None

    class Config:
        allow_population_by_field_name = True
        use_enum_values = True

    def to_request(self) -> dict[str, Any]:
        return self.dict(by_alias=True, exclude_none=True)
