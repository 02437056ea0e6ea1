"""Pin type system."""

from .base import VECTOR_SIZES, PinType
from .codec import decode_type, decode_value, encode_type, encode_value
from .pins import (
    Pin,
    PinDirection,
    PinId,
    compatible,
    input_pin,
    is_flow_mismatch,
    output_pin,
    value_matches,
)
from .values import (
    AnyValue,
    BoolValue,
    ColorValue,
    FloatValue,
    PinValue,
    StringValue,
    Vec2Value,
    Vec3Value,
    Vec4Value,
    concrete_type,
    default_for_type,
    from_components,
    unwrap,
)

__all__ = [
    "VECTOR_SIZES",
    "PinType",
    "Pin",
    "PinDirection",
    "PinId",
    "compatible",
    "input_pin",
    "is_flow_mismatch",
    "output_pin",
    "value_matches",
    "AnyValue",
    "BoolValue",
    "ColorValue",
    "FloatValue",
    "PinValue",
    "StringValue",
    "Vec2Value",
    "Vec3Value",
    "Vec4Value",
    "concrete_type",
    "default_for_type",
    "from_components",
    "unwrap",
    "decode_type",
    "decode_value",
    "encode_type",
    "encode_value",
]
