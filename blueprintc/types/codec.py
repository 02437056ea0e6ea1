"""JSON-ready encoding of pin types and pin values.

Values encode as ``{"type": "<PinType name>", "value": ...}``. Numeric
vectors carry a list of floats, Any carries the nested encoded value.
"""

from typing import Any

from blueprintc.errors import SerializationError
from blueprintc.types.base import PinType
from blueprintc.types.values import (
    AnyValue,
    BoolValue,
    PinValue,
    StringValue,
    from_components,
)


def encode_type(pin_type: PinType) -> str:
    return pin_type.label


def decode_type(raw: Any) -> PinType:
    """Parse a pin type label such as ``"Vec3"``.

    Raises:
        SerializationError: If the label is not a known pin type
    """
    if isinstance(raw, str):
        for pin_type in PinType:
            if pin_type.label == raw:
                return pin_type
    raise SerializationError(f"Unknown pin type: {raw!r}")


def encode_value(value: PinValue) -> dict[str, Any]:
    payload: Any
    match value:
        case AnyValue(inner=inner):
            payload = encode_value(inner)
        case BoolValue(value=flag):
            payload = bool(flag)
        case StringValue(value=text):
            payload = text
        case _:
            payload = list(value.components or ())
    return {"type": encode_type(value.pin_type), "value": payload}


def decode_value(raw: Any) -> PinValue:
    """Inverse of ``encode_value``.

    Raises:
        SerializationError: On a malformed or ill-typed value
    """
    if not isinstance(raw, dict) or "type" not in raw or "value" not in raw:
        raise SerializationError(f"Malformed pin value: {raw!r}")
    pin_type = decode_type(raw["type"])
    payload = raw["value"]

    match pin_type:
        case PinType.FLOW:
            raise SerializationError("Flow pins carry no value")
        case PinType.ANY:
            return AnyValue(decode_value(payload))
        case PinType.BOOL:
            if not isinstance(payload, bool):
                raise SerializationError(f"Bool value expected, got {payload!r}")
            return BoolValue(payload)
        case PinType.STRING:
            if not isinstance(payload, str):
                raise SerializationError(f"String value expected, got {payload!r}")
            return StringValue(payload)

    # Numeric types; bool is an int subclass and is rejected explicitly
    if isinstance(payload, (int, float)) and not isinstance(payload, bool):
        payload = [payload]
    if not isinstance(payload, list) or not all(
        isinstance(c, (int, float)) and not isinstance(c, bool) for c in payload
    ):
        raise SerializationError(f"{pin_type.label} value expected, got {payload!r}")
    try:
        return from_components(pin_type, tuple(payload))
    except ValueError as e:
        raise SerializationError(str(e)) from e
