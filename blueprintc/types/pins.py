"""Pin types, pin descriptors and the connection compatibility relation."""

from dataclasses import dataclass
from enum import Enum, auto

from blueprintc.types.base import PinType
from blueprintc.types.values import PinValue, concrete_type

# ======================================================================================
#                                   COMPATIBILITY
# ======================================================================================

# Pairs with the same layout but different semantic tags
_INTERCHANGEABLE = {
    frozenset({PinType.VEC4, PinType.COLOR}),
}


def compatible(out_type: PinType, in_type: PinType) -> bool:
    """Check whether an output pin of one type may feed an input of another.

    Identical types match, Any matches anything, and Vec4/Color are mutually
    compatible. There is no implicit widening: a Float never feeds a Vec3.

    Args:
        out_type: Type of the producing (output) pin
        in_type: Type of the consuming (input) pin

    Returns:
        True if the connection is type-correct
    """
    if out_type is in_type:
        return True
    if out_type is PinType.ANY or in_type is PinType.ANY:
        return True
    return frozenset({out_type, in_type}) in _INTERCHANGEABLE


def is_flow_mismatch(out_type: PinType, in_type: PinType) -> bool:
    """True when exactly one side of a connection is a Flow pin."""
    return out_type.is_flow != in_type.is_flow


def value_matches(value: PinValue, pin_type: PinType) -> bool:
    """Check whether a stored value may sit on a pin of the given type.

    Any pins take every value; other pins judge the value by its concrete
    type, so an Any-wrapped String does not fit a Float pin.
    """
    if pin_type is PinType.ANY:
        return True
    if pin_type is PinType.FLOW:
        return False
    return compatible(concrete_type(value), pin_type)


# ======================================================================================
#                                      PINS
# ======================================================================================


class PinDirection(Enum):
    """Whether a pin consumes or produces values."""

    INPUT = auto()
    OUTPUT = auto()


@dataclass(frozen=True)
class Pin:
    """A named, typed connection point on a node."""

    name: str
    label: str
    pin_type: PinType
    direction: PinDirection
    default: PinValue | None = None
    required: bool = False
    # Context source ("uv", "normal", ...) used when the input is left unwired
    ambient: str | None = None

    @property
    def is_input(self) -> bool:
        return self.direction is PinDirection.INPUT


def input_pin(
    name: str,
    pin_type: PinType,
    default: PinValue | None = None,
    label: str | None = None,
    required: bool = False,
    ambient: str | None = None,
) -> Pin:
    """Create an input pin. The label defaults to a title-cased name."""
    return Pin(
        name=name,
        label=label or name.replace("_", " ").title(),
        pin_type=pin_type,
        direction=PinDirection.INPUT,
        default=default,
        required=required,
        ambient=ambient,
    )


def output_pin(name: str, pin_type: PinType, label: str | None = None) -> Pin:
    """Create an output pin. The label defaults to a title-cased name."""
    return Pin(
        name=name,
        label=label or name.replace("_", " ").title(),
        pin_type=pin_type,
        direction=PinDirection.OUTPUT,
    )


@dataclass(frozen=True)
class PinId:
    """Identifies one pin endpoint in a graph."""

    node_id: int
    pin_name: str
    direction: PinDirection

    @classmethod
    def input(cls, node_id: int, pin_name: str) -> "PinId":
        return cls(node_id, pin_name, PinDirection.INPUT)

    @classmethod
    def output(cls, node_id: int, pin_name: str) -> "PinId":
        return cls(node_id, pin_name, PinDirection.OUTPUT)

    def __str__(self) -> str:
        return f"{self.node_id}.{self.pin_name}"
