"""Pin values: a tagged union over the value-bearing pin types.

Each variant is a frozen dataclass reporting its ``pin_type``. ``AnyValue``
wraps another variant for Any-typed pins; ``unwrap`` strips the wrapper.
"""

from dataclasses import dataclass
from typing import ClassVar

from blueprintc.types.base import PinType


@dataclass(frozen=True)
class PinValue:
    """Base class for all pin values."""

    pin_type: ClassVar[PinType]

    @property
    def components(self) -> tuple[float, ...] | None:
        """Float components for numeric values, None otherwise."""
        return None


@dataclass(frozen=True)
class BoolValue(PinValue):
    value: bool
    pin_type: ClassVar[PinType] = PinType.BOOL


@dataclass(frozen=True)
class FloatValue(PinValue):
    value: float
    pin_type: ClassVar[PinType] = PinType.FLOAT

    @property
    def components(self) -> tuple[float, ...]:
        return (float(self.value),)


@dataclass(frozen=True)
class StringValue(PinValue):
    value: str
    pin_type: ClassVar[PinType] = PinType.STRING


@dataclass(frozen=True)
class Vec2Value(PinValue):
    x: float
    y: float
    pin_type: ClassVar[PinType] = PinType.VEC2

    @property
    def components(self) -> tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Vec3Value(PinValue):
    x: float
    y: float
    z: float
    pin_type: ClassVar[PinType] = PinType.VEC3

    @property
    def components(self) -> tuple[float, ...]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Vec4Value(PinValue):
    x: float
    y: float
    z: float
    w: float
    pin_type: ClassVar[PinType] = PinType.VEC4

    @property
    def components(self) -> tuple[float, ...]:
        return (self.x, self.y, self.z, self.w)


@dataclass(frozen=True)
class ColorValue(PinValue):
    r: float
    g: float
    b: float
    a: float = 1.0
    pin_type: ClassVar[PinType] = PinType.COLOR

    @property
    def components(self) -> tuple[float, ...]:
        return (self.r, self.g, self.b, self.a)


@dataclass(frozen=True)
class AnyValue(PinValue):
    """Untyped wrapper around a concrete value."""

    inner: PinValue
    pin_type: ClassVar[PinType] = PinType.ANY

    @property
    def components(self) -> tuple[float, ...] | None:
        return self.inner.components


_NUMERIC_CONSTRUCTORS: dict[PinType, type[PinValue]] = {
    PinType.FLOAT: FloatValue,
    PinType.VEC2: Vec2Value,
    PinType.VEC3: Vec3Value,
    PinType.VEC4: Vec4Value,
    PinType.COLOR: ColorValue,
}


def unwrap(value: PinValue) -> PinValue:
    """Strip any number of ``AnyValue`` wrappers."""
    while isinstance(value, AnyValue):
        value = value.inner
    return value


def concrete_type(value: PinValue) -> PinType:
    """Pin type of the value after unwrapping Any."""
    return unwrap(value).pin_type


def from_components(pin_type: PinType, components: tuple[float, ...]) -> PinValue:
    """Build a numeric value of the given type from its float components.

    Raises:
        ValueError: If the type is not numeric or the component count is wrong
    """
    constructor = _NUMERIC_CONSTRUCTORS.get(pin_type)
    if constructor is None:
        raise ValueError(f"{pin_type.label} is not a numeric pin type")
    if len(components) != pin_type.size:
        raise ValueError(
            f"{pin_type.label} takes {pin_type.size} components, got {len(components)}"
        )
    return constructor(*(float(c) for c in components))


def default_for_type(pin_type: PinType) -> PinValue | None:
    """Zero value for a pin type (None for Flow, which carries no value)."""
    match pin_type:
        case PinType.FLOW:
            return None
        case PinType.BOOL:
            return BoolValue(False)
        case PinType.STRING:
            return StringValue("")
        case PinType.COLOR:
            return ColorValue(1.0, 1.0, 1.0, 1.0)
        case PinType.ANY:
            return AnyValue(FloatValue(0.0))
        case _:
            return from_components(pin_type, (0.0,) * pin_type.size)
