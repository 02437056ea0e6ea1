"""Shorthands shared by the built-in node tables."""

from collections.abc import Callable

from blueprintc.registry.registry import EntryPoint, NodeTypeDefinition
from blueprintc.types import (
    ColorValue,
    FloatValue,
    Pin,
    PinType,
    Vec2Value,
    Vec3Value,
    input_pin,
    output_pin,
)

CATEGORY_COLORS = {
    "Events": (200, 60, 60),
    "Flow": (220, 220, 220),
    "Utility": (120, 120, 120),
    "Variables": (90, 150, 210),
    "Math": (100, 200, 100),
    "Logic": (200, 100, 100),
    "String": (200, 100, 200),
    "Shader": (150, 100, 200),
}

FLOW = PinType.FLOW
BOOL = PinType.BOOL
FLOAT = PinType.FLOAT
VEC2 = PinType.VEC2
VEC3 = PinType.VEC3
VEC4 = PinType.VEC4
COLOR = PinType.COLOR
STRING = PinType.STRING
ANY = PinType.ANY


def define(
    type_id: str,
    category: str,
    display_name: str,
    pins: Callable[[], list[Pin]],
    description: str = "",
    *,
    is_event: bool = False,
    is_comment: bool = False,
    is_output: bool = False,
    entry_point: EntryPoint | None = None,
) -> NodeTypeDefinition:
    return NodeTypeDefinition(
        type_id=type_id,
        category=category,
        display_name=display_name,
        pin_factory=pins,
        description=description,
        color=CATEGORY_COLORS.get(category, (120, 120, 120)),
        is_event=is_event,
        is_comment=is_comment,
        is_output=is_output,
        entry_point=entry_point,
    )


def exec_in() -> Pin:
    return input_pin("exec", FLOW, label="")


def then_out(name: str = "then") -> Pin:
    return output_pin(name, FLOW, label="" if name == "then" else None)


def f(name: str, default: float = 0.0, **kwargs) -> Pin:
    """Float input with a default."""
    return input_pin(name, FLOAT, FloatValue(default), **kwargs)


def v2(name: str, x: float = 0.0, y: float = 0.0, **kwargs) -> Pin:
    return input_pin(name, VEC2, Vec2Value(x, y), **kwargs)


def v3(name: str, x: float = 0.0, y: float = 0.0, z: float = 0.0, **kwargs) -> Pin:
    return input_pin(name, VEC3, Vec3Value(x, y, z), **kwargs)


def rgba(name: str, r: float, g: float, b: float, a: float = 1.0, **kwargs) -> Pin:
    return input_pin(name, COLOR, ColorValue(r, g, b, a), **kwargs)


def uv_in() -> Pin:
    """UV input that samples the surface coordinate when left unwired."""
    return input_pin("uv", VEC2, Vec2Value(0.5, 0.5), label="UV", ambient="uv")
