"""Shader forms of node kinds.

``SHADER_EXPRESSIONS`` maps a type id to a ``ShaderExpression`` rendering
one output pin for the active ``ShaderTarget``. Nodes whose outputs are
views of one computed value (texture samples, voronoi, brick) declare a
``SharedValue``; the generator hoists it once and the per-pin renders
read it through ``ctx.shared()``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from blueprintc.graph.analysis import broadcast
from blueprintc.types import PinType

if TYPE_CHECKING:
    from blueprintc.codegen.shader import ShaderNodeContext


@dataclass(frozen=True)
class SharedValue:
    render: Callable[["ShaderNodeContext"], str]
    pin_type: PinType
    prefix: str


@dataclass(frozen=True)
class ShaderExpression:
    """Shader form of a pure node.

    ``prefix`` names hoisted locals (an empty prefix uses the pin name).
    ``inline_pins`` are referenced directly even when ``inline`` is off.
    ``helpers`` lists helper functions the expression calls.
    """

    render: Callable[["ShaderNodeContext", str], str]
    prefix: str = ""
    inline: bool = False
    inline_pins: frozenset[str] = frozenset()
    helpers: tuple[str, ...] = ()
    shared: SharedValue | None = None


# =============================================================================
# Builders
# =============================================================================


def _call(fn: str, *args: str, prefix: str | None = None, helpers=()) -> ShaderExpression:
    return ShaderExpression(
        lambda ctx, _: f"{fn}({', '.join(ctx.input(a) for a in args)})",
        prefix or fn,
        helpers=helpers,
    )


def _passthrough(pin: str) -> ShaderExpression:
    return ShaderExpression(lambda ctx, _: ctx.input(pin), inline=True)


def _builtin(name: str) -> ShaderExpression:
    return ShaderExpression(lambda ctx, _: ctx.builtin(name), inline=True)


def _swizzle(source: str, **pins: str) -> ShaderExpression:
    """Inline component access on an input, e.g. ``v.x``."""
    return ShaderExpression(lambda ctx, pin: f"{ctx.input(source)}.{pins[pin]}", inline=True)


def _construct(pin_type: PinType, *args: str, prefix: str) -> ShaderExpression:
    return ShaderExpression(
        lambda ctx, _: ctx.target.construct(pin_type, [ctx.input(a) for a in args]),
        prefix,
    )


def _shared_swizzle(**pins: str) -> Callable[["ShaderNodeContext", str], str]:
    """Per-pin view of a shared value; an empty swizzle is the value itself."""

    def render(ctx: "ShaderNodeContext", pin: str) -> str:
        value = ctx.shared()
        return f"{value}.{pins[pin]}" if pins[pin] else value

    return render


# =============================================================================
# Math
# =============================================================================


def _operand_type(ctx: "ShaderNodeContext", *pins: str) -> PinType:
    """Broadcast type of Any operands, raising when they cannot combine."""
    types = [ctx.input_type(pin) for pin in pins]
    result: PinType | None = types[0]
    for other in types[1:]:
        result = broadcast(result, other) if result is not None else None
    if result is None or result is PinType.ANY:
        labels = " and ".join(t.label for t in types)
        raise ctx.error(f"Cannot combine {labels}")
    if result in (PinType.BOOL, PinType.STRING):
        raise ctx.error(f"{result.label} values have no shader arithmetic")
    return result


def _binary(op: str, prefix: str) -> ShaderExpression:
    def render(ctx: "ShaderNodeContext", _: str) -> str:
        result = _operand_type(ctx, "a", "b")
        return f"{ctx.splat('a', result)} {op} {ctx.splat('b', result)}"

    return ShaderExpression(render, prefix)


def _binary_call(fn: str) -> ShaderExpression:
    def render(ctx: "ShaderNodeContext", _: str) -> str:
        result = _operand_type(ctx, "a", "b")
        return f"{fn}({ctx.splat('a', result)}, {ctx.splat('b', result)})"

    return ShaderExpression(render, fn)


def _lerp(ctx: "ShaderNodeContext", _: str) -> str:
    result = _operand_type(ctx, "a", "b")
    return f"mix({ctx.splat('a', result)}, {ctx.splat('b', result)}, {ctx.input('t')})"


def _one_minus(pin: str) -> ShaderExpression:
    return ShaderExpression(lambda ctx, _: f"1.0 - {ctx.input(pin)}", "one_minus")


def _saturate(ctx: "ShaderNodeContext", _: str) -> str:
    return ctx.target.saturate(ctx.input("x"))


def _fresnel(ctx: "ShaderNodeContext", _: str) -> str:
    facing = ctx.target.saturate(f"dot({ctx.input('normal')}, {ctx.input('view')})")
    return f"pow(1.0 - {facing}, {ctx.input('power')})"


def _uv(ctx: "ShaderNodeContext", pin: str) -> str:
    uv = ctx.builtin("uv")
    match pin:
        case "u":
            return f"{uv}.x"
        case "v":
            return f"{uv}.y"
    return uv


def _time(ctx: "ShaderNodeContext", pin: str) -> str:
    time = ctx.builtin("time")
    match pin:
        case "sin_time":
            return f"sin({time})"
        case "cos_time":
            return f"cos({time})"
    return time


MATH_EXPRESSIONS: dict[str, ShaderExpression] = {
    "math/add": _binary("+", "add"),
    "math/subtract": _binary("-", "sub"),
    "math/multiply": _binary("*", "mul"),
    "math/divide": _binary("/", "div"),
    "math/min": _binary_call("min"),
    "math/max": _binary_call("max"),
    "math/lerp": ShaderExpression(_lerp, "lerp"),
    "math/clamp": _call("clamp", "value", "min", "max"),
    "math/abs": _call("abs", "value"),
    "math/sin": _call("sin", "value"),
    "math/cos": _call("cos", "value"),
    "math/sqrt": _call("sqrt", "value"),
    "math/floor": _call("floor", "value"),
    "math/ceil": _call("ceil", "value"),
    "math/fract": _call("fract", "value"),
    "math/one_minus": _one_minus("value"),
    "math/pow": _call("pow", "base", "exponent"),
    "math/float": _passthrough("value"),
    "math/make_vec3": _construct(PinType.VEC3, "x", "y", "z", prefix="vec3"),
    "math/break_vec3": _swizzle("vector", x="x", y="y", z="z"),
    "utility/get_elapsed": _builtin("time"),
}

# =============================================================================
# Surface inputs, vectors and shader math
# =============================================================================

SURFACE_EXPRESSIONS: dict[str, ShaderExpression] = {
    "shader/uv": ShaderExpression(_uv, inline=True),
    "shader/time": ShaderExpression(_time, inline_pins=frozenset({"time"})),
    "shader/world_normal": _builtin("normal"),
    "shader/world_position": _builtin("position"),
    "shader/vertex_color": ShaderExpression(
        lambda ctx, pin: ctx.builtin("vertex_color")
        if pin == "color"
        else f"{ctx.builtin('vertex_color')}.{pin}",
        inline=True,
    ),
    "shader/float": _passthrough("value"),
    "shader/color": ShaderExpression(
        lambda ctx, pin: ctx.input("color") if pin == "color" else f"{ctx.input('color')}.rgb",
        inline=True,
    ),
    "shader/make_vec2": _construct(PinType.VEC2, "x", "y", prefix="vec2"),
    "shader/make_vec3": _construct(PinType.VEC3, "x", "y", "z", prefix="vec3"),
    "shader/make_vec4": _construct(PinType.VEC4, "x", "y", "z", "w", prefix="vec4"),
    "shader/make_color": _construct(PinType.COLOR, "r", "g", "b", "a", prefix="color"),
    "shader/split_vec2": _swizzle("v", x="x", y="y"),
    "shader/split_vec3": _swizzle("v", x="x", y="y", z="z"),
    "shader/split_color": _swizzle("color", r="r", g="g", b="b", a="a"),
    "shader/dot": _call("dot", "a", "b"),
    "shader/cross": _call("cross", "a", "b"),
    "shader/normalize": _call("normalize", "v"),
    "shader/length": _call("length", "v"),
    "shader/distance": _call("distance", "a", "b"),
    "shader/reflect": _call("reflect", "incident", "normal"),
    "shader/fresnel": ShaderExpression(_fresnel, "fresnel"),
    "shader/pow": _call("pow", "base", "exp"),
    "shader/smoothstep": _call("smoothstep", "edge0", "edge1", "x"),
    "shader/step": _call("step", "edge", "x"),
    "shader/fract": _call("fract", "x"),
    "shader/floor": _call("floor", "x"),
    "shader/ceil": _call("ceil", "x"),
    "shader/one_minus": _one_minus("x"),
    "shader/saturate": ShaderExpression(_saturate, "saturate"),
    "shader/sample_texture": ShaderExpression(
        _shared_swizzle(color="", rgb="rgb", r="r", g="g", b="b", a="a"),
        inline=True,
        shared=SharedValue(
            lambda ctx: ctx.target.texture_sample(ctx.texture("texture"), ctx.input("uv")),
            PinType.COLOR,
            "tex",
        ),
    ),
}

# =============================================================================
# Procedural patterns
# =============================================================================


def _scaled_noise(fn: str) -> ShaderExpression:
    return ShaderExpression(
        lambda ctx, _: f"{fn}({ctx.input('uv')} * {ctx.input('scale')})",
        fn.removesuffix("_noise"),
        helpers=(fn,),
    )


def _fbm(ctx: "ShaderNodeContext", _: str) -> str:
    octaves = ctx.target.int_cast(ctx.input("octaves"))
    args = ", ".join(
        ctx.input(pin) for pin in ("frequency", "amplitude", "lacunarity", "persistence")
    )
    return f"fbm_noise({ctx.input('uv')}, {octaves}, {args})"


def _wave_sine(ctx: "ShaderNodeContext", _: str) -> str:
    u = f"{ctx.input('uv')}.x"
    wave = f"sin({u} * {ctx.input('frequency')} + {ctx.input('phase')})"
    return ctx.target.saturate(f"{wave} * {ctx.input('amplitude')} * 0.5 + 0.5")


def _sdf_circle(ctx: "ShaderNodeContext", _: str) -> str:
    return f"distance({ctx.input('uv')}, {ctx.input('center')}) - {ctx.input('radius')}"


PROCEDURAL_EXPRESSIONS: dict[str, ShaderExpression] = {
    "shader/noise_simple": _scaled_noise("simple_noise"),
    "shader/noise_gradient": _scaled_noise("gradient_noise"),
    "shader/noise_voronoi": ShaderExpression(
        _shared_swizzle(distance="x", cell="y"),
        inline=True,
        helpers=("voronoi_noise",),
        shared=SharedValue(
            lambda ctx: f"voronoi_noise({ctx.input('uv')} * {ctx.input('scale')})",
            PinType.VEC2,
            "voronoi",
        ),
    ),
    "shader/noise_fbm": ShaderExpression(_fbm, "fbm", helpers=("fbm_noise",)),
    "shader/checkerboard": _call("checkerboard", "uv", "scale", helpers=("checkerboard",)),
    "shader/gradient": _call(
        "linear_gradient", "uv", "direction", prefix="gradient", helpers=("linear_gradient",)
    ),
    "shader/brick": ShaderExpression(
        lambda ctx, pin: ctx.shared() if pin == "brick" else f"(1.0 - {ctx.shared()})",
        inline=True,
        helpers=("brick_pattern",),
        shared=SharedValue(
            lambda ctx: "brick_pattern({})".format(
                ", ".join(
                    ctx.input(pin) for pin in ("uv", "brick_width", "brick_height", "mortar_size")
                )
            ),
            PinType.FLOAT,
            "brick",
        ),
    ),
    "shader/wave_sine": ShaderExpression(_wave_sine, "wave"),
    "shader/radial_gradient": _call(
        "radial_gradient", "uv", "center", "radius", prefix="radial", helpers=("radial_gradient",)
    ),
    "shader/sdf_circle": ShaderExpression(_sdf_circle, "sdf_circle"),
    "shader/sdf_box": _call("sdf_box", "uv", "center", "size", helpers=("sdf_box",)),
}

SHADER_EXPRESSIONS: dict[str, ShaderExpression] = {
    **MATH_EXPRESSIONS,
    **SURFACE_EXPRESSIONS,
    **PROCEDURAL_EXPRESSIONS,
}
