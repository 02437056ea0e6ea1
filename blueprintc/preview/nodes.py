"""Preview forms of node kinds.

``EVALUATORS`` maps a type id to a function computing one output pin from
a ``NodeEval`` view of the node. A function may return None, which callers
treat as "use the channel default". Kinds missing from the table (flow
nodes, texture sampling) evaluate to None.
"""

import math
from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np

from blueprintc.graph.analysis import broadcast
from blueprintc.preview import noise
from blueprintc.registry.builtin.arithmetic import COMPARE_MODES
from blueprintc.types import (
    BoolValue,
    ColorValue,
    FloatValue,
    PinValue,
    StringValue,
    Vec2Value,
    Vec3Value,
    Vec4Value,
    from_components,
    unwrap,
)

if TYPE_CHECKING:
    from blueprintc.preview.evaluator import NodeEval

NodeEvaluator = Callable[["NodeEval", str], PinValue | None]

# =============================================================================
# Component-wise arithmetic
# =============================================================================


def combine(
    a: PinValue | None, b: PinValue | None, op: Callable[[float, float], float]
) -> PinValue | None:
    """Apply ``op`` component-wise, broadcasting a Float over a vector."""
    if a is None or b is None:
        return None
    a, b = unwrap(a), unwrap(b)
    if a.components is None or b.components is None:
        return None
    result_type = broadcast(a.pin_type, b.pin_type)
    if result_type is None:
        return None
    size = result_type.size
    xs = a.components * size if len(a.components) == 1 else a.components
    ys = b.components * size if len(b.components) == 1 else b.components
    return from_components(result_type, tuple(op(x, y) for x, y in zip(xs, ys)))


def _divide(x: float, y: float) -> float:
    return x / y if y != 0.0 else 0.0


def _pow(base: float, exponent: float) -> float:
    if base < 0.0 and not float(exponent).is_integer():
        return 0.0
    try:
        return math.pow(base, exponent)
    except (OverflowError, ValueError):
        return math.inf


def _binary(op: Callable[[float, float], float]) -> NodeEvaluator:
    return lambda ev, _: combine(ev.input("a"), ev.input("b"), op)


def _unary(op: Callable[[float], float], pin: str = "value") -> NodeEvaluator:
    return lambda ev, _: FloatValue(float(op(ev.float(pin))))


def _lerp(ev: "NodeEval", _: str) -> PinValue | None:
    t = ev.float("t")
    return combine(ev.input("a"), ev.input("b"), lambda x, y: x + (y - x) * t)


def _compare(ev: "NodeEval", _: str) -> PinValue | None:
    mode = ev.string("mode")
    if mode not in COMPARE_MODES:
        return None
    a, b = ev.input("a"), ev.input("b")
    if a is None or b is None:
        return None
    a, b = unwrap(a), unwrap(b)
    if mode in ("==", "!="):
        equal = a == b
        return BoolValue(equal if mode == "==" else not equal)
    if not (isinstance(a, FloatValue) and isinstance(b, FloatValue)):
        return None
    x, y = a.value, b.value
    result = {"<": x < y, "<=": x <= y, ">": x > y, ">=": x >= y}[mode]
    return BoolValue(result)


def _concat(ev: "NodeEval", _: str) -> PinValue | None:
    a, b = ev.input("a"), ev.input("b")
    if isinstance(a, StringValue) and isinstance(b, StringValue):
        return StringValue(a.value + b.value)
    return None


def _variable_get(ev: "NodeEval", _: str) -> PinValue | None:
    name = ev.string("var_name")
    variable = ev.graph.get_variable(name) if name else None
    return variable.default if variable is not None else None


MATH_EVALUATORS: dict[str, NodeEvaluator] = {
    "math/add": _binary(lambda x, y: x + y),
    "math/subtract": _binary(lambda x, y: x - y),
    "math/multiply": _binary(lambda x, y: x * y),
    "math/divide": _binary(_divide),
    "math/min": _binary(min),
    "math/max": _binary(max),
    "math/lerp": _lerp,
    "math/clamp": lambda ev, _: FloatValue(
        min(max(ev.float("value"), ev.float("min")), ev.float("max"))
    ),
    "math/abs": _unary(abs),
    "math/sin": _unary(math.sin),
    "math/cos": _unary(math.cos),
    "math/sqrt": _unary(lambda x: math.sqrt(max(x, 0.0))),
    "math/floor": _unary(math.floor),
    "math/ceil": _unary(math.ceil),
    "math/fract": _unary(noise.fract),
    "math/one_minus": _unary(lambda x: 1.0 - x),
    "math/pow": lambda ev, _: FloatValue(_pow(ev.float("base"), ev.float("exponent"))),
    "math/float": lambda ev, _: ev.input("value"),
    "math/make_vec3": lambda ev, _: Vec3Value(ev.float("x"), ev.float("y"), ev.float("z")),
    "math/break_vec3": lambda ev, pin: FloatValue(
        ev.vector("vector", 3)["xyz".index(pin)]
    ),
    "logic/bool": lambda ev, _: ev.input("value"),
    "logic/compare": _compare,
    "logic/and": lambda ev, _: BoolValue(ev.bool("a") and ev.bool("b")),
    "logic/or": lambda ev, _: BoolValue(ev.bool("a") or ev.bool("b")),
    "logic/not": lambda ev, _: BoolValue(not ev.bool("value")),
    "string/literal": lambda ev, _: ev.input("value"),
    "string/concat": _concat,
    "utility/get_elapsed": lambda ev, _: FloatValue(ev.context.time),
    "variable/get": _variable_get,
}

# =============================================================================
# Surface inputs, vectors and shader math
# =============================================================================


def _uv(ev: "NodeEval", pin: str) -> PinValue:
    u, v = ev.context.uv
    match pin:
        case "u":
            return FloatValue(u)
        case "v":
            return FloatValue(v)
    return Vec2Value(u, v)


def _time(ev: "NodeEval", pin: str) -> PinValue:
    t = ev.context.time
    match pin:
        case "sin_time":
            return FloatValue(math.sin(t))
        case "cos_time":
            return FloatValue(math.cos(t))
    return FloatValue(t)


def _vertex_color(ev: "NodeEval", pin: str) -> PinValue:
    color = ev.context.vertex_color
    if pin == "color":
        return ColorValue(*color)
    return FloatValue(color["rgba".index(pin)])


def _color(ev: "NodeEval", pin: str) -> PinValue:
    r, g, b, a = ev.vector("color", 4)
    return ColorValue(r, g, b, a) if pin == "color" else Vec3Value(r, g, b)


def _split(source: str, size: int, names: str) -> NodeEvaluator:
    return lambda ev, pin: FloatValue(ev.vector(source, size)[names.index(pin)])


def _vec3_result(array: np.ndarray) -> Vec3Value:
    return Vec3Value(*(float(c) for c in array))


def _normalize(ev: "NodeEval", _: str) -> PinValue:
    v = np.asarray(ev.vector("v", 3))
    length = np.linalg.norm(v)
    return _vec3_result(v / length if length > 0.0 else v)


def _reflect(ev: "NodeEval", _: str) -> PinValue:
    incident = np.asarray(ev.vector("incident", 3))
    normal = np.asarray(ev.vector("normal", 3))
    return _vec3_result(incident - 2.0 * np.dot(normal, incident) * normal)


def _fresnel(ev: "NodeEval", _: str) -> PinValue:
    facing = float(np.dot(ev.vector("normal", 3), ev.vector("view", 3)))
    return FloatValue(_pow(1.0 - min(max(facing, 0.0), 1.0), ev.float("power")))


def _smoothstep(ev: "NodeEval", _: str) -> PinValue:
    edge0, edge1, x = ev.float("edge0"), ev.float("edge1"), ev.float("x")
    if edge1 == edge0:
        return FloatValue(0.0 if x < edge0 else 1.0)
    t = min(max((x - edge0) / (edge1 - edge0), 0.0), 1.0)
    return FloatValue(noise.smooth(t))


SURFACE_EVALUATORS: dict[str, NodeEvaluator] = {
    "shader/uv": _uv,
    "shader/time": _time,
    "shader/world_normal": lambda ev, _: Vec3Value(*ev.context.normal),
    "shader/world_position": lambda ev, _: Vec3Value(*ev.context.position),
    "shader/vertex_color": _vertex_color,
    "shader/float": lambda ev, _: ev.input("value"),
    "shader/color": _color,
    "shader/make_vec2": lambda ev, _: Vec2Value(ev.float("x"), ev.float("y")),
    "shader/make_vec3": lambda ev, _: Vec3Value(ev.float("x"), ev.float("y"), ev.float("z")),
    "shader/make_vec4": lambda ev, _: Vec4Value(
        ev.float("x"), ev.float("y"), ev.float("z"), ev.float("w")
    ),
    "shader/make_color": lambda ev, _: ColorValue(
        ev.float("r"), ev.float("g"), ev.float("b"), ev.float("a")
    ),
    "shader/split_vec2": _split("v", 2, "xy"),
    "shader/split_vec3": _split("v", 3, "xyz"),
    "shader/split_color": _split("color", 4, "rgba"),
    "shader/dot": lambda ev, _: FloatValue(
        float(np.dot(ev.vector("a", 3), ev.vector("b", 3)))
    ),
    "shader/cross": lambda ev, _: _vec3_result(
        np.cross(ev.vector("a", 3), ev.vector("b", 3))
    ),
    "shader/normalize": _normalize,
    "shader/length": lambda ev, _: FloatValue(float(np.linalg.norm(ev.vector("v", 3)))),
    "shader/distance": lambda ev, _: FloatValue(
        float(np.linalg.norm(np.subtract(ev.vector("a", 3), ev.vector("b", 3))))
    ),
    "shader/reflect": _reflect,
    "shader/fresnel": _fresnel,
    "shader/pow": lambda ev, _: FloatValue(_pow(ev.float("base"), ev.float("exp"))),
    "shader/smoothstep": _smoothstep,
    "shader/step": lambda ev, _: FloatValue(0.0 if ev.float("x") < ev.float("edge") else 1.0),
    "shader/fract": _unary(noise.fract, "x"),
    "shader/floor": _unary(math.floor, "x"),
    "shader/ceil": _unary(math.ceil, "x"),
    "shader/one_minus": _unary(lambda x: 1.0 - x, "x"),
    "shader/saturate": _unary(lambda x: min(max(x, 0.0), 1.0), "x"),
}

# =============================================================================
# Procedural patterns
# =============================================================================


def _scaled(fn: Callable[[float, float], float]) -> NodeEvaluator:
    def evaluate(ev: "NodeEval", _: str) -> PinValue:
        u, v = ev.vector("uv", 2)
        scale = ev.float("scale")
        return FloatValue(fn(u * scale, v * scale))

    return evaluate


def _voronoi(ev: "NodeEval", pin: str) -> PinValue:
    u, v = ev.vector("uv", 2)
    scale = ev.float("scale")
    distance, cell = noise.voronoi_noise(u * scale, v * scale)
    return FloatValue(cell if pin == "cell" else distance)


def _fbm(ev: "NodeEval", _: str) -> PinValue:
    u, v = ev.vector("uv", 2)
    return FloatValue(
        noise.fbm_noise(
            u,
            v,
            int(ev.float("octaves")),
            ev.float("frequency"),
            ev.float("amplitude"),
            ev.float("lacunarity"),
            ev.float("persistence"),
        )
    )


def _brick(ev: "NodeEval", pin: str) -> PinValue:
    u, v = ev.vector("uv", 2)
    brick = noise.brick_pattern(
        u, v, ev.float("brick_width"), ev.float("brick_height"), ev.float("mortar_size")
    )
    return FloatValue(1.0 - brick if pin == "mortar" else brick)


PROCEDURAL_EVALUATORS: dict[str, NodeEvaluator] = {
    "shader/noise_simple": _scaled(noise.simple_noise),
    "shader/noise_gradient": _scaled(noise.gradient_noise),
    "shader/noise_voronoi": _voronoi,
    "shader/noise_fbm": _fbm,
    "shader/checkerboard": lambda ev, _: FloatValue(
        noise.checkerboard(*ev.vector("uv", 2), ev.float("scale"))
    ),
    "shader/gradient": lambda ev, _: FloatValue(
        noise.linear_gradient(*ev.vector("uv", 2), *ev.vector("direction", 2))
    ),
    "shader/brick": _brick,
    "shader/wave_sine": lambda ev, _: FloatValue(
        noise.wave_sine(
            ev.vector("uv", 2)[0], ev.float("frequency"), ev.float("amplitude"), ev.float("phase")
        )
    ),
    "shader/radial_gradient": lambda ev, _: FloatValue(
        noise.radial_gradient(*ev.vector("uv", 2), *ev.vector("center", 2), ev.float("radius"))
    ),
    "shader/sdf_circle": lambda ev, _: FloatValue(
        noise.sdf_circle(*ev.vector("uv", 2), *ev.vector("center", 2), ev.float("radius"))
    ),
    "shader/sdf_box": lambda ev, _: FloatValue(
        noise.sdf_box(*ev.vector("uv", 2), *ev.vector("center", 2), *ev.vector("size", 2))
    ),
}

EVALUATORS: dict[str, NodeEvaluator] = {
    **MATH_EVALUATORS,
    **SURFACE_EVALUATORS,
    **PROCEDURAL_EVALUATORS,
}
