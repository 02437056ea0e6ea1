"""Math, logic and string nodes shared by script and material graphs."""

from blueprintc.types import (
    BoolValue,
    FloatValue,
    StringValue,
    Vec3Value,
    input_pin,
    output_pin,
)

from .common import ANY, BOOL, FLOAT, STRING, VEC3, define, f

COMPARE_MODES = ("==", "!=", "<", "<=", ">", ">=")


def _binary_any(type_id: str, name: str, a: float, b: float, description: str):
    return define(
        type_id,
        "Math",
        name,
        lambda: [
            input_pin("a", ANY, FloatValue(a)),
            input_pin("b", ANY, FloatValue(b)),
            output_pin("result", ANY),
        ],
        description,
    )


def _unary_float(type_id: str, name: str, description: str, default: float = 0.0):
    return define(
        type_id,
        "Math",
        name,
        lambda: [f("value", default), output_pin("result", FLOAT)],
        description,
    )


NODES = [
    _binary_any("math/add", "Add", 0.0, 0.0, "a + b"),
    _binary_any("math/subtract", "Subtract", 0.0, 0.0, "a - b"),
    _binary_any("math/multiply", "Multiply", 1.0, 1.0, "a * b"),
    _binary_any("math/divide", "Divide", 1.0, 1.0, "a / b"),
    _binary_any("math/min", "Min", 0.0, 0.0, "Component-wise minimum"),
    _binary_any("math/max", "Max", 0.0, 0.0, "Component-wise maximum"),
    define(
        "math/lerp",
        "Math",
        "Lerp",
        lambda: [
            input_pin("a", ANY, FloatValue(0.0)),
            input_pin("b", ANY, FloatValue(1.0)),
            f("t", 0.5),
            output_pin("result", ANY),
        ],
        "Linear interpolation between a and b",
    ),
    define(
        "math/clamp",
        "Math",
        "Clamp",
        lambda: [f("value"), f("min", 0.0), f("max", 1.0), output_pin("result", FLOAT)],
        "Clamps a value to [min, max]",
    ),
    _unary_float("math/abs", "Abs", "Absolute value"),
    _unary_float("math/sin", "Sin", "Sine (radians)"),
    _unary_float("math/cos", "Cos", "Cosine (radians)"),
    _unary_float("math/sqrt", "Sqrt", "Square root"),
    _unary_float("math/floor", "Floor", "Round down"),
    _unary_float("math/ceil", "Ceil", "Round up"),
    _unary_float("math/fract", "Fract", "Fractional part"),
    _unary_float("math/one_minus", "One Minus", "1 - value"),
    define(
        "math/pow",
        "Math",
        "Power",
        lambda: [f("base", 1.0), f("exponent", 2.0), output_pin("result", FLOAT)],
        "base raised to exponent",
    ),
    define(
        "math/float",
        "Math",
        "Float",
        lambda: [f("value"), output_pin("value", FLOAT)],
        "Constant float",
    ),
    define(
        "math/make_vec3",
        "Math",
        "Make Vec3",
        lambda: [f("x"), f("y"), f("z"), output_pin("vector", VEC3)],
        "Builds a Vec3 from components",
    ),
    define(
        "math/break_vec3",
        "Math",
        "Break Vec3",
        lambda: [
            input_pin("vector", VEC3, Vec3Value(0.0, 0.0, 0.0), required=True),
            output_pin("x", FLOAT),
            output_pin("y", FLOAT),
            output_pin("z", FLOAT),
        ],
        "Splits a Vec3 into components",
    ),
    define(
        "logic/bool",
        "Logic",
        "Bool",
        lambda: [input_pin("value", BOOL, BoolValue(False)), output_pin("value", BOOL)],
        "Constant boolean",
    ),
    define(
        "logic/compare",
        "Logic",
        "Compare",
        lambda: [
            input_pin("a", ANY, FloatValue(0.0)),
            input_pin("b", ANY, FloatValue(0.0)),
            input_pin("mode", STRING, StringValue("==")),
            output_pin("result", BOOL),
        ],
        f"Compares a and b ({' '.join(COMPARE_MODES)})",
    ),
    define(
        "logic/and",
        "Logic",
        "And",
        lambda: [
            input_pin("a", BOOL, BoolValue(False)),
            input_pin("b", BOOL, BoolValue(False)),
            output_pin("result", BOOL),
        ],
        "Logical and",
    ),
    define(
        "logic/or",
        "Logic",
        "Or",
        lambda: [
            input_pin("a", BOOL, BoolValue(False)),
            input_pin("b", BOOL, BoolValue(False)),
            output_pin("result", BOOL),
        ],
        "Logical or",
    ),
    define(
        "logic/not",
        "Logic",
        "Not",
        lambda: [input_pin("value", BOOL, BoolValue(False)), output_pin("result", BOOL)],
        "Logical negation",
    ),
    define(
        "string/literal",
        "String",
        "String",
        lambda: [input_pin("value", STRING, StringValue("")), output_pin("value", STRING)],
        "Constant string",
    ),
    define(
        "string/concat",
        "String",
        "Concat",
        lambda: [
            input_pin("a", STRING, StringValue("")),
            input_pin("b", STRING, StringValue("")),
            output_pin("result", STRING),
        ],
        "Joins two strings",
    ),
]
