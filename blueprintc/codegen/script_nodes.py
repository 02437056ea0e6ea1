"""Script (Rhai) forms of node kinds.

Two tables drive the script backend:

* ``EXPRESSIONS`` maps a type id to a ``ScriptExpression`` rendering one
  output pin as an expression. Non-inline expressions are hoisted into a
  ``let <prefix>_<n> = ...;`` binding by the generator.
* ``STATEMENTS`` maps a type id to a function emitting the node's
  statement (or structured block). Nested bodies are followed in place;
  the returned pin name continues the enclosing chain.

Adding a node kind to the script backend means adding an entry here.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from blueprintc.registry.builtin.arithmetic import COMPARE_MODES
from blueprintc.registry.builtin.flow import SEQUENCE_OUTPUTS
from blueprintc.types import (
    AnyValue,
    BoolValue,
    FloatValue,
    PinType,
    PinValue,
    StringValue,
)

if TYPE_CHECKING:
    from blueprintc.codegen.script import ScriptNodeContext


# =============================================================================
# Literals
# =============================================================================


_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def rhai_float(value: float, precision: int = 6) -> str:
    return f"{float(value):.{precision}f}"


def rhai_string(text: str) -> str:
    escaped = "".join(_ESCAPES.get(ch, ch) for ch in text)
    return f'"{escaped}"'


def rhai_literal(value: PinValue, precision: int = 6) -> str:
    """Render a pin value as a Rhai literal."""
    match value:
        case AnyValue(inner=inner):
            return rhai_literal(inner, precision)
        case BoolValue(value=flag):
            return "true" if flag else "false"
        case StringValue(value=text):
            return rhai_string(text)
        case FloatValue(value=number):
            return rhai_float(number, precision)

    args = ", ".join(rhai_float(c, precision) for c in value.components or ())
    constructor = {
        PinType.VEC2: "vec2",
        PinType.VEC3: "vec3",
        PinType.VEC4: "vec4",
        PinType.COLOR: "color",
    }[value.pin_type]
    return f"{constructor}({args})"


def _is_identifier(expr: str) -> bool:
    return expr.isidentifier()


# =============================================================================
# Expressions
# =============================================================================


@dataclass(frozen=True)
class ScriptExpression:
    """Script form of a pure node.

    ``render`` receives the node context and the requested output pin name
    and returns an expression. ``inline`` expressions are referenced
    directly instead of being bound to a local.
    """

    render: Callable[["ScriptNodeContext", str], str]
    prefix: str = "tmp"
    inline: bool = False


def _binary(op: str, prefix: str) -> ScriptExpression:
    return ScriptExpression(lambda ctx, _: f"{ctx.input('a')} {op} {ctx.input('b')}", prefix)


def _call(fn: str, *args: str, prefix: str | None = None) -> ScriptExpression:
    return ScriptExpression(
        lambda ctx, _: f"{fn}({', '.join(ctx.input(a) for a in args)})", prefix or fn
    )


def _passthrough(pin: str) -> ScriptExpression:
    """Constant node: its value input rendered in place."""
    return ScriptExpression(lambda ctx, _: ctx.input(pin), inline=True)


def _lerp(ctx: "ScriptNodeContext", _: str) -> str:
    a, b, t = ctx.input("a"), ctx.input("b"), ctx.input("t")
    return f"{a} + ({b} - {a}) * {t}"


def _break_vec3(ctx: "ScriptNodeContext", pin: str) -> str:
    return f"{ctx.input('vector')}.{pin}"


def _compare(ctx: "ScriptNodeContext", _: str) -> str:
    mode = ctx.literal_string("mode")
    if mode is None:
        raise ctx.error("Compare mode must be a literal, not a connection")
    if mode not in COMPARE_MODES:
        raise ctx.error(f"Unknown compare mode '{mode}'")
    return f"{ctx.input('a')} {mode} {ctx.input('b')}"


def _variable_get(ctx: "ScriptNodeContext", _: str) -> str:
    return ctx.variable_name()


EXPRESSIONS: dict[str, ScriptExpression] = {
    "math/add": _binary("+", "add"),
    "math/subtract": _binary("-", "sub"),
    "math/multiply": _binary("*", "mul"),
    "math/divide": _binary("/", "div"),
    "math/min": _call("min", "a", "b"),
    "math/max": _call("max", "a", "b"),
    "math/lerp": ScriptExpression(_lerp, "lerp"),
    "math/clamp": _call("clamp", "value", "min", "max"),
    "math/abs": _call("abs", "value"),
    "math/sin": _call("sin", "value"),
    "math/cos": _call("cos", "value"),
    "math/sqrt": _call("sqrt", "value"),
    "math/floor": _call("floor", "value"),
    "math/ceil": _call("ceil", "value"),
    "math/fract": _call("fract", "value"),
    "math/one_minus": ScriptExpression(
        lambda ctx, _: f"1.0 - {ctx.input('value')}", "one_minus"
    ),
    "math/pow": _call("pow", "base", "exponent"),
    "math/float": _passthrough("value"),
    "math/make_vec3": _call("vec3", "x", "y", "z"),
    "math/break_vec3": ScriptExpression(_break_vec3, "vec3"),
    "logic/bool": _passthrough("value"),
    "logic/compare": ScriptExpression(_compare, "cmp"),
    "logic/and": _binary("&&", "and"),
    "logic/or": _binary("||", "or"),
    "logic/not": ScriptExpression(lambda ctx, _: f"!{ctx.input('value')}", "not"),
    "string/literal": _passthrough("value"),
    "string/concat": _binary("+", "concat"),
    # Host-provided scope variable
    "utility/get_elapsed": ScriptExpression(lambda ctx, _: "elapsed", inline=True),
    "variable/get": ScriptExpression(_variable_get, inline=True),
}


# =============================================================================
# Statements
# =============================================================================


def _print(ctx: "ScriptNodeContext") -> str:
    message = ctx.input("message")
    if ctx.input_type("message") is not PinType.STRING:
        target = message if _is_identifier(message) else f"({message})"
        message = f"{target}.to_string()"
    ctx.block.add_line(f"print({message});")
    return "then"


def _variable_set(ctx: "ScriptNodeContext") -> str:
    name = ctx.variable_name()
    value = ctx.input("value")
    ctx.block.add_line(f"{name} = {value};")
    ctx.forget_variable(name)
    return "then"


def _branch(ctx: "ScriptNodeContext") -> str | None:
    folded = ctx.literal_bool("condition")
    if folded is not None:
        # Unwired literal condition: only the taken path is emitted
        return "true" if folded else "false"

    block = ctx.block
    condition = ctx.input("condition")
    block.add_line(f"if {condition} {{")
    with block.indented():
        ctx.follow("true", child_scope=True)

    else_mark = block.mark()
    block.add_line("} else {")
    body_mark = block.mark()
    with block.indented():
        ctx.follow("false", child_scope=True)
    if block.mark() == body_mark:
        block.truncate(else_mark)
    block.add_line("}")
    return None


def _sequence(ctx: "ScriptNodeContext") -> None:
    block = ctx.block
    for i in range(SEQUENCE_OUTPUTS):
        pin = f"then_{i}"
        if not ctx.has_flow(pin):
            continue
        start = block.mark()
        block.add_line("{")
        with block.indented():
            ctx.follow(pin, child_scope=True)
        if block.mark() == start + 1:
            block.truncate(start)
        else:
            block.add_line("}")


def _comment(ctx: "ScriptNodeContext") -> None:
    pass


# A statement returns the flow output its chain continues on, if any
STATEMENTS: dict[str, Callable[["ScriptNodeContext"], str | None]] = {
    "utility/print": _print,
    "variable/set": _variable_set,
    "flow/branch": _branch,
    "flow/sequence": _sequence,
    "utility/comment": _comment,
}
