"""Control-flow, utility and variable nodes."""

from blueprintc.types import BoolValue, StringValue, input_pin, output_pin

from .common import ANY, BOOL, FLOAT, STRING, define, exec_in, then_out

SEQUENCE_OUTPUTS = 4

NODES = [
    define(
        "flow/branch",
        "Flow",
        "Branch",
        lambda: [
            exec_in(),
            input_pin("condition", BOOL, BoolValue(False)),
            then_out("true"),
            then_out("false"),
        ],
        "Runs the true or false path depending on a condition",
    ),
    define(
        "flow/sequence",
        "Flow",
        "Sequence",
        lambda: [exec_in()] + [then_out(f"then_{i}") for i in range(SEQUENCE_OUTPUTS)],
        "Runs each connected output in order",
    ),
    define(
        "utility/print",
        "Utility",
        "Print",
        lambda: [
            exec_in(),
            input_pin("message", ANY, StringValue("Hello")),
            then_out(),
        ],
        "Prints a message to the console",
    ),
    define(
        "utility/comment",
        "Utility",
        "Comment",
        lambda: [],
        "Free-form note; ignored by the compilers",
        is_comment=True,
    ),
    define(
        "utility/get_elapsed",
        "Utility",
        "Get Elapsed Time",
        lambda: [output_pin("elapsed", FLOAT)],
        "Seconds since the script started",
    ),
    define(
        "variable/get",
        "Variables",
        "Get Variable",
        lambda: [
            input_pin("var_name", STRING, StringValue(""), label="Name"),
            output_pin("value", ANY),
        ],
        "Reads a graph variable",
    ),
    define(
        "variable/set",
        "Variables",
        "Set Variable",
        lambda: [
            exec_in(),
            input_pin("var_name", STRING, StringValue(""), label="Name"),
            input_pin("value", ANY, required=True),
            then_out(),
        ],
        "Writes a graph variable",
    ),
]
