"""Material (shader) nodes: surface inputs, vector helpers, math, outputs."""

from blueprintc.types import (
    ColorValue,
    StringValue,
    Vec2Value,
    Vec3Value,
    input_pin,
    output_pin,
)

from .common import ANY, COLOR, FLOAT, STRING, VEC2, VEC3, VEC4, define, f, rgba, uv_in, v3

PBR_CHANNELS = ("base_color", "metallic", "roughness", "normal", "emissive", "ao", "alpha")
UNLIT_CHANNELS = ("color", "alpha")


def _float_fn(type_id: str, name: str, description: str, *inputs):
    return define(
        type_id,
        "Shader",
        name,
        lambda: [*(f(i) for i in inputs), output_pin("result", FLOAT)],
        description,
    )


INPUT_NODES = [
    define(
        "shader/uv",
        "Shader",
        "UV",
        lambda: [output_pin("uv", VEC2, "UV"), output_pin("u", FLOAT), output_pin("v", FLOAT)],
        "Surface texture coordinate",
    ),
    define(
        "shader/time",
        "Shader",
        "Time",
        lambda: [
            output_pin("time", FLOAT),
            output_pin("sin_time", FLOAT),
            output_pin("cos_time", FLOAT),
        ],
        "Elapsed time in seconds",
    ),
    define(
        "shader/world_normal",
        "Shader",
        "World Normal",
        lambda: [output_pin("normal", VEC3)],
        "Interpolated surface normal",
    ),
    define(
        "shader/world_position",
        "Shader",
        "World Position",
        lambda: [output_pin("position", VEC3)],
        "Fragment position in world space",
    ),
    define(
        "shader/vertex_color",
        "Shader",
        "Vertex Color",
        lambda: [
            output_pin("color", COLOR),
            output_pin("r", FLOAT),
            output_pin("g", FLOAT),
            output_pin("b", FLOAT),
            output_pin("a", FLOAT),
        ],
        "Interpolated vertex color",
    ),
    define(
        "shader/float",
        "Shader",
        "Float",
        lambda: [f("value"), output_pin("value", FLOAT)],
        "Constant float",
    ),
    define(
        "shader/color",
        "Shader",
        "Color",
        lambda: [
            rgba("color", 1.0, 1.0, 1.0),
            output_pin("color", COLOR),
            output_pin("rgb", VEC3, "RGB"),
        ],
        "Constant color",
    ),
]

VECTOR_NODES = [
    define(
        "shader/make_vec2",
        "Shader",
        "Make Vec2",
        lambda: [f("x"), f("y"), output_pin("v", VEC2)],
    ),
    define(
        "shader/make_vec3",
        "Shader",
        "Make Vec3",
        lambda: [f("x"), f("y"), f("z"), output_pin("v", VEC3)],
    ),
    define(
        "shader/make_vec4",
        "Shader",
        "Make Vec4",
        lambda: [f("x"), f("y"), f("z"), f("w", 1.0), output_pin("v", VEC4)],
    ),
    define(
        "shader/make_color",
        "Shader",
        "Make Color",
        lambda: [f("r"), f("g"), f("b"), f("a", 1.0), output_pin("color", COLOR)],
    ),
    define(
        "shader/split_vec2",
        "Shader",
        "Split Vec2",
        lambda: [
            input_pin("v", VEC2, Vec2Value(0.0, 0.0), required=True),
            output_pin("x", FLOAT),
            output_pin("y", FLOAT),
        ],
    ),
    define(
        "shader/split_vec3",
        "Shader",
        "Split Vec3",
        lambda: [
            input_pin("v", VEC3, Vec3Value(0.0, 0.0, 0.0), required=True),
            output_pin("x", FLOAT),
            output_pin("y", FLOAT),
            output_pin("z", FLOAT),
        ],
    ),
    define(
        "shader/split_color",
        "Shader",
        "Split Color",
        lambda: [
            input_pin("color", COLOR, ColorValue(1.0, 1.0, 1.0, 1.0), required=True),
            output_pin("r", FLOAT),
            output_pin("g", FLOAT),
            output_pin("b", FLOAT),
            output_pin("a", FLOAT),
        ],
    ),
]

MATH_NODES = [
    define(
        "shader/dot",
        "Shader",
        "Dot",
        lambda: [v3("a"), v3("b"), output_pin("result", FLOAT)],
    ),
    define(
        "shader/cross",
        "Shader",
        "Cross",
        lambda: [v3("a"), v3("b"), output_pin("result", VEC3)],
    ),
    define(
        "shader/normalize",
        "Shader",
        "Normalize",
        lambda: [v3("v", 0.0, 0.0, 1.0), output_pin("result", VEC3)],
    ),
    define(
        "shader/length",
        "Shader",
        "Length",
        lambda: [v3("v"), output_pin("result", FLOAT)],
    ),
    define(
        "shader/distance",
        "Shader",
        "Distance",
        lambda: [v3("a"), v3("b"), output_pin("result", FLOAT)],
    ),
    define(
        "shader/reflect",
        "Shader",
        "Reflect",
        lambda: [v3("incident"), v3("normal", 0.0, 0.0, 1.0), output_pin("result", VEC3)],
    ),
    define(
        "shader/fresnel",
        "Shader",
        "Fresnel",
        lambda: [
            v3("normal", 0.0, 0.0, 1.0, ambient="normal"),
            v3("view", 0.0, 0.0, 1.0),
            f("power", 5.0),
            output_pin("result", FLOAT),
        ],
        "Rim factor: (1 - saturate(dot(normal, view)))^power",
    ),
    define(
        "shader/pow",
        "Shader",
        "Power",
        lambda: [f("base", 1.0), f("exp", 2.0), output_pin("result", FLOAT)],
    ),
    define(
        "shader/smoothstep",
        "Shader",
        "Smoothstep",
        lambda: [f("edge0"), f("edge1", 1.0), f("x"), output_pin("result", FLOAT)],
    ),
    define(
        "shader/step",
        "Shader",
        "Step",
        lambda: [f("edge", 0.5), f("x"), output_pin("result", FLOAT)],
    ),
    _float_fn("shader/fract", "Fract", "Fractional part", "x"),
    _float_fn("shader/floor", "Floor", "Round down", "x"),
    _float_fn("shader/ceil", "Ceil", "Round up", "x"),
    _float_fn("shader/one_minus", "One Minus", "1 - x", "x"),
    _float_fn("shader/saturate", "Saturate", "Clamp to [0, 1]", "x"),
]

TEXTURE_NODES = [
    define(
        "shader/sample_texture",
        "Shader",
        "Sample Texture",
        lambda: [
            input_pin("texture", STRING, StringValue(""), required=True),
            uv_in(),
            output_pin("color", COLOR),
            output_pin("rgb", VEC3, "RGB"),
            output_pin("r", FLOAT),
            output_pin("g", FLOAT),
            output_pin("b", FLOAT),
            output_pin("a", FLOAT),
        ],
        "Samples a bound texture; the texture input is an asset handle",
    ),
]

OUTPUT_NODES = [
    define(
        "shader/pbr_output",
        "Shader",
        "PBR Output",
        lambda: [
            input_pin("base_color", ANY, ColorValue(1.0, 1.0, 1.0, 1.0)),
            f("metallic", 0.0),
            f("roughness", 0.5),
            v3("normal", 0.0, 0.0, 1.0, ambient="normal"),
            rgba("emissive", 0.0, 0.0, 0.0),
            f("ao", 1.0, label="AO"),
            f("alpha", 1.0),
        ],
        "Physically based material output",
        is_output=True,
    ),
    define(
        "shader/unlit_output",
        "Shader",
        "Unlit Output",
        lambda: [input_pin("color", ANY, ColorValue(1.0, 1.0, 1.0, 1.0)), f("alpha", 1.0)],
        "Unlit material output",
        is_output=True,
    ),
]

NODES = INPUT_NODES + VECTOR_NODES + MATH_NODES + TEXTURE_NODES + OUTPUT_NODES
