"""Procedural pattern nodes (noise, patterns, signed distance fields)."""

from blueprintc.types import output_pin

from .common import FLOAT, define, f, uv_in, v2

PROCEDURAL_TYPES = frozenset(
    {
        "shader/noise_simple",
        "shader/noise_gradient",
        "shader/noise_voronoi",
        "shader/noise_fbm",
        "shader/checkerboard",
        "shader/gradient",
        "shader/brick",
        "shader/wave_sine",
        "shader/radial_gradient",
        "shader/sdf_circle",
        "shader/sdf_box",
    }
)


def _scaled(type_id: str, name: str, scale: float, description: str, outputs=("value",)):
    return define(
        type_id,
        "Shader",
        name,
        lambda: [uv_in(), f("scale", scale), *(output_pin(o, FLOAT) for o in outputs)],
        description,
    )


NODES = [
    _scaled("shader/noise_simple", "Simple Noise", 10.0, "Smoothed value noise"),
    _scaled("shader/noise_gradient", "Gradient Noise", 10.0, "Perlin-like gradient noise"),
    _scaled(
        "shader/noise_voronoi",
        "Voronoi Noise",
        5.0,
        "Cellular noise: distance to the nearest feature point and its cell id",
        outputs=("distance", "cell"),
    ),
    define(
        "shader/noise_fbm",
        "Shader",
        "FBM Noise",
        lambda: [
            uv_in(),
            f("octaves", 4.0),
            f("frequency", 1.0),
            f("amplitude", 0.5),
            f("lacunarity", 2.0),
            f("persistence", 0.5),
            output_pin("value", FLOAT),
        ],
        "Fractal Brownian motion over gradient noise (at most 8 octaves)",
    ),
    _scaled("shader/checkerboard", "Checkerboard", 2.0, "Alternating 0/1 squares"),
    define(
        "shader/gradient",
        "Shader",
        "Gradient",
        lambda: [uv_in(), v2("direction", 0.0, 1.0), output_pin("value", FLOAT)],
        "Linear ramp along a direction",
    ),
    define(
        "shader/brick",
        "Shader",
        "Brick",
        lambda: [
            uv_in(),
            f("brick_width", 0.5),
            f("brick_height", 0.25),
            f("mortar_size", 0.05),
            output_pin("brick", FLOAT),
            output_pin("mortar", FLOAT),
        ],
        "Running-bond brick mask; odd rows are offset by half a brick",
    ),
    define(
        "shader/wave_sine",
        "Shader",
        "Sine Wave",
        lambda: [
            uv_in(),
            f("frequency", 5.0),
            f("amplitude", 1.0),
            f("phase", 0.0),
            output_pin("value", FLOAT),
        ],
        "Sine stripes along u, remapped to [0, 1]",
    ),
    define(
        "shader/radial_gradient",
        "Shader",
        "Radial Gradient",
        lambda: [
            uv_in(),
            v2("center", 0.5, 0.5),
            f("radius", 0.5),
            output_pin("value", FLOAT),
        ],
        "Distance from a center divided by radius",
    ),
    define(
        "shader/sdf_circle",
        "Shader",
        "SDF Circle",
        lambda: [
            uv_in(),
            v2("center", 0.5, 0.5),
            f("radius", 0.25),
            output_pin("distance", FLOAT),
        ],
        "Signed distance to a circle",
    ),
    define(
        "shader/sdf_box",
        "Shader",
        "SDF Box",
        lambda: [
            uv_in(),
            v2("center", 0.5, 0.5),
            v2("size", 0.25, 0.25),
            output_pin("distance", FLOAT),
        ],
        "Signed distance to an axis-aligned box (size is the half extent)",
    ),
]
