"""Shader helper functions for procedural nodes.

Each helper is stored once per target language together with the helpers
it calls. The generator collects the helpers used by a material and emits
them in dependency order, each exactly once.

The helpers compute the same values as the preview evaluator
(``blueprintc.preview.noise``): a sine based hash, smoothstep
interpolation and floor based ``fract``.
"""

from dataclasses import dataclass

from blueprintc.graph.analysis import topological_sort


@dataclass(frozen=True)
class ShaderHelper:
    name: str
    wgsl: str
    glsl: str
    requires: tuple[str, ...] = ()

    def source(self, target_name: str) -> str:
        match target_name:
            case "wgsl":
                return self.wgsl
            case "glsl":
                return self.glsl
            case _:
                raise ValueError(f"No helper source for target: {target_name}")


# =============================================================================
# Hashing and noise
# =============================================================================

HASH21 = ShaderHelper(
    name="hash21",
    wgsl="""
fn hash21(p: vec2<f32>) -> f32 {
    return fract(sin(dot(p, vec2<f32>(12.9898, 78.233))) * 43758.5453);
}
""",
    glsl="""
float hash21(vec2 p) {
    return fract(sin(dot(p, vec2(12.9898, 78.233))) * 43758.5453);
}
""",
)

SIMPLE_NOISE = ShaderHelper(
    name="simple_noise",
    requires=("hash21",),
    wgsl="""
fn simple_noise(p: vec2<f32>) -> f32 {
    let i = floor(p);
    let f = fract(p);
    let u = f * f * (3.0 - 2.0 * f);
    let a = hash21(i);
    let b = hash21(i + vec2<f32>(1.0, 0.0));
    let c = hash21(i + vec2<f32>(0.0, 1.0));
    let d = hash21(i + vec2<f32>(1.0, 1.0));
    return mix(mix(a, b, u.x), mix(c, d, u.x), u.y);
}
""",
    glsl="""
float simple_noise(vec2 p) {
    vec2 i = floor(p);
    vec2 f = fract(p);
    vec2 u = f * f * (3.0 - 2.0 * f);
    float a = hash21(i);
    float b = hash21(i + vec2(1.0, 0.0));
    float c = hash21(i + vec2(0.0, 1.0));
    float d = hash21(i + vec2(1.0, 1.0));
    return mix(mix(a, b, u.x), mix(c, d, u.x), u.y);
}
""",
)

GRADIENT_DOT = ShaderHelper(
    name="gradient_dot",
    requires=("hash21",),
    wgsl="""
fn gradient_dot(i: vec2<f32>, f: vec2<f32>, o: vec2<f32>) -> f32 {
    let angle = hash21(i + o) * 6.283185307;
    return dot(vec2<f32>(cos(angle), sin(angle)), f - o);
}
""",
    glsl="""
float gradient_dot(vec2 i, vec2 f, vec2 o) {
    float angle = hash21(i + o) * 6.283185307;
    return dot(vec2(cos(angle), sin(angle)), f - o);
}
""",
)

GRADIENT_NOISE = ShaderHelper(
    name="gradient_noise",
    requires=("gradient_dot",),
    wgsl="""
fn gradient_noise(p: vec2<f32>) -> f32 {
    let i = floor(p);
    let f = fract(p);
    let u = f * f * (3.0 - 2.0 * f);
    let n00 = gradient_dot(i, f, vec2<f32>(0.0, 0.0));
    let n10 = gradient_dot(i, f, vec2<f32>(1.0, 0.0));
    let n01 = gradient_dot(i, f, vec2<f32>(0.0, 1.0));
    let n11 = gradient_dot(i, f, vec2<f32>(1.0, 1.0));
    return mix(mix(n00, n10, u.x), mix(n01, n11, u.x), u.y) * 0.5 + 0.5;
}
""",
    glsl="""
float gradient_noise(vec2 p) {
    vec2 i = floor(p);
    vec2 f = fract(p);
    vec2 u = f * f * (3.0 - 2.0 * f);
    float n00 = gradient_dot(i, f, vec2(0.0, 0.0));
    float n10 = gradient_dot(i, f, vec2(1.0, 0.0));
    float n01 = gradient_dot(i, f, vec2(0.0, 1.0));
    float n11 = gradient_dot(i, f, vec2(1.0, 1.0));
    return mix(mix(n00, n10, u.x), mix(n01, n11, u.x), u.y) * 0.5 + 0.5;
}
""",
)

VORONOI_NOISE = ShaderHelper(
    name="voronoi_noise",
    requires=("hash21",),
    wgsl="""
// Returns (distance to nearest feature point, nearest cell id)
fn voronoi_noise(p: vec2<f32>) -> vec2<f32> {
    let i = floor(p);
    let f = fract(p);
    var min_dist = 1.0;
    var cell_id = 0.0;
    for (var y = -1; y <= 1; y = y + 1) {
        for (var x = -1; x <= 1; x = x + 1) {
            let offset = vec2<f32>(f32(x), f32(y));
            let cell = i + offset;
            let feature = vec2<f32>(hash21(cell), hash21(cell + vec2<f32>(0.5, 0.5)));
            let dist = length(offset + feature - f);
            if (dist < min_dist) {
                min_dist = dist;
                cell_id = hash21(cell);
            }
        }
    }
    return vec2<f32>(min_dist, cell_id);
}
""",
    glsl="""
// Returns (distance to nearest feature point, nearest cell id)
vec2 voronoi_noise(vec2 p) {
    vec2 i = floor(p);
    vec2 f = fract(p);
    float min_dist = 1.0;
    float cell_id = 0.0;
    for (int y = -1; y <= 1; y++) {
        for (int x = -1; x <= 1; x++) {
            vec2 offset = vec2(float(x), float(y));
            vec2 cell = i + offset;
            vec2 feature = vec2(hash21(cell), hash21(cell + vec2(0.5, 0.5)));
            float dist = length(offset + feature - f);
            if (dist < min_dist) {
                min_dist = dist;
                cell_id = hash21(cell);
            }
        }
    }
    return vec2(min_dist, cell_id);
}
""",
)

FBM_NOISE = ShaderHelper(
    name="fbm_noise",
    requires=("gradient_noise",),
    wgsl="""
fn fbm_noise(p: vec2<f32>, octaves: i32, frequency: f32, amplitude: f32, lacunarity: f32, persistence: f32) -> f32 {
    var value = 0.0;
    var freq = frequency;
    var amp = amplitude;
    var max_amp = 0.0;
    for (var octave = 0; octave < min(octaves, 8); octave = octave + 1) {
        value = value + gradient_noise(p * freq) * amp;
        max_amp = max_amp + amp;
        freq = freq * lacunarity;
        amp = amp * persistence;
    }
    if (max_amp <= 0.0) {
        return 0.5;
    }
    return value / max_amp;
}
""",
    glsl="""
float fbm_noise(vec2 p, int octaves, float frequency, float amplitude, float lacunarity, float persistence) {
    float value = 0.0;
    float freq = frequency;
    float amp = amplitude;
    float max_amp = 0.0;
    for (int octave = 0; octave < min(octaves, 8); octave++) {
        value += gradient_noise(p * freq) * amp;
        max_amp += amp;
        freq *= lacunarity;
        amp *= persistence;
    }
    if (max_amp <= 0.0) {
        return 0.5;
    }
    return value / max_amp;
}
""",
)

# =============================================================================
# Patterns
# =============================================================================

CHECKERBOARD = ShaderHelper(
    name="checkerboard",
    wgsl="""
fn checkerboard(uv: vec2<f32>, scale: f32) -> f32 {
    let cell = floor(uv * scale);
    return abs((cell.x + cell.y) % 2.0);
}
""",
    glsl="""
float checkerboard(vec2 uv, float scale) {
    vec2 cell = floor(uv * scale);
    return abs(mod(cell.x + cell.y, 2.0));
}
""",
)

LINEAR_GRADIENT = ShaderHelper(
    name="linear_gradient",
    wgsl="""
fn linear_gradient(uv: vec2<f32>, direction: vec2<f32>) -> f32 {
    let len = length(direction);
    if (len <= 0.0) {
        return 0.5;
    }
    return saturate(dot(uv, direction / len));
}
""",
    glsl="""
float linear_gradient(vec2 uv, vec2 direction) {
    float len = length(direction);
    if (len <= 0.0) {
        return 0.5;
    }
    return clamp(dot(uv, direction / len), 0.0, 1.0);
}
""",
)

BRICK_PATTERN = ShaderHelper(
    name="brick_pattern",
    wgsl="""
// 1.0 inside a brick, 0.0 in the mortar; odd rows are offset by half a brick
fn brick_pattern(uv: vec2<f32>, brick_width: f32, brick_height: f32, mortar: f32) -> f32 {
    if (brick_width <= 0.0 || brick_height <= 0.0) {
        return 0.0;
    }
    let row = floor(uv.y / brick_height);
    let offset = select(0.0, 0.5, abs(row % 2.0) > 0.5);
    let x = fract(uv.x / brick_width + offset);
    let y = fract(uv.y / brick_height);
    if (x >= mortar && x <= 1.0 - mortar && y >= mortar && y <= 1.0 - mortar) {
        return 1.0;
    }
    return 0.0;
}
""",
    glsl="""
// 1.0 inside a brick, 0.0 in the mortar; odd rows are offset by half a brick
float brick_pattern(vec2 uv, float brick_width, float brick_height, float mortar) {
    if (brick_width <= 0.0 || brick_height <= 0.0) {
        return 0.0;
    }
    float row = floor(uv.y / brick_height);
    float offset = abs(mod(row, 2.0)) > 0.5 ? 0.5 : 0.0;
    float x = fract(uv.x / brick_width + offset);
    float y = fract(uv.y / brick_height);
    if (x >= mortar && x <= 1.0 - mortar && y >= mortar && y <= 1.0 - mortar) {
        return 1.0;
    }
    return 0.0;
}
""",
)

RADIAL_GRADIENT = ShaderHelper(
    name="radial_gradient",
    wgsl="""
fn radial_gradient(uv: vec2<f32>, center: vec2<f32>, radius: f32) -> f32 {
    if (radius <= 0.0) {
        return 1.0;
    }
    return saturate(distance(uv, center) / radius);
}
""",
    glsl="""
float radial_gradient(vec2 uv, vec2 center, float radius) {
    if (radius <= 0.0) {
        return 1.0;
    }
    return clamp(distance(uv, center) / radius, 0.0, 1.0);
}
""",
)

SDF_BOX = ShaderHelper(
    name="sdf_box",
    wgsl="""
fn sdf_box(uv: vec2<f32>, center: vec2<f32>, size: vec2<f32>) -> f32 {
    let d = abs(uv - center) - size;
    return length(max(d, vec2<f32>(0.0, 0.0))) + min(max(d.x, d.y), 0.0);
}
""",
    glsl="""
float sdf_box(vec2 uv, vec2 center, vec2 size) {
    vec2 d = abs(uv - center) - size;
    return length(max(d, vec2(0.0))) + min(max(d.x, d.y), 0.0);
}
""",
)

HELPERS: dict[str, ShaderHelper] = {
    helper.name: helper
    for helper in (
        HASH21,
        SIMPLE_NOISE,
        GRADIENT_DOT,
        GRADIENT_NOISE,
        VORONOI_NOISE,
        FBM_NOISE,
        CHECKERBOARD,
        LINEAR_GRADIENT,
        BRICK_PATTERN,
        RADIAL_GRADIENT,
        SDF_BOX,
    )
}


def resolve_helpers(names: list[str]) -> list[ShaderHelper]:
    """Close ``names`` over helper dependencies and order them.

    Every helper appears once, after all helpers it calls. Helpers keep
    the order in which they were first requested where possible.

    Raises:
        KeyError: If a name is not a known helper
    """
    collected: list[str] = []
    stack = list(reversed(names))
    while stack:
        name = stack.pop()
        if name in collected:
            continue
        collected.append(name)
        stack.extend(reversed(HELPERS[name].requires))

    dependencies = {name: set(HELPERS[name].requires) for name in collected}
    return [HELPERS[name] for name in topological_sort(collected, dependencies)]
