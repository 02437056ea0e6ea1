"""Scalar noise and pattern functions for the preview evaluator.

Each function mirrors the shader helper of the same name in
``blueprintc.codegen.helpers``: the same hash, the same interpolation and
floor based ``fract``, so a baked preview matches the compiled material.
"""

import math

TAU = 2.0 * math.pi
MAX_OCTAVES = 8


def fract(x: float) -> float:
    return x - math.floor(x)


def smooth(t: float) -> float:
    """Hermite smoothstep weight on [0, 1]."""
    return t * t * (3.0 - 2.0 * t)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def hash21(x: float, y: float) -> float:
    return fract(math.sin(x * 12.9898 + y * 78.233) * 43758.5453)


# =============================================================================
# Noise
# =============================================================================


def simple_noise(x: float, y: float) -> float:
    """Value noise: smoothed bilinear blend of hashed lattice corners."""
    ix, iy = math.floor(x), math.floor(y)
    ux, uy = smooth(x - ix), smooth(y - iy)

    a = hash21(ix, iy)
    b = hash21(ix + 1.0, iy)
    c = hash21(ix, iy + 1.0)
    d = hash21(ix + 1.0, iy + 1.0)
    return lerp(lerp(a, b, ux), lerp(c, d, ux), uy)


def gradient_dot(ix: float, iy: float, dx: float, dy: float) -> float:
    angle = hash21(ix, iy) * TAU
    return math.cos(angle) * dx + math.sin(angle) * dy


def gradient_noise(x: float, y: float) -> float:
    """Perlin-like gradient noise remapped to [0, 1]."""
    ix, iy = math.floor(x), math.floor(y)
    fx, fy = x - ix, y - iy
    ux, uy = smooth(fx), smooth(fy)

    g00 = gradient_dot(ix, iy, fx, fy)
    g10 = gradient_dot(ix + 1.0, iy, fx - 1.0, fy)
    g01 = gradient_dot(ix, iy + 1.0, fx, fy - 1.0)
    g11 = gradient_dot(ix + 1.0, iy + 1.0, fx - 1.0, fy - 1.0)
    return lerp(lerp(g00, g10, ux), lerp(g01, g11, ux), uy) * 0.5 + 0.5


def voronoi_noise(x: float, y: float) -> tuple[float, float]:
    """Distance to the nearest feature point and that cell's id."""
    ix, iy = math.floor(x), math.floor(y)
    fx, fy = x - ix, y - iy

    min_dist = 1.0
    cell_id = 0.0
    for j in (-1, 0, 1):
        for i in (-1, 0, 1):
            cx, cy = ix + i, iy + j
            px = hash21(cx, cy)
            py = hash21(cx + 0.5, cy + 0.5)
            dist = math.hypot(i + px - fx, j + py - fy)
            if dist < min_dist:
                min_dist = dist
                cell_id = hash21(cx, cy)
    return min_dist, cell_id


def fbm_noise(
    x: float,
    y: float,
    octaves: int,
    frequency: float,
    amplitude: float,
    lacunarity: float,
    persistence: float,
) -> float:
    """Fractal sum of gradient noise, normalized by the total amplitude."""
    value = 0.0
    max_amp = 0.0
    freq, amp = frequency, amplitude
    for _ in range(min(octaves, MAX_OCTAVES)):
        value += gradient_noise(x * freq, y * freq) * amp
        max_amp += amp
        freq *= lacunarity
        amp *= persistence
    if max_amp <= 0.0:
        return 0.5
    return value / max_amp


# =============================================================================
# Patterns
# =============================================================================


def checkerboard(u: float, v: float, scale: float) -> float:
    return (math.floor(u * scale) + math.floor(v * scale)) % 2.0


def linear_gradient(u: float, v: float, dx: float, dy: float) -> float:
    length = math.hypot(dx, dy)
    if length <= 0.0:
        return 0.5
    return min(max((u * dx + v * dy) / length, 0.0), 1.0)


def brick_pattern(
    u: float, v: float, brick_width: float, brick_height: float, mortar: float
) -> float:
    """1.0 inside a brick, 0.0 in the mortar; odd rows shift by half a brick."""
    if brick_width <= 0.0 or brick_height <= 0.0:
        return 0.0
    row = math.floor(v / brick_height)
    offset = 0.5 if row % 2.0 >= 0.5 else 0.0
    bx = fract(u / brick_width + offset)
    by = fract(v / brick_height)
    inside = mortar <= bx <= 1.0 - mortar and mortar <= by <= 1.0 - mortar
    return 1.0 if inside else 0.0


def wave_sine(u: float, frequency: float, amplitude: float, phase: float) -> float:
    value = math.sin(u * frequency + phase) * amplitude * 0.5 + 0.5
    return min(max(value, 0.0), 1.0)


def radial_gradient(u: float, v: float, cx: float, cy: float, radius: float) -> float:
    if radius <= 0.0:
        return 1.0
    return min(max(math.hypot(u - cx, v - cy) / radius, 0.0), 1.0)


def sdf_circle(u: float, v: float, cx: float, cy: float, radius: float) -> float:
    return math.hypot(u - cx, v - cy) - radius


def sdf_box(u: float, v: float, cx: float, cy: float, sx: float, sy: float) -> float:
    dx = abs(u - cx) - sx
    dy = abs(v - cy) - sy
    outside = math.hypot(max(dx, 0.0), max(dy, 0.0))
    return outside + min(max(dx, dy), 0.0)
