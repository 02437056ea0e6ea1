"""Procedural texture baking.

Evaluates a pin once per texel with a context whose uv is the texel
coordinate, producing RGBA8 buffers as numpy arrays. Frames for animated
previews vary the context time.
"""

from pathlib import Path

import imageio.v3 as iio
import numpy as np
from loguru import logger
from PIL import Image

from blueprintc.config import CompilerConfig
from blueprintc.graph.analysis import upstream_nodes
from blueprintc.graph.model import BlueprintGraph
from blueprintc.preview.context import EvaluationContext
from blueprintc.preview.evaluator import Evaluator
from blueprintc.registry import PROCEDURAL_TYPES
from blueprintc.types import PinType, PinValue, unwrap

FALLBACK_RGBA = (0.5, 0.5, 0.5, 1.0)


def has_procedural_pattern(graph: BlueprintGraph, node_id: int) -> bool:
    """Whether a procedural pattern node feeds ``node_id`` (or is the node)."""
    return any(
        graph.nodes[n].type_id in PROCEDURAL_TYPES
        for n in upstream_nodes(graph, node_id)
        if n in graph.nodes
    )


def to_rgba(value: PinValue | None) -> tuple[float, float, float, float]:
    """Color of a preview value: Color/Vec4 as is, Vec3 opaque, Float as gray."""
    if value is None:
        return FALLBACK_RGBA
    value = unwrap(value)
    components = value.components
    match value.pin_type:
        case PinType.COLOR | PinType.VEC4:
            return components
        case PinType.VEC3:
            return (*components, 1.0)
        case PinType.FLOAT:
            f = components[0]
            return (f, f, f, 1.0)
    return FALLBACK_RGBA


def bake_texture(
    graph: BlueprintGraph,
    node_id: int,
    pin_name: str,
    size: int = 256,
    context: EvaluationContext | None = None,
    config: CompilerConfig | None = None,
) -> np.ndarray:
    """Evaluate a pin over a size x size grid of uv coordinates.

    Args:
        graph: Material graph
        node_id: Node owning the pin
        pin_name: Output pin, or a channel input of an output node
        size: Texture edge length in texels
        context: Base context; its uv is replaced per texel
        config: Settings providing the recursion depth cap

    Returns:
        uint8 array of shape (size, size, 4); row y holds v = y / size

    Raises:
        ValueError: If size is not positive
        CycleError: If the data subgraph contains a cycle
    """
    if size < 1:
        raise ValueError(f"Bake size must be positive, got {size}")
    base = context or EvaluationContext()
    config = config or CompilerConfig()

    texels = np.empty((size, size, 4), dtype=np.float64)
    for y in range(size):
        for x in range(size):
            # Fresh evaluator per texel: the memo is only valid for one uv
            evaluator = Evaluator(graph, base.with_uv(x / size, y / size), config)
            texels[y, x] = to_rgba(evaluator.evaluate(node_id, pin_name))

    return np.clip(texels * 255.0, 0.0, 255.0).astype(np.uint8)


def bake_frames(
    graph: BlueprintGraph,
    node_id: int,
    pin_name: str,
    size: int = 128,
    duration: float = 2.0,
    fps: int = 15,
    time_offset: float = 0.0,
    context: EvaluationContext | None = None,
    config: CompilerConfig | None = None,
) -> list[np.ndarray]:
    """Bake one texture per frame with time advancing by 1 / fps."""
    if fps < 1:
        raise ValueError(f"fps must be positive, got {fps}")
    base = context or EvaluationContext()
    num_frames = max(1, int(duration * fps))

    frames = []
    for i in range(num_frames):
        frame_time = time_offset + i / fps
        frames.append(
            bake_texture(graph, node_id, pin_name, size, base.with_time(frame_time), config)
        )
        logger.debug(f"Baked frame {i + 1}/{num_frames} at t={frame_time:.3f}")
    return frames


def save_texture(pixels: np.ndarray, path: str | Path) -> Path:
    """Write an RGBA8 buffer as an image (format from the extension)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(path)
    logger.info(f"Texture saved to {path}")
    return path


def save_gif(frames: list[np.ndarray], path: str | Path, fps: int = 15) -> Path:
    """Write frames as a looping animated GIF."""
    if not frames:
        raise ValueError("No frames to save")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    iio.imwrite(path, np.stack(frames), extension=".gif", duration=int(1000 / fps), loop=0)
    logger.info(f"GIF saved to {path} ({len(frames)} frames)")
    return path
