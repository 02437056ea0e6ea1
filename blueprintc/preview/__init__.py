"""Preview evaluation and procedural texture baking."""

from .bake import (
    bake_frames,
    bake_texture,
    has_procedural_pattern,
    save_gif,
    save_texture,
    to_rgba,
)
from .context import EvaluationContext
from .evaluator import Evaluator, evaluate, evaluate_channels

__all__ = [
    "EvaluationContext",
    "Evaluator",
    "evaluate",
    "evaluate_channels",
    "bake_frames",
    "bake_texture",
    "has_procedural_pattern",
    "save_gif",
    "save_texture",
    "to_rgba",
]
