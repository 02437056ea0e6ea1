from blueprintc.codegen import generate_script, generate_shader
from blueprintc.config import CompilerConfig
from blueprintc.graph import BlueprintGraph, GraphKind
from blueprintc.preview import EvaluationContext, bake_texture, evaluate
from blueprintc.registry import NodeRegistry, create_default_registry
from blueprintc.serialization import load, save

__version__ = "0.1.0"


__all__ = [
    "BlueprintGraph",
    "CompilerConfig",
    "EvaluationContext",
    "GraphKind",
    "NodeRegistry",
    "bake_texture",
    "create_default_registry",
    "evaluate",
    "generate_script",
    "generate_shader",
    "load",
    "save",
]
