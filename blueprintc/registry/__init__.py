"""Node registry and the built-in catalogue."""

from .builtin import PROCEDURAL_TYPES, create_default_registry, register_builtin_nodes
from .registry import EntryPoint, NodeRegistry, NodeTypeDefinition

__all__ = [
    "PROCEDURAL_TYPES",
    "EntryPoint",
    "NodeRegistry",
    "NodeTypeDefinition",
    "create_default_registry",
    "register_builtin_nodes",
]
