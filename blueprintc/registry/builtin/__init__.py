"""The fixed built-in node table."""

from blueprintc.registry.registry import NodeRegistry

from . import arithmetic, events, flow, procedural, shader
from .procedural import PROCEDURAL_TYPES

BUILTIN_MODULES = (events, flow, arithmetic, shader, procedural)


def register_builtin_nodes(registry: NodeRegistry) -> None:
    """Register every built-in node kind into ``registry``."""
    for module in BUILTIN_MODULES:
        for definition in module.NODES:
            registry.register(definition)


def create_default_registry() -> NodeRegistry:
    """Build and freeze a registry holding the built-in catalogue."""
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    registry.freeze()
    return registry


__all__ = ["PROCEDURAL_TYPES", "create_default_registry", "register_builtin_nodes"]
