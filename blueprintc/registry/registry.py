"""Node registry: the static catalogue of node kinds.

The registry is an explicit object. It is built once (see
``create_default_registry``), frozen, and handed to every graph, generator
and evaluator that needs it.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from loguru import logger

from blueprintc.errors import UnknownNodeType
from blueprintc.graph.node import GraphKind, Node
from blueprintc.types import Pin, PinDirection


@dataclass(frozen=True)
class EntryPoint:
    """Script handler an event node compiles into."""

    name: str
    params: tuple[str, ...] = ()


@dataclass(frozen=True)
class NodeTypeDefinition:
    """Immutable metadata describing one node kind."""

    type_id: str
    category: str
    display_name: str
    pin_factory: Callable[[], list[Pin]] = field(repr=False, compare=False)
    description: str = ""
    color: tuple[int, int, int] = (120, 120, 120)
    is_event: bool = False
    is_comment: bool = False
    is_output: bool = False
    entry_point: EntryPoint | None = None

    @cached_property
    def pins(self) -> tuple[Pin, ...]:
        pins = tuple(self.pin_factory())
        seen: set[tuple[str, PinDirection]] = set()
        for pin in pins:
            key = (pin.name, pin.direction)
            if key in seen:
                raise ValueError(
                    f"Node type '{self.type_id}' declares pin '{pin.name}' twice"
                )
            seen.add(key)
        return pins

    def input_pins(self) -> Iterator[Pin]:
        return (p for p in self.pins if p.direction is PinDirection.INPUT)

    def output_pins(self) -> Iterator[Pin]:
        return (p for p in self.pins if p.direction is PinDirection.OUTPUT)

    def get_pin(self, name: str, direction: PinDirection) -> Pin | None:
        for pin in self.pins:
            if pin.name == name and pin.direction is direction:
                return pin
        return None

    @property
    def is_flow_node(self) -> bool:
        """True when the node takes part in control flow."""
        return any(p.pin_type.is_flow for p in self.pins)


class NodeRegistry:
    """Catalogue of node kinds keyed by type id."""

    def __init__(self) -> None:
        self._definitions: dict[str, NodeTypeDefinition] = {}
        self._frozen = False

    def register(self, definition: NodeTypeDefinition) -> None:
        """Add a node kind.

        Raises:
            RuntimeError: If the registry has been frozen
            ValueError: If the type id is already registered
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{definition.type_id}': registry is frozen"
            )
        if definition.type_id in self._definitions:
            raise ValueError(f"Node type already registered: {definition.type_id}")
        # Build pins eagerly so bad factories fail at registration
        _ = definition.pins
        self._definitions[definition.type_id] = definition

    def freeze(self) -> None:
        self._frozen = True
        logger.debug(f"Node registry frozen with {len(self)} node types")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, type_id: str) -> NodeTypeDefinition | None:
        return self._definitions.get(type_id)

    def require(self, type_id: str) -> NodeTypeDefinition:
        """Like ``lookup`` but raises ``UnknownNodeType`` for missing ids."""
        definition = self._definitions.get(type_id)
        if definition is None:
            raise UnknownNodeType(f"Unknown node type: '{type_id}'")
        return definition

    def create_node(
        self, type_id: str, node_id: int, metadata: dict[str, Any] | None = None
    ) -> Node:
        """Instantiate a node of the given kind.

        Args:
            type_id: Registered type id
            node_id: Id to assign to the node
            metadata: Optional editor metadata (position etc.)

        Returns:
            A node with no overrides; its pins come from the definition

        Raises:
            UnknownNodeType: If the type id is not registered
        """
        definition = self.require(type_id)
        return Node(id=node_id, type_id=definition.type_id, metadata=dict(metadata or {}))

    def pins(self, type_id: str) -> tuple[Pin, ...]:
        return self.require(type_id).pins

    def list_by_prefix(self, prefix: str) -> list[NodeTypeDefinition]:
        """All kinds whose type id starts with ``prefix``, in registration order."""
        return [d for d in self._definitions.values() if d.type_id.startswith(prefix)]

    def list_by_category(self, category: str) -> list[NodeTypeDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    def list_for_kind(self, kind: GraphKind) -> list[NodeTypeDefinition]:
        """Palette for a graph kind. Comment nodes fit every kind."""
        return [
            d
            for d in self._definitions.values()
            if d.is_comment or kind.allows_category(d.category)
        ]

    def categories(self) -> list[str]:
        return list(dict.fromkeys(d.category for d in self._definitions.values()))

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[NodeTypeDefinition]:
        return iter(self._definitions.values())
