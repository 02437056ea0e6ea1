"""
Mutable blueprint graph.

All structural edits go through ``BlueprintGraph`` methods. Every edit
either succeeds or raises a ``GraphStructureError`` subclass with the graph
left exactly as it was.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from blueprintc.errors import (
    FlowDataMismatch,
    GraphStructureError,
    IncompatibleTypes,
    InputAlreadyConnected,
    PinNotFound,
    SelfLoop,
)
from blueprintc.graph.node import Connection, GraphKind, Node, Variable
from blueprintc.types import (
    Pin,
    PinDirection,
    PinId,
    PinType,
    PinValue,
    compatible,
    default_for_type,
    is_flow_mismatch,
    value_matches,
)

if TYPE_CHECKING:
    from blueprintc.registry.registry import NodeRegistry, NodeTypeDefinition


@dataclass
class BlueprintGraph:
    """A named graph of nodes, connections and variables.

    The registry is injected at construction and used to look up node pins.
    It takes no part in equality: two graphs are equal when their contents
    (name, kind, nodes, connections, variables, id counter) are equal.
    """

    registry: "NodeRegistry" = field(repr=False, compare=False)
    name: str = "Untitled"
    kind: GraphKind = GraphKind.SCRIPT
    nodes: dict[int, Node] = field(default_factory=dict)
    connections: list[Connection] = field(default_factory=list)
    variables: dict[str, Variable] = field(default_factory=dict)
    next_id: int = 0

    # ==================================================================================
    # Nodes
    # ==================================================================================

    def next_node_id(self) -> int:
        """Allocate a fresh node id. Ids are never reused."""
        node_id = self.next_id
        self.next_id += 1
        return node_id

    def add_node(self, type_id: str, metadata: dict[str, Any] | None = None) -> int:
        """Instantiate a registered node kind and insert it.

        Args:
            type_id: Registered node type id
            metadata: Optional opaque editor data

        Returns:
            The new node's id

        Raises:
            UnknownNodeType: If ``type_id`` is not registered
        """
        # Validate before allocating so a failure leaves the counter untouched
        self.registry.require(type_id)
        node = self.registry.create_node(type_id, self.next_node_id(), metadata)
        self.nodes[node.id] = node
        logger.debug(f"Added node {node.id} ({type_id}) to '{self.name}'")
        return node.id

    def insert_node(self, node: Node) -> None:
        """Insert a pre-built node (used when decoding), keeping the counter ahead."""
        if node.id in self.nodes:
            raise GraphStructureError(f"Duplicate node id {node.id}", node.id)
        self.nodes[node.id] = node
        self.next_id = max(self.next_id, node.id + 1)

    def remove_node(self, node_id: int) -> None:
        """Remove a node and every connection touching it.

        Raises:
            PinNotFound: If the node does not exist
        """
        if node_id not in self.nodes:
            raise PinNotFound(f"No node with id {node_id}", node_id)
        del self.nodes[node_id]
        before = len(self.connections)
        self.connections = [c for c in self.connections if not c.touches(node_id)]
        logger.debug(
            f"Removed node {node_id} and {before - len(self.connections)} connection(s)"
        )

    def get_node(self, node_id: int) -> Node | None:
        return self.nodes.get(node_id)

    def definition(self, node_id: int) -> "NodeTypeDefinition | None":
        """Registry definition of a node, or None for unknown nodes or kinds."""
        node = self.nodes.get(node_id)
        if node is None:
            return None
        return self.registry.lookup(node.type_id)

    def input_pins(self, node_id: int) -> list[Pin]:
        definition = self.definition(node_id)
        return list(definition.input_pins()) if definition else []

    def output_pins(self, node_id: int) -> list[Pin]:
        definition = self.definition(node_id)
        return list(definition.output_pins()) if definition else []

    def get_pin(self, pin_id: PinId) -> Pin | None:
        definition = self.definition(pin_id.node_id)
        if definition is None:
            return None
        return definition.get_pin(pin_id.pin_name, pin_id.direction)

    def event_nodes(self) -> list[Node]:
        """Event nodes in id order."""
        events = []
        for node_id in sorted(self.nodes):
            definition = self.definition(node_id)
            if definition is not None and definition.is_event:
                events.append(self.nodes[node_id])
        return events

    def output_nodes(self) -> list[Node]:
        """Material output nodes in id order."""
        outputs = []
        for node_id in sorted(self.nodes):
            definition = self.definition(node_id)
            if definition is not None and definition.is_output:
                outputs.append(self.nodes[node_id])
        return outputs

    # ==================================================================================
    # Overrides
    # ==================================================================================

    def set_override(self, node_id: int, pin_name: str, value: PinValue) -> None:
        """Replace an input pin's default on one node.

        Raises:
            PinNotFound: If the node or input pin does not exist
            GraphStructureError: If the value cannot sit on the pin
        """
        pin = self._require_pin(PinId.input(node_id, pin_name))
        if not value_matches(value, pin.pin_type):
            raise GraphStructureError(
                f"Value of type {value.pin_type.label} does not fit "
                f"{pin.pin_type.label} pin '{pin_name}'",
                node_id,
            )
        self.nodes[node_id].overrides[pin_name] = value

    def clear_override(self, node_id: int, pin_name: str) -> None:
        self._require_pin(PinId.input(node_id, pin_name))
        self.nodes[node_id].overrides.pop(pin_name, None)

    # ==================================================================================
    # Connections
    # ==================================================================================

    def add_connection(self, output: PinId, input: PinId) -> Connection:
        """Connect an output pin to an input pin.

        Checks run in a fixed order and the first failure is raised; the
        graph is not modified unless every check passes.

        Raises:
            PinNotFound: Missing node or pin, or a pin in the wrong direction
            FlowDataMismatch: Exactly one side is a Flow pin
            IncompatibleTypes: The pin types are not compatible
            InputAlreadyConnected: The input already has a writer
            SelfLoop: A data connection from a node into itself
        """
        if output.direction is not PinDirection.OUTPUT:
            raise PinNotFound(f"{output} is not an output pin", output.node_id)
        if input.direction is not PinDirection.INPUT:
            raise PinNotFound(f"{input} is not an input pin", input.node_id)
        out_pin = self._require_pin(output)
        in_pin = self._require_pin(input)

        if is_flow_mismatch(out_pin.pin_type, in_pin.pin_type):
            raise FlowDataMismatch(
                f"Cannot connect {out_pin.pin_type.label} pin {output} "
                f"to {in_pin.pin_type.label} pin {input}",
                input.node_id,
            )
        if not compatible(out_pin.pin_type, in_pin.pin_type):
            raise IncompatibleTypes(
                f"Cannot connect {out_pin.pin_type.label} to {in_pin.pin_type.label} "
                f"({output} -> {input})",
                input.node_id,
            )
        if self.connection_to(input) is not None:
            raise InputAlreadyConnected(f"Input {input} is already connected", input.node_id)
        if output.node_id == input.node_id and not in_pin.pin_type.is_flow:
            raise SelfLoop(f"Node {input.node_id} cannot feed its own input", input.node_id)

        connection = Connection(output, input)
        self.connections.append(connection)
        return connection

    def connect(self, out_node: int, out_pin: str, in_node: int, in_pin: str) -> Connection:
        """Shorthand for ``add_connection`` with bare ids and pin names."""
        return self.add_connection(PinId.output(out_node, out_pin), PinId.input(in_node, in_pin))

    def remove_connection(self, output: PinId, input: PinId) -> None:
        """Remove a connection if present. Idempotent."""
        self.connections = [
            c for c in self.connections if not (c.output == output and c.input == input)
        ]

    def connection_to(self, input: PinId) -> Connection | None:
        """The single connection feeding an input pin, if any."""
        for connection in self.connections:
            if connection.input == input:
                return connection
        return None

    def connections_from(self, output: PinId) -> list[Connection]:
        """Connections leaving an output pin, in connection order."""
        return [c for c in self.connections if c.output == output]

    def incoming(self, node_id: int) -> Iterator[Connection]:
        return (c for c in self.connections if c.input.node_id == node_id)

    # ==================================================================================
    # Variables
    # ==================================================================================

    def set_variable(
        self,
        name: str,
        pin_type: PinType,
        default: PinValue | None = None,
        description: str = "",
    ) -> Variable:
        """Declare or replace a graph variable.

        Raises:
            GraphStructureError: For an empty name, a Flow type, or a default
                that does not fit the declared type
        """
        if not name:
            raise GraphStructureError("Variable name must not be empty")
        if pin_type.is_flow:
            raise GraphStructureError(f"Variable '{name}' cannot have Flow type")
        if default is None:
            default = default_for_type(pin_type)
        elif not value_matches(default, pin_type):
            raise GraphStructureError(
                f"Default of type {default.pin_type.label} does not fit "
                f"variable '{name}' of type {pin_type.label}"
            )
        variable = Variable(name, pin_type, default, description)
        self.variables[name] = variable
        return variable

    def get_variable(self, name: str) -> Variable | None:
        return self.variables.get(name)

    def remove_variable(self, name: str) -> None:
        self.variables.pop(name, None)

    # ==================================================================================
    # Helpers
    # ==================================================================================

    def _require_pin(self, pin_id: PinId) -> Pin:
        if pin_id.node_id not in self.nodes:
            raise PinNotFound(f"No node with id {pin_id.node_id}", pin_id.node_id)
        pin = self.get_pin(pin_id)
        if pin is None:
            direction = "input" if pin_id.direction is PinDirection.INPUT else "output"
            raise PinNotFound(f"No {direction} pin '{pin_id.pin_name}'", pin_id.node_id)
        return pin
