"""
Preview evaluator.

Interprets the data subgraph feeding one pin for a single sample point,
without compiling anything. Source nodes read the ``EvaluationContext``;
combinators read their producers (or stored values). Producers are
evaluated deepest first and every node output is memoized for the duration
of one pass, so shared producers are computed once.
"""

from loguru import logger

from blueprintc.config import CompilerConfig
from blueprintc.errors import CycleError
from blueprintc.graph.analysis import stored_value, upstream_outputs
from blueprintc.graph.model import BlueprintGraph
from blueprintc.graph.node import Node
from blueprintc.preview.context import EvaluationContext
from blueprintc.preview.nodes import EVALUATORS
from blueprintc.types import (
    BoolValue,
    FloatValue,
    PinDirection,
    PinId,
    PinValue,
    StringValue,
    unwrap,
)


class NodeEval:
    """View of one node handed to the tables in ``preview.nodes``."""

    def __init__(
        self, evaluator: "Evaluator", node: Node, on_path: frozenset[int], depth: int
    ):
        self.evaluator = evaluator
        self.node = node
        self.on_path = on_path | {node.id}
        self.depth = depth

    @property
    def graph(self) -> BlueprintGraph:
        return self.evaluator.graph

    @property
    def context(self) -> EvaluationContext:
        return self.evaluator.context

    def input(self, pin_name: str) -> PinValue | None:
        return self.evaluator.input_value(self.node, pin_name, self.on_path, self.depth + 1)

    def _fallback(self, pin_name: str) -> PinValue | None:
        definition = self.graph.registry.lookup(self.node.type_id)
        pin = definition.get_pin(pin_name, PinDirection.INPUT) if definition else None
        return pin.default if pin is not None else None

    def float(self, pin_name: str) -> float:
        """Float input; falls back to the pin default when the value is unusable."""
        for value in (self.input(pin_name), self._fallback(pin_name)):
            if value is not None and isinstance(unwrap(value), FloatValue):
                return unwrap(value).value
        return 0.0

    def vector(self, pin_name: str, size: int) -> tuple[float, ...]:
        """Numeric input with exactly ``size`` components."""
        for value in (self.input(pin_name), self._fallback(pin_name)):
            components = value.components if value is not None else None
            if components is not None and len(components) == size:
                return components
        return (0.0,) * size

    def bool(self, pin_name: str) -> bool:
        value = self.input(pin_name)
        return isinstance(value, BoolValue) and value.value

    def string(self, pin_name: str) -> str | None:
        value = self.input(pin_name)
        return value.value if isinstance(value, StringValue) else None


class Evaluator:
    """One evaluation pass over a graph at a fixed context."""

    def __init__(
        self,
        graph: BlueprintGraph,
        context: EvaluationContext | None = None,
        config: CompilerConfig | None = None,
    ):
        self.graph = graph
        self.context = context or EvaluationContext()
        self.config = config or CompilerConfig()
        self._memo: dict[tuple[int, str], PinValue | None] = {}
        self._reported: set[tuple[int, str]] = set()

    def evaluate(self, node_id: int, pin_name: str) -> PinValue | None:
        """Value of an output pin, or of an input pin (e.g. a material channel)."""
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        if self.graph.get_pin(PinId.output(node_id, pin_name)) is not None:
            return self.output_value(node_id, pin_name, frozenset(), 0)
        if self.graph.get_pin(PinId.input(node_id, pin_name)) is not None:
            return self.input_value(node, pin_name, frozenset(), 0)
        return None

    def output_value(
        self, node_id: int, pin_name: str, on_path: frozenset[int], depth: int
    ) -> PinValue | None:
        key = (node_id, pin_name)
        if key in self._memo:
            return self._memo[key]

        # Fill the memo deepest producer first so no evaluation nests
        output = PinId.output(node_id, pin_name)
        for producer in upstream_outputs(
            self.graph,
            output,
            lambda p: (p.node_id, p.pin_name) in self._memo,
            self.config.max_depth,
        ):
            self._compute(producer, on_path, depth)
        return self._compute(output, on_path, depth)

    def _compute(
        self, output: PinId, on_path: frozenset[int], depth: int
    ) -> PinValue | None:
        key = (output.node_id, output.pin_name)
        if key in self._memo:
            return self._memo[key]
        if depth > self.config.max_depth:
            raise CycleError(
                f"Resolution depth exceeded {self.config.max_depth}", output.node_id
            )
        if output.node_id in on_path:
            raise CycleError(f"Data cycle through node {output.node_id}", output.node_id)

        node = self.graph.get_node(output.node_id)
        evaluate = EVALUATORS.get(node.type_id) if node is not None else None
        value = None
        if evaluate is not None and node.type_id in self.graph.registry:
            value = evaluate(NodeEval(self, node, on_path, depth), output.pin_name)
        self._memo[key] = value
        return value

    def input_value(
        self, node: Node, pin_name: str, on_path: frozenset[int], depth: int
    ) -> PinValue | None:
        """Connection, then valid override, then ambient source, then default."""
        connection = self.graph.connection_to(PinId.input(node.id, pin_name))
        if connection is not None:
            return self.output_value(
                connection.output.node_id, connection.output.pin_name, on_path, depth
            )

        pin = self.graph.get_pin(PinId.input(node.id, pin_name))
        if pin is None:
            return None
        stored = stored_value(node, pin)
        if stored.mismatched and (node.id, pin_name) not in self._reported:
            self._reported.add((node.id, pin_name))
            logger.warning(
                f"Stored value for '{pin_name}' on node {node.id} does not match "
                f"{pin.pin_type.label}; using the pin default"
            )
        has_override = pin_name in node.overrides and not stored.mismatched
        if pin.ambient is not None and not has_override:
            return self.context.ambient(pin.ambient)
        return stored.value


def evaluate(
    graph: BlueprintGraph,
    node_id: int,
    output_pin: str,
    context: EvaluationContext | None = None,
    config: CompilerConfig | None = None,
) -> PinValue | None:
    """Evaluate one pin of one node at a sample point.

    Args:
        graph: Graph to evaluate
        node_id: Node owning the pin
        output_pin: Output pin name; an input pin name evaluates what feeds it
        context: Ambient sample values (defaults to the representative context)
        config: Settings providing the recursion depth cap

    Returns:
        The pin's value, or None for unknown kinds and kinds without a
        preview form

    Raises:
        CycleError: If the data subgraph feeding the pin contains a cycle
    """
    return Evaluator(graph, context, config).evaluate(node_id, output_pin)


def evaluate_channels(
    graph: BlueprintGraph,
    context: EvaluationContext | None = None,
    config: CompilerConfig | None = None,
) -> dict[str, PinValue]:
    """Every channel of the material output node, defaults substituted for None."""
    outputs = graph.output_nodes()
    if not outputs:
        logger.warning(f"Material '{graph.name}' has no output node to preview")
        return {}

    output = outputs[0]
    evaluator = Evaluator(graph, context, config)
    channels: dict[str, PinValue] = {}
    for pin in graph.input_pins(output.id):
        value = evaluator.input_value(output, pin.name, frozenset({output.id}), 1)
        if value is None:
            value = pin.default
        if value is not None:
            channels[pin.name] = value
    return channels
