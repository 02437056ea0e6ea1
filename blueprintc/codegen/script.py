"""
Script code generator.

Compiles the flow-rooted subgraphs of a Script graph into Rhai source:
graph variables become top-level ``let`` declarations and every event kind
becomes one handler function. Statements are emitted in flow-edge order;
data inputs are hoisted into local bindings, deepest producer first, right
before the statement that consumes them.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from blueprintc.codegen.code_block import CodeBlock
from blueprintc.codegen.models import ScriptResult
from blueprintc.codegen.script_nodes import EXPRESSIONS, STATEMENTS, rhai_literal
from blueprintc.config import CompilerConfig
from blueprintc.errors import (
    BlueprintError,
    BlueprintWarning,
    CodegenError,
    CycleError,
    DefaultTypeMismatchWarning,
    ReachabilityWarning,
    UnconnectedInputWarning,
    UnknownVariable,
)
from blueprintc.graph.analysis import (
    find_data_cycle,
    literal_string,
    resolve_input_type,
    stored_value,
    unreachable_nodes,
    upstream_nodes,
    upstream_outputs,
)
from blueprintc.graph.model import BlueprintGraph
from blueprintc.graph.node import Node
from blueprintc.registry.registry import NodeTypeDefinition
from blueprintc.types import BoolValue, PinDirection, PinId, PinType, PinValue


@dataclass
class Scope:
    """Bindings visible at one point of a handler body.

    Maps (node id, output pin) to the expression naming its value. Child
    scopes start from a copy of their parent so their own bindings do not
    leak out of the block.
    """

    block: CodeBlock
    bindings: dict[tuple[int, str], str] = field(default_factory=dict)
    parent: "Scope | None" = None

    def child(self) -> "Scope":
        return Scope(self.block, dict(self.bindings), self)

    def forget(self, stale: Callable[[tuple[int, str]], bool]) -> None:
        """Drop matching bindings here and in every enclosing scope."""
        scope: Scope | None = self
        while scope is not None:
            for key in [k for k in scope.bindings if stale(k)]:
                del scope.bindings[key]
            scope = scope.parent


class ScriptNodeContext:
    """View of one node handed to the script tables in ``script_nodes``."""

    def __init__(
        self,
        generator: "ScriptGenerator",
        node: Node,
        definition: NodeTypeDefinition,
        scope: Scope,
        on_path: frozenset[int],
        depth: int,
    ):
        self.generator = generator
        self.node = node
        self.definition = definition
        self.scope = scope
        self.on_path = on_path | {node.id}
        self.depth = depth

    @property
    def graph(self) -> BlueprintGraph:
        return self.generator.graph

    @property
    def block(self) -> CodeBlock:
        return self.scope.block

    def error(self, message: str) -> CodegenError:
        return CodegenError(message, self.node.id)

    def input(self, pin_name: str) -> str:
        """Expression for a data input."""
        return self.generator.input_expr(
            self.node, pin_name, self.scope, self.on_path, self.depth + 1
        )

    def input_type(self, pin_name: str) -> PinType:
        return resolve_input_type(
            self.graph, PinId.input(self.node.id, pin_name), self.generator.types
        )

    def literal_string(self, pin_name: str) -> str | None:
        return literal_string(self.graph, self.node, pin_name)

    def literal_bool(self, pin_name: str) -> bool | None:
        """Stored bool on an unconnected input, None if the input is wired."""
        if self.graph.connection_to(PinId.input(self.node.id, pin_name)) is not None:
            return None
        value = self.generator.stored(self.node, pin_name)
        return value.value if isinstance(value, BoolValue) else None

    def variable_name(self) -> str:
        """Name on the ``var_name`` input, checked against the variable table."""
        name = self.literal_string("var_name")
        if name is None:
            raise self.error("Variable name must be a literal, not a connection")
        if self.graph.get_variable(name) is None:
            raise UnknownVariable(f"Unknown variable '{name}'", self.node.id)
        return name

    def has_flow(self, pin_name: str) -> bool:
        return bool(self.graph.connections_from(PinId.output(self.node.id, pin_name)))

    def follow(self, pin_name: str, child_scope: bool = False) -> None:
        """Emit a nested body: every statement chain leaving a flow output."""
        scope = self.scope.child() if child_scope else self.scope
        self.generator.follow(self.node.id, pin_name, scope, self.on_path, self.depth + 1)

    def forget_variable(self, name: str) -> None:
        """Invalidate bindings computed from a variable that was just assigned."""
        self.generator.forget_variable(name, self.scope)


class ScriptGenerator:
    """Generates Rhai source from a Script graph."""

    def __init__(self, graph: BlueprintGraph, config: CompilerConfig | None = None):
        self.graph = graph
        self.config = config or CompilerConfig()
        self.types: dict[PinId, PinType] = {}
        self.warnings: list[BlueprintWarning] = []
        self.errors: list[BlueprintError] = []
        self._counter = 0
        self._reported: set[tuple[str, int, str]] = set()

    # ==================================================================================
    # Entry point
    # ==================================================================================

    def generate(self) -> ScriptResult:
        block = CodeBlock(indent=self.config.indent)

        self._check_node_types()
        self._check_data_cycles()
        if not self.errors:
            self._emit_variables(block)
            self._emit_handlers(block)
        self._check_reachability()

        for warning in self.warnings:
            logger.warning(f"Script '{self.graph.name}': {warning}")

        if self.errors:
            logger.debug(f"Script generation failed with {len(self.errors)} error(s)")
            return ScriptResult("", self.warnings, self.errors)
        code = block.get_code().rstrip()
        return ScriptResult(f"{code}\n" if code else "", self.warnings, [])

    # ==================================================================================
    # Top-level layout
    # ==================================================================================

    def _emit_variables(self, block: CodeBlock) -> None:
        if not self.graph.variables:
            return
        block.add_line("// Variables")
        for variable in self.graph.variables.values():
            literal = rhai_literal(variable.default, self.config.float_precision)
            block.add_line(f"let {variable.name} = {literal};")
        block.add_line()

    def _emit_handlers(self, block: CodeBlock) -> None:
        events = self.graph.event_nodes()
        if not events:
            logger.warning(f"Script '{self.graph.name}' has no event nodes")
            return

        # Several events of one kind merge into a single handler, in id order
        handlers: dict[str, list[Node]] = {}
        params: dict[str, tuple[str, ...]] = {}
        for event in events:
            entry = self.graph.registry.require(event.type_id).entry_point
            if entry is None:
                self._error(CodegenError("Event node has no script entry point", event.id))
                continue
            handlers.setdefault(entry.name, []).append(event)
            params[entry.name] = entry.params

        for name, nodes in handlers.items():
            mark = block.mark()
            try:
                with block.block(f"fn {name}({', '.join(params[name])})"):
                    for event in nodes:
                        scope = Scope(block)
                        for param in params[name]:
                            scope.bindings[(event.id, param)] = param
                        self.follow(event.id, "exec", scope, frozenset({event.id}), 0)
            except (CodegenError, CycleError) as e:
                block.truncate(mark)
                self._error(e)
                continue
            except RecursionError:
                block.truncate(mark)
                self._error(
                    CycleError(f"Handler {name}() nests too deeply to compile", nodes[0].id)
                )
                continue
            block.add_line()
            logger.debug(f"Generated handler {name}() from {len(nodes)} event node(s)")

    # ==================================================================================
    # Flow
    # ==================================================================================

    def follow(
        self,
        node_id: int,
        pin_name: str,
        scope: Scope,
        on_path: frozenset[int],
        depth: int,
    ) -> None:
        """Emit every statement chain leaving a flow output, in connection order.

        A statement returns the flow output its chain continues on; chains
        are walked with an explicit stack, so only nested bodies (branch and
        sequence paths) add to ``depth``.
        """
        chains = [(iter(self._flow_targets(node_id, pin_name)), on_path)]
        while chains:
            targets, path = chains[-1]
            target = next(targets, None)
            if target is None:
                chains.pop()
                continue
            then = self._statement(target, scope, path, depth)
            if then is not None:
                chains.append((iter(self._flow_targets(target, then)), path | {target}))

    def _flow_targets(self, node_id: int, pin_name: str) -> list[int]:
        connections = self.graph.connections_from(PinId.output(node_id, pin_name))
        return [c.input.node_id for c in connections]

    def _statement(
        self, node_id: int, scope: Scope, on_path: frozenset[int], depth: int
    ) -> str | None:
        node, definition = self._resolve_node(node_id, on_path, depth, "Flow")
        emit = STATEMENTS.get(node.type_id)
        if emit is None:
            raise CodegenError(
                f"Node type '{node.type_id}' cannot be used as a statement", node_id
            )
        logger.debug(f"Emitting statement for node {node_id} ({node.type_id})")
        self._check_required(node, definition)
        return emit(ScriptNodeContext(self, node, definition, scope, on_path, depth))

    # ==================================================================================
    # Data
    # ==================================================================================

    def input_expr(
        self,
        node: Node,
        pin_name: str,
        scope: Scope,
        on_path: frozenset[int],
        depth: int,
    ) -> str:
        """Expression for an input: its producer if wired, else its stored value."""
        connection = self.graph.connection_to(PinId.input(node.id, pin_name))
        if connection is not None:
            return self._output_expr(connection.output, scope, on_path, depth)
        value = self.stored(node, pin_name)
        if value is None:
            raise CodegenError(f"Input '{pin_name}' has no value", node.id)
        return rhai_literal(value, self.config.float_precision)

    def _output_expr(
        self, output: PinId, scope: Scope, on_path: frozenset[int], depth: int
    ) -> str:
        key = (output.node_id, output.pin_name)
        if key in scope.bindings:
            return scope.bindings[key]

        # Bind producers deepest first so rendering never nests
        producers = upstream_outputs(
            self.graph, output, lambda p: self._opaque(p, scope), self.config.max_depth
        )
        for producer in producers:
            self._bind_output(producer, scope, on_path, depth)
        return self._bind_output(output, scope, on_path, depth)

    def _opaque(self, output: PinId, scope: Scope) -> bool:
        """Outputs the upstream walk leaves to ``_bind_output`` to report or reuse."""
        if (output.node_id, output.pin_name) in scope.bindings:
            return True
        node = self.graph.get_node(output.node_id)
        return node is None or node.type_id not in EXPRESSIONS

    def _bind_output(
        self, output: PinId, scope: Scope, on_path: frozenset[int], depth: int
    ) -> str:
        key = (output.node_id, output.pin_name)
        if key in scope.bindings:
            return scope.bindings[key]

        node, definition = self._resolve_node(output.node_id, on_path, depth, "Data")
        expression = EXPRESSIONS.get(node.type_id)
        if expression is None:
            raise CodegenError(
                f"Output '{output.pin_name}' of '{node.type_id}' is not available here",
                node.id,
            )

        self._check_required(node, definition)
        ctx = ScriptNodeContext(self, node, definition, scope, on_path, depth)
        expr = expression.render(ctx, output.pin_name)
        if expression.inline:
            scope.bindings[key] = expr
            return expr

        prefix = expression.prefix
        if sum(1 for _ in definition.output_pins()) > 1:
            prefix = f"{prefix}_{output.pin_name}"
        name = f"{prefix}_{self._counter}"
        self._counter += 1
        scope.block.add_line(f"let {name} = {expr};")
        scope.bindings[key] = name
        return name

    def forget_variable(self, name: str, scope: Scope) -> None:
        readers = {
            node.id
            for node in self.graph.nodes.values()
            if node.type_id == "variable/get"
            and literal_string(self.graph, node, "var_name") == name
        }
        if readers:
            scope.forget(lambda key: bool(upstream_nodes(self.graph, key[0]) & readers))

    def stored(self, node: Node, pin_name: str) -> PinValue | None:
        """Stored value of an unconnected input, reporting type mismatches."""
        definition = self.graph.registry.require(node.type_id)
        pin = definition.get_pin(pin_name, PinDirection.INPUT)
        if pin is None:
            raise CodegenError(f"Node has no input '{pin_name}'", node.id)
        stored = stored_value(node, pin)
        if stored.mismatched:
            self._warn(
                DefaultTypeMismatchWarning(
                    f"Stored value for '{pin_name}' does not match {pin.pin_type.label}; "
                    "using the pin default",
                    node.id,
                )
            )
        return stored.value

    # ==================================================================================
    # Checks
    # ==================================================================================

    def _resolve_node(
        self, node_id: int, on_path: frozenset[int], depth: int, edge: str
    ) -> tuple[Node, NodeTypeDefinition]:
        if depth > self.config.max_depth:
            raise CycleError(
                f"Resolution depth exceeded {self.config.max_depth}", node_id
            )
        if node_id in on_path:
            raise CycleError(f"{edge} cycle through node {node_id}", node_id)
        node = self.graph.get_node(node_id)
        if node is None:
            raise CodegenError(f"Connection to missing node {node_id}", node_id)
        definition = self.graph.registry.lookup(node.type_id)
        if definition is None:
            raise CodegenError(f"Unknown node type '{node.type_id}'", node_id)
        return node, definition

    def _check_node_types(self) -> None:
        for node in self.graph.nodes.values():
            if node.type_id not in self.graph.registry:
                self._error(CodegenError(f"Unknown node type '{node.type_id}'", node.id))

    def _check_data_cycles(self) -> None:
        cycle = find_data_cycle(self.graph)
        if cycle is not None:
            path = " -> ".join(str(n) for n in [*cycle, cycle[0]])
            self._error(CycleError(f"Data cycle: {path}", cycle[0]))

    def _check_required(self, node: Node, definition: NodeTypeDefinition) -> None:
        for pin in definition.input_pins():
            if not pin.required:
                continue
            if self.graph.connection_to(PinId.input(node.id, pin.name)) is None:
                self._warn(
                    UnconnectedInputWarning(
                        f"Required input '{pin.name}' of '{node.type_id}' is not "
                        "connected; using its default",
                        node.id,
                    )
                )

    def _check_reachability(self) -> None:
        for node_id in unreachable_nodes(self.graph):
            node = self.graph.nodes[node_id]
            self._warn(
                ReachabilityWarning(
                    f"Node '{node.type_id}' is not connected to any event", node_id
                )
            )

    def _warn(self, warning: BlueprintWarning) -> None:
        key = _report_key(warning)
        if key not in self._reported:
            self._reported.add(key)
            self.warnings.append(warning)

    def _error(self, error: BlueprintError) -> None:
        key = _report_key(error)
        if key not in self._reported:
            self._reported.add(key)
            self.errors.append(error)


def _report_key(item: BlueprintError | BlueprintWarning) -> tuple[str, int, str]:
    node_id = -1 if item.node_id is None else item.node_id
    return (type(item).__name__, node_id, item.message)


def generate_script(
    graph: BlueprintGraph, config: CompilerConfig | None = None
) -> ScriptResult:
    """Compile a Script graph to Rhai source.

    Args:
        graph: Graph to compile
        config: Compiler settings (defaults when omitted)

    Returns:
        A ``ScriptResult``; ``code`` is empty when any error was collected
    """
    return ScriptGenerator(graph, config).generate()
