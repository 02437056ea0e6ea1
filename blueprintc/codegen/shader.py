"""
Shader code generator.

Compiles a Material graph into a fragment program for a ``ShaderTarget``.
Every channel of the single output node is resolved by walking its
producers deepest first; node outputs are hoisted into locals in
dependency order and memoized, so a value feeding several channels is
computed once. Procedural helpers are emitted only when a node uses them.
"""

from loguru import logger

from blueprintc.codegen.helpers import resolve_helpers
from blueprintc.codegen.models import ShaderResult, TextureBinding
from blueprintc.codegen.shader_nodes import SHADER_EXPRESSIONS, ShaderExpression
from blueprintc.codegen.target import ShaderParts, ShaderTarget, get_target
from blueprintc.config import CompilerConfig
from blueprintc.errors import (
    BlueprintError,
    BlueprintWarning,
    CodegenError,
    CycleError,
    DefaultTypeMismatchWarning,
    ReachabilityWarning,
    UnconnectedInputWarning,
)
from blueprintc.graph.analysis import (
    find_data_cycle,
    literal_string,
    resolve_input_type,
    resolve_output_type,
    stored_value,
    upstream_nodes,
    upstream_outputs,
)
from blueprintc.graph.model import BlueprintGraph
from blueprintc.graph.node import Node
from blueprintc.registry.builtin.shader import PBR_CHANNELS, UNLIT_CHANNELS
from blueprintc.registry.registry import NodeTypeDefinition
from blueprintc.types import PinDirection, PinId, PinType

TEXTURE_BINDING_START = 1
SAMPLER_BINDING_OFFSET = 100

# Channels whose Any input is widened to a vec4
COLOR_CHANNELS = frozenset({"base_color", "color"})


class ShaderNodeContext:
    """View of one node handed to the tables in ``shader_nodes``."""

    def __init__(
        self,
        generator: "ShaderGenerator",
        node: Node,
        definition: NodeTypeDefinition,
        expression: ShaderExpression,
        on_path: frozenset[int],
        depth: int,
    ):
        self.generator = generator
        self.node = node
        self.definition = definition
        self.expression = expression
        self.on_path = on_path | {node.id}
        self.depth = depth

    @property
    def target(self) -> ShaderTarget:
        return self.generator.target

    def error(self, message: str) -> CodegenError:
        return CodegenError(message, self.node.id)

    def input(self, pin_name: str) -> str:
        return self.generator.input_expr(self.node, pin_name, self.on_path, self.depth + 1)

    def input_type(self, pin_name: str) -> PinType:
        return resolve_input_type(
            self.generator.graph, PinId.input(self.node.id, pin_name), self.generator.types
        )

    def splat(self, pin_name: str, result_type: PinType) -> str:
        """Input expression, widened from a scalar when ``result_type`` is a vector."""
        expr = self.input(pin_name)
        if result_type.is_vector and self.input_type(pin_name) is PinType.FLOAT:
            return self.target.construct(result_type, [expr])
        return expr

    def builtin(self, name: str) -> str:
        self.generator.builtins.add(name)
        return self.target.map_builtin(name)

    def texture(self, pin_name: str) -> str:
        """Binding name for the asset handle on ``pin_name``."""
        path = literal_string(self.generator.graph, self.node, pin_name)
        if path is None:
            raise self.error("Texture input must be an asset handle, not a connection")
        if not path:
            raise self.error("Unbound texture: the texture input is empty")
        return self.generator.bind_texture(path)

    def shared(self) -> str:
        """Name of the node's shared value, hoisted on first use."""
        return self.generator.shared_expr(self)


class ShaderGenerator:
    """Generates a fragment program from a Material graph."""

    def __init__(
        self,
        graph: BlueprintGraph,
        target: ShaderTarget | None = None,
        config: CompilerConfig | None = None,
    ):
        self.graph = graph
        self.config = config or CompilerConfig()
        self.target = target or get_target(self.config.shader_target)
        self.types: dict[PinId, PinType] = {}
        self.warnings: list[BlueprintWarning] = []
        self.errors: list[BlueprintError] = []
        self.body: list[str] = []
        self.builtins: set[str] = set()
        self.helpers: list[str] = []
        self.textures: dict[str, TextureBinding] = {}
        self._bindings: dict[tuple[int, str], str] = {}
        self._counter = 0
        self._reported: set[tuple[str, int, str]] = set()

    # ==================================================================================
    # Entry point
    # ==================================================================================

    def generate(self) -> ShaderResult:
        output = self._find_output()
        self._check_node_types()
        self._check_data_cycles()

        is_pbr = output is not None and output.type_id == "shader/pbr_output"
        channels: dict[str, str] = {}
        if output is not None and not self.errors:
            try:
                channels = self._emit_channels(output, is_pbr)
            except (CodegenError, CycleError) as e:
                self._error(e)
            self._check_reachability(output)

        for warning in self.warnings:
            logger.warning(f"Material '{self.graph.name}': {warning}")

        textures = sorted(self.textures.values(), key=lambda t: t.binding)
        if self.errors:
            logger.debug(f"Shader generation failed with {len(self.errors)} error(s)")
            return ShaderResult("", [], is_pbr, self.warnings, self.errors)

        parts = ShaderParts(
            name=self.graph.name,
            body=self.body,
            channels=channels,
            is_pbr=is_pbr,
            helpers=[h.source(self.target.name) for h in resolve_helpers(self.helpers)],
            textures=textures,
            builtins=self.builtins,
        )
        logger.debug(
            f"Generated {self.target.name} shader: {len(self.body)} local(s), "
            f"{len(parts.helpers)} helper(s), {len(textures)} texture(s)"
        )
        return ShaderResult(self.target.assemble(parts), textures, is_pbr, self.warnings, [])

    def _find_output(self) -> Node | None:
        outputs = self.graph.output_nodes()
        if not outputs:
            self._error(CodegenError("Material has no output node"))
            return None
        if len(outputs) > self.config.max_output_nodes:
            ids = ", ".join(str(n.id) for n in outputs)
            self._error(
                CodegenError(
                    f"Material has {len(outputs)} output nodes ({ids}); "
                    f"at most {self.config.max_output_nodes} allowed",
                    outputs[1].id,
                )
            )
            return None
        return outputs[0]

    def _emit_channels(self, output: Node, is_pbr: bool) -> dict[str, str]:
        channels = {}
        for channel in PBR_CHANNELS if is_pbr else UNLIT_CHANNELS:
            expr = self.input_expr(output, channel, frozenset({output.id}), 1)
            if channel in COLOR_CHANNELS:
                expr = self._widen_color(output, channel, expr)
            channels[channel] = expr
        return channels

    def _widen_color(self, node: Node, channel: str, expr: str) -> str:
        """Coerce an Any color channel to vec4 by its concrete type."""
        pin_type = resolve_input_type(self.graph, PinId.input(node.id, channel), self.types)
        construct = self.target.construct
        match pin_type:
            case PinType.COLOR | PinType.VEC4:
                return expr
            case PinType.VEC3:
                return construct(PinType.VEC4, [expr, "1.0"])
            case PinType.VEC2:
                return construct(PinType.VEC4, [expr, "0.0", "1.0"])
            case PinType.FLOAT:
                return construct(PinType.VEC4, [construct(PinType.VEC3, [expr]), "1.0"])
        raise CodegenError(
            f"Channel '{channel}' cannot be a {pin_type.label}; expected a color, "
            "vector or float",
            node.id,
        )

    # ==================================================================================
    # Data
    # ==================================================================================

    def input_expr(
        self, node: Node, pin_name: str, on_path: frozenset[int], depth: int
    ) -> str:
        """Connection, then valid override, then ambient builtin, then default."""
        connection = self.graph.connection_to(PinId.input(node.id, pin_name))
        if connection is not None:
            return self._output_expr(connection.output, on_path, depth)

        pin = self.graph.registry.require(node.type_id).get_pin(pin_name, PinDirection.INPUT)
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
        has_override = pin_name in node.overrides and not stored.mismatched
        if pin.ambient is not None and not has_override:
            self.builtins.add(pin.ambient)
            return self.target.map_builtin(pin.ambient)
        if stored.value is None:
            raise CodegenError(f"Input '{pin_name}' has no value", node.id)
        try:
            return self.target.literal(stored.value, self.config.float_precision)
        except ValueError as e:
            raise CodegenError(f"Input '{pin_name}': {e}", node.id) from e

    def _output_expr(self, output: PinId, on_path: frozenset[int], depth: int) -> str:
        key = (output.node_id, output.pin_name)
        if key in self._bindings:
            return self._bindings[key]

        # Declare producers deepest first so rendering never nests
        for producer in upstream_outputs(
            self.graph, output, self._opaque, self.config.max_depth
        ):
            self._bind_output(producer, on_path, depth)
        return self._bind_output(output, on_path, depth)

    def _opaque(self, output: PinId) -> bool:
        """Outputs the upstream walk leaves to ``_bind_output`` to report or reuse."""
        if (output.node_id, output.pin_name) in self._bindings:
            return True
        node = self.graph.get_node(output.node_id)
        return node is None or node.type_id not in SHADER_EXPRESSIONS

    def _bind_output(self, output: PinId, on_path: frozenset[int], depth: int) -> str:
        key = (output.node_id, output.pin_name)
        if key in self._bindings:
            return self._bindings[key]

        node, definition = self._resolve_node(output.node_id, on_path, depth)
        expression = SHADER_EXPRESSIONS.get(node.type_id)
        if expression is None:
            raise CodegenError(f"Node type '{node.type_id}' has no shader form", node.id)

        self._check_required(node, definition)
        self.helpers.extend(expression.helpers)
        ctx = ShaderNodeContext(self, node, definition, expression, on_path, depth)
        expr = expression.render(ctx, output.pin_name)
        if expression.inline or output.pin_name in expression.inline_pins:
            self._bindings[key] = expr
            return expr

        pin_type = resolve_output_type(self.graph, output, self.types)
        if pin_type is PinType.ANY:
            raise CodegenError(
                f"Cannot determine the type of output '{output.pin_name}'", node.id
            )
        prefix = expression.prefix or output.pin_name
        if expression.prefix and sum(1 for _ in definition.output_pins()) > 1:
            prefix = f"{prefix}_{output.pin_name}"
        name = self._declare(prefix, pin_type, expr)
        self._bindings[key] = name
        return name

    def shared_expr(self, ctx: ShaderNodeContext) -> str:
        key = (ctx.node.id, "*")
        if key in self._bindings:
            return self._bindings[key]
        shared = ctx.expression.shared
        if shared is None:
            raise ctx.error(f"Node type '{ctx.node.type_id}' has no shared value")
        name = self._declare(shared.prefix, shared.pin_type, shared.render(ctx))
        self._bindings[key] = name
        return name

    def _declare(self, prefix: str, pin_type: PinType, expr: str) -> str:
        name = f"{prefix}_{self._counter}"
        self._counter += 1
        self.body.append(self.target.declare(name, pin_type, expr))
        return name

    def bind_texture(self, asset_path: str) -> str:
        """Binding name for an asset, allocating the next slot on first use."""
        binding = self.textures.get(asset_path)
        if binding is None:
            index = TEXTURE_BINDING_START + len(self.textures)
            binding = TextureBinding(
                name=f"material_texture_{index}",
                binding=index,
                sampler_binding=index + SAMPLER_BINDING_OFFSET,
                asset_path=asset_path,
            )
            self.textures[asset_path] = binding
            logger.debug(f"Bound texture '{asset_path}' at binding {index}")
        return binding.name

    # ==================================================================================
    # Checks
    # ==================================================================================

    def _resolve_node(
        self, node_id: int, on_path: frozenset[int], depth: int
    ) -> tuple[Node, NodeTypeDefinition]:
        if depth > self.config.max_depth:
            raise CycleError(f"Resolution depth exceeded {self.config.max_depth}", node_id)
        if node_id in on_path:
            raise CycleError(f"Data cycle through node {node_id}", node_id)
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
            if pin.required and self.graph.connection_to(PinId.input(node.id, pin.name)) is None:
                if pin.pin_type is PinType.STRING:
                    # Asset handles are stored literals
                    continue
                self._warn(
                    UnconnectedInputWarning(
                        f"Required input '{pin.name}' of '{node.type_id}' is not "
                        "connected; using its default",
                        node.id,
                    )
                )

    def _check_reachability(self, output: Node) -> None:
        used = upstream_nodes(self.graph, output.id)
        for node_id in sorted(self.graph.nodes):
            if node_id in used:
                continue
            definition = self.graph.definition(node_id)
            if definition is None or definition.is_comment:
                continue
            self._warn(
                ReachabilityWarning(
                    f"Node '{self.graph.nodes[node_id].type_id}' does not feed the output",
                    node_id,
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


def generate_shader(
    graph: BlueprintGraph,
    target: ShaderTarget | None = None,
    config: CompilerConfig | None = None,
) -> ShaderResult:
    """Compile a Material graph to a fragment shader.

    Args:
        graph: Graph to compile
        target: Shader target; defaults to ``config.shader_target``
        config: Compiler settings (defaults when omitted)

    Returns:
        A ``ShaderResult``; ``code`` is empty when any error was collected
    """
    return ShaderGenerator(graph, target, config).generate()
