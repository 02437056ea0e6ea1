"""Graph analysis utilities shared by the generators, the evaluator and the CLI.

Provides reachability, concrete type resolution for Any pins, stored value
lookup, dependency-first upstream walks, data cycle detection, topological
sorting and content hashing.
"""

import hashlib
import json
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from blueprintc.errors import CycleError
from blueprintc.graph.model import BlueprintGraph
from blueprintc.graph.node import Node
from blueprintc.types import (
    Pin,
    PinDirection,
    PinId,
    PinType,
    PinValue,
    StringValue,
    concrete_type,
    default_for_type,
    encode_type,
    encode_value,
    value_matches,
)

T = TypeVar("T", bound=Hashable)

# =============================================================================
# Stored values
# =============================================================================


@dataclass(frozen=True)
class StoredValue:
    """Value an unconnected input falls back to.

    ``mismatched`` is set when the node held an override whose type no
    longer fits the pin; the pin's declared default is used instead.
    """

    value: PinValue | None
    mismatched: bool = False


def stored_value(node: Node, pin: Pin) -> StoredValue:
    """Override, then pin default, then type default."""
    override = node.overrides.get(pin.name)
    if override is not None:
        if value_matches(override, pin.pin_type):
            return StoredValue(override)
        return StoredValue(_pin_default(pin), mismatched=True)
    return StoredValue(_pin_default(pin))


def _pin_default(pin: Pin) -> PinValue | None:
    if pin.default is not None:
        return pin.default
    return default_for_type(pin.pin_type)


def literal_string(graph: BlueprintGraph, node: Node, pin_name: str) -> str | None:
    """Stored string on an unconnected input, or None if the input is wired."""
    if graph.connection_to(PinId.input(node.id, pin_name)) is not None:
        return None
    definition = graph.registry.lookup(node.type_id)
    pin = definition.get_pin(pin_name, PinDirection.INPUT) if definition else None
    if pin is None:
        return None
    value = stored_value(node, pin).value
    return value.value if isinstance(value, StringValue) else None


# =============================================================================
# Reachability
# =============================================================================


def reachable_nodes(graph: BlueprintGraph) -> set[int]:
    """Nodes reachable from an event through flow edges and data inputs.

    Starting at every event node, follows outgoing Flow connections and,
    for each reached node, the producers feeding its data inputs.
    """
    reached: set[int] = set()
    stack = [node.id for node in graph.event_nodes()]

    while stack:
        node_id = stack.pop()
        if node_id in reached:
            continue
        reached.add(node_id)

        for connection in graph.connections:
            if connection.output.node_id == node_id:
                pin = graph.get_pin(connection.output)
                if pin is not None and pin.pin_type.is_flow:
                    stack.append(connection.input.node_id)
            elif connection.input.node_id == node_id:
                pin = graph.get_pin(connection.input)
                if pin is not None and not pin.pin_type.is_flow:
                    stack.append(connection.output.node_id)

    return reached


def unreachable_nodes(graph: BlueprintGraph) -> list[int]:
    """Ids of non-event, non-comment nodes no event can reach, in id order."""
    reached = reachable_nodes(graph)
    result = []
    for node_id in sorted(graph.nodes):
        definition = graph.definition(node_id)
        if definition is not None and (definition.is_event or definition.is_comment):
            continue
        if node_id not in reached:
            result.append(node_id)
    return result


def upstream_nodes(graph: BlueprintGraph, node_id: int) -> set[int]:
    """Every node feeding ``node_id`` through data connections, itself included."""
    seen: set[int] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(c.output.node_id for c in graph.incoming(current))
    return seen


# =============================================================================
# Type resolution
# =============================================================================


def broadcast(a: PinType, b: PinType) -> PinType | None:
    """Result type of a component-wise operation on two concrete types.

    Equal types keep their type, a Float combines with any vector to give
    the vector, Vec4 and Color give Color. Anything else is None.
    """
    if a is b:
        return a
    if a is PinType.FLOAT and b.is_vector:
        return b
    if b is PinType.FLOAT and a.is_vector:
        return a
    if {a, b} == {PinType.VEC4, PinType.COLOR}:
        return PinType.COLOR
    return None


def resolve_output_type(
    graph: BlueprintGraph, output: PinId, memo: dict[PinId, PinType] | None = None
) -> PinType:
    """Concrete type produced by an output pin.

    Non-Any outputs report their declared type. Any outputs are resolved
    from the node: ``variable/get`` reports the variable's declared type,
    other nodes broadcast the resolved types of their Any inputs. Returns
    Any when the type cannot be determined (unknown node, conflicting
    inputs, or a cycle).

    Args:
        graph: Graph owning the pin
        output: Output pin to resolve
        memo: Resolved outputs shared across calls; a generator keeps one
            for its whole pass so every output is resolved once
    """
    memo = {} if memo is None else memo
    if output in memo:
        return memo[output]

    # Post-order over Any producers with an explicit stack
    stack = [output]
    on_path: set[PinId] = set()
    while stack:
        current = stack[-1]
        if current in memo:
            stack.pop()
            continue
        declared = _declared_output_type(graph, current)
        if declared is not None:
            memo[current] = declared
            stack.pop()
            continue

        sources = _any_sources(graph, current.node_id)
        if current in on_path:
            stack.pop()
            on_path.discard(current)
            memo[current] = _combine(
                [memo.get(s, PinType.ANY) if isinstance(s, PinId) else s for s in sources]
            )
            continue
        on_path.add(current)
        for source in reversed(sources):
            # A source already on the path closes a cycle and stays Any
            if isinstance(source, PinId) and source not in memo and source not in on_path:
                stack.append(source)
    return memo[output]


def resolve_input_type(
    graph: BlueprintGraph, input: PinId, memo: dict[PinId, PinType] | None = None
) -> PinType:
    """Concrete type arriving at an input pin."""
    connection = graph.connection_to(input)
    if connection is not None:
        return resolve_output_type(graph, connection.output, memo)
    pin = graph.get_pin(input)
    if pin is None:
        return PinType.ANY
    return _stored_type(graph.nodes[input.node_id], pin)


def _declared_output_type(graph: BlueprintGraph, output: PinId) -> PinType | None:
    """Type known without looking upstream, or None for an Any output to resolve."""
    pin = graph.get_pin(output)
    if pin is None:
        return PinType.ANY
    if pin.pin_type is not PinType.ANY:
        return pin.pin_type
    node = graph.nodes[output.node_id]
    if node.type_id == "variable/get":
        name = literal_string(graph, node, "var_name")
        variable = graph.get_variable(name) if name is not None else None
        return variable.pin_type if variable is not None else PinType.ANY
    return None


def _any_sources(graph: BlueprintGraph, node_id: int) -> list[PinId | PinType]:
    """Per Any input of a node: its producing output, or its stored type."""
    node = graph.nodes[node_id]
    sources: list[PinId | PinType] = []
    for in_pin in graph.input_pins(node_id):
        if in_pin.pin_type is not PinType.ANY:
            continue
        connection = graph.connection_to(PinId.input(node_id, in_pin.name))
        if connection is not None:
            sources.append(connection.output)
        else:
            sources.append(_stored_type(node, in_pin))
    return sources


def _stored_type(node: Node, pin: Pin) -> PinType:
    value = stored_value(node, pin).value
    if value is None:
        return pin.pin_type
    return concrete_type(value)


def _combine(types: list[PinType]) -> PinType:
    result: PinType | None = None
    for pin_type in types:
        if pin_type is PinType.ANY:
            return PinType.ANY
        result = pin_type if result is None else broadcast(result, pin_type)
        if result is None:
            return PinType.ANY
    return result or PinType.ANY


# =============================================================================
# Upstream ordering
# =============================================================================


def upstream_outputs(
    graph: BlueprintGraph,
    output: PinId,
    skip: Callable[[PinId], bool],
    max_depth: int | None = None,
) -> list[PinId]:
    """Producer outputs feeding ``output``'s node, dependencies first.

    Walks data connections upstream with an explicit stack, visiting a
    node's inputs in pin order. Outputs for which ``skip`` is true are
    neither returned nor walked past. ``output`` itself is not included.
    Resolving the returned outputs in order means no producer is reached
    before everything it reads, so resolvers never recurse more than one
    level.

    Raises:
        CycleError: On a data cycle, or when a producer lies more than
            ``max_depth`` connections upstream
    """
    order: list[PinId] = []
    done: set[PinId] = set()
    on_path: set[PinId] = set()
    stack: list[tuple[PinId, int, bool]] = [(output, 0, False)]
    while stack:
        current, depth, expanded = stack.pop()
        if expanded:
            on_path.discard(current)
            done.add(current)
            if current != output:
                order.append(current)
            continue
        if current in done:
            continue
        if max_depth is not None and depth > max_depth:
            raise CycleError(f"Resolution depth exceeded {max_depth}", current.node_id)

        on_path.add(current)
        stack.append((current, depth, True))
        for producer in reversed(data_producers(graph, current.node_id)):
            if producer in on_path:
                raise CycleError(
                    f"Data cycle through node {producer.node_id}", producer.node_id
                )
            if producer not in done and not skip(producer):
                stack.append((producer, depth + 1, False))
    return order


def data_producers(graph: BlueprintGraph, node_id: int) -> list[PinId]:
    """Outputs wired into a node's data inputs, in pin order."""
    producers = []
    for pin in graph.input_pins(node_id):
        if pin.pin_type.is_flow:
            continue
        connection = graph.connection_to(PinId.input(node_id, pin.name))
        if connection is not None:
            producers.append(connection.output)
    return producers


# =============================================================================
# Cycles and ordering
# =============================================================================


def find_data_cycle(graph: BlueprintGraph) -> list[int] | None:
    """Node ids forming a cycle over data connections, or None if acyclic."""
    dependencies: dict[int, list[int]] = defaultdict(list)
    for connection in graph.connections:
        pin = graph.get_pin(connection.input)
        if pin is not None and not pin.pin_type.is_flow:
            dependencies[connection.input.node_id].append(connection.output.node_id)

    done: set[int] = set()
    for start in sorted(graph.nodes):
        if start in done:
            continue
        path: list[int] = []
        on_path: set[int] = set()
        stack: list[tuple[int, int]] = [(start, 0)]
        while stack:
            node_id, index = stack.pop()
            if index == 0:
                path.append(node_id)
                on_path.add(node_id)
            deps = dependencies[node_id]
            if index < len(deps):
                stack.append((node_id, index + 1))
                dep = deps[index]
                if dep in on_path:
                    return path[path.index(dep) :]
                if dep not in done:
                    stack.append((dep, 0))
            else:
                path.pop()
                on_path.discard(node_id)
                done.add(node_id)
    return None


def topological_sort(items: Iterable[T], dependencies: dict[T, set[T]]) -> list[T]:
    """Order items so that dependencies come before their dependents.

    Items keep their input order where the dependencies allow it.
    Dependencies outside ``items`` are ignored.

    Args:
        items: Items to sort
        dependencies: Map from an item to the items it depends on

    Returns:
        Sorted list with dependencies before dependents

    Raises:
        ValueError: If the dependencies contain a cycle
    """
    ordered_items = list(dict.fromkeys(items))
    members = set(ordered_items)
    deps = {item: dependencies.get(item, set()) & members for item in ordered_items}

    # Count unresolved dependencies for each item
    in_degree = {item: len(item_deps) for item, item_deps in deps.items()}
    dependents: dict[T, list[T]] = defaultdict(list)
    for item in ordered_items:
        for dep in deps[item]:
            dependents[dep].append(item)

    queue = [item for item in ordered_items if in_degree[item] == 0]
    result: list[T] = []
    while queue:
        item = queue.pop(0)
        result.append(item)
        for dependent in dependents[item]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(result) != len(ordered_items):
        remaining = [item for item in ordered_items if item not in result]
        raise ValueError(f"Dependency cycle among: {remaining}")
    return result


# =============================================================================
# Hashing
# =============================================================================


def graph_hash(graph: BlueprintGraph) -> str:
    """Stable sha256 of a graph's compiled content.

    Covers node ids, type ids, overrides, connections, variables and kind.
    Metadata such as editor positions is excluded, so moving a node does
    not change the hash.
    """
    canonical = {
        "kind": graph.kind.value,
        "nodes": [
            {
                "id": node.id,
                "type": node.type_id,
                "overrides": {
                    name: encode_value(value) for name, value in sorted(node.overrides.items())
                },
            }
            for node in sorted(graph.nodes.values(), key=lambda n: n.id)
        ],
        "connections": [
            [str(c.output), str(c.input)] for c in graph.connections
        ],
        "variables": [
            {
                "name": variable.name,
                "type": encode_type(variable.pin_type),
                "default": encode_value(variable.default),
            }
            for variable in sorted(graph.variables.values(), key=lambda v: v.name)
        ],
    }
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
