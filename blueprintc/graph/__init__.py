"""Graph model and analysis."""

from .analysis import (
    StoredValue,
    broadcast,
    find_data_cycle,
    graph_hash,
    reachable_nodes,
    resolve_input_type,
    resolve_output_type,
    stored_value,
    topological_sort,
    unreachable_nodes,
    upstream_nodes,
    upstream_outputs,
)
from .model import BlueprintGraph
from .node import Connection, GraphKind, Node, Variable

__all__ = [
    "StoredValue",
    "broadcast",
    "find_data_cycle",
    "graph_hash",
    "reachable_nodes",
    "resolve_input_type",
    "resolve_output_type",
    "stored_value",
    "topological_sort",
    "unreachable_nodes",
    "upstream_nodes",
    "upstream_outputs",
    "BlueprintGraph",
    "Connection",
    "GraphKind",
    "Node",
    "Variable",
]
