"""
Blueprint document reading and writing.

Documents are JSON objects ``{"version": N, "graph": {...}}``. Documents
written by this or an older format version load verbatim; newer versions
are rejected with ``VersionError``. Unknown node type ids load as-is and
are reported later by the generators.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from blueprintc.errors import GraphStructureError, SerializationError, VersionError
from blueprintc.graph.model import BlueprintGraph
from blueprintc.graph.node import Connection, GraphKind, Node, Variable
from blueprintc.registry.registry import NodeRegistry
from blueprintc.types import (
    PinId,
    decode_type,
    decode_value,
    encode_type,
    encode_value,
    value_matches,
)

CURRENT_VERSION = 1

# =============================================================================
# Encoding
# =============================================================================


def encode(graph: BlueprintGraph) -> dict[str, Any]:
    """Plain, JSON-ready representation of a graph."""
    return {
        "version": CURRENT_VERSION,
        "graph": {
            "name": graph.name,
            "kind": graph.kind.value,
            "next_id": graph.next_id,
            "nodes": [
                {
                    "id": node.id,
                    "type": node.type_id,
                    "overrides": {
                        name: encode_value(value) for name, value in node.overrides.items()
                    },
                    "metadata": node.metadata,
                }
                for node in sorted(graph.nodes.values(), key=lambda n: n.id)
            ],
            "connections": [
                {
                    "from": {"node": c.output.node_id, "pin": c.output.pin_name},
                    "to": {"node": c.input.node_id, "pin": c.input.pin_name},
                }
                for c in graph.connections
            ],
            "variables": [
                {
                    "name": variable.name,
                    "type": encode_type(variable.pin_type),
                    "default": encode_value(variable.default),
                    "description": variable.description,
                }
                for variable in graph.variables.values()
            ],
        },
    }


def dumps(graph: BlueprintGraph, indent: int | None = 2) -> str:
    return json.dumps(encode(graph), indent=indent)


def save(graph: BlueprintGraph, path: str | Path) -> Path:
    """Write a graph atomically: a temp file in the target directory, then rename.

    Raises:
        SerializationError: If the file cannot be written
    """
    path = Path(path)
    text = dumps(graph)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise SerializationError(f"Cannot write {path}: {e}") from e

    logger.debug(f"Saved '{graph.name}' ({len(graph.nodes)} nodes) to {path}")
    return path


# =============================================================================
# Decoding
# =============================================================================


def _field(data: dict[str, Any], key: str, kind: type | tuple[type, ...], where: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise SerializationError(f"Missing field '{key}' in {where}")
    value = data[key]
    # bool is an int subclass; an id or version is never a bool
    if not isinstance(value, kind) or (isinstance(value, bool) and bool not in _as_tuple(kind)):
        raise SerializationError(
            f"Field '{key}' in {where} has the wrong type: {type(value).__name__}"
        )
    return value


def _as_tuple(kind: type | tuple[type, ...]) -> tuple[type, ...]:
    return kind if isinstance(kind, tuple) else (kind,)


def _decode_node(raw: Any) -> Node:
    node_id = _field(raw, "id", int, "node")
    where = f"node {node_id}"
    type_id = _field(raw, "type", str, where)
    overrides = {
        str(name): decode_value(value)
        for name, value in _field(raw, "overrides", dict, where).items()
    } if "overrides" in raw else {}
    metadata = _field(raw, "metadata", dict, where) if "metadata" in raw else {}
    return Node(node_id, type_id, overrides, metadata)


def _decode_endpoint(raw: Any, key: str) -> tuple[int, str]:
    endpoint = _field(raw, key, dict, "connection")
    return (
        _field(endpoint, "node", int, f"connection '{key}'"),
        _field(endpoint, "pin", str, f"connection '{key}'"),
    )


def _decode_variable(raw: Any) -> Variable:
    name = _field(raw, "name", str, "variable")
    where = f"variable '{name}'"
    pin_type = decode_type(_field(raw, "type", str, where))
    default = decode_value(_field(raw, "default", dict, where))
    if not value_matches(default, pin_type):
        raise SerializationError(
            f"Default of {where} is a {default.pin_type.label}, expected {pin_type.label}"
        )
    description = _field(raw, "description", str, where) if "description" in raw else ""
    return Variable(name, pin_type, default, description)


def _check_connection(graph: BlueprintGraph, connection: Connection) -> None:
    """Reject a loaded connection that no editor could have drawn.

    Endpoints must name existing nodes. Pins are only checked on nodes of a
    registered kind; unknown kinds keep whatever pins the document names.
    """
    for endpoint in (connection.output, connection.input):
        if endpoint.node_id not in graph.nodes:
            raise SerializationError(
                f"Connection {connection.output} -> {connection.input} "
                f"references missing node {endpoint.node_id}",
                endpoint.node_id,
            )
        if graph.definition(endpoint.node_id) is not None and graph.get_pin(endpoint) is None:
            raise SerializationError(
                f"Node {endpoint.node_id} has no {endpoint.direction.name.lower()} pin "
                f"'{endpoint.pin_name}'",
                endpoint.node_id,
            )
    if graph.connection_to(connection.input) is not None:
        raise SerializationError(
            f"Input {connection.input} has more than one incoming connection",
            connection.input.node_id,
        )


def decode(data: Any, registry: NodeRegistry) -> BlueprintGraph:
    """Build a graph from the output of ``encode``.

    Raises:
        VersionError: If the document is newer than ``CURRENT_VERSION``
        SerializationError: If a field is missing, ill-typed or malformed
    """
    version = _field(data, "version", int, "document")
    if version > CURRENT_VERSION:
        raise VersionError(
            f"Document version {version} is newer than supported version {CURRENT_VERSION}"
        )
    raw = _field(data, "graph", dict, "document")

    kind_name = _field(raw, "kind", str, "graph")
    try:
        kind = GraphKind(kind_name)
    except ValueError as e:
        raise SerializationError(f"Unknown graph kind: {kind_name!r}") from e

    graph = BlueprintGraph(registry, name=_field(raw, "name", str, "graph"), kind=kind)
    for raw_node in _field(raw, "nodes", list, "graph"):
        try:
            graph.insert_node(_decode_node(raw_node))
        except GraphStructureError as e:
            raise SerializationError(e.message, e.node_id) from e

    for raw_connection in _field(raw, "connections", list, "graph"):
        out_node, out_pin = _decode_endpoint(raw_connection, "from")
        in_node, in_pin = _decode_endpoint(raw_connection, "to")
        connection = Connection(PinId.output(out_node, out_pin), PinId.input(in_node, in_pin))
        _check_connection(graph, connection)
        graph.connections.append(connection)

    for raw_variable in _field(raw, "variables", list, "graph"):
        variable = _decode_variable(raw_variable)
        graph.variables[variable.name] = variable

    # Never hand out an id at or below one already used
    graph.next_id = max(graph.next_id, _field(raw, "next_id", int, "graph"))

    unknown = sorted({n.type_id for n in graph.nodes.values() if n.type_id not in registry})
    if unknown:
        logger.warning(f"Graph '{graph.name}' uses unknown node types: {', '.join(unknown)}")
    return graph


def loads(text: str, registry: NodeRegistry) -> BlueprintGraph:
    """Parse a JSON document.

    Raises:
        SerializationError: On invalid JSON or an invalid document
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise SerializationError("Invalid JSON: nested too deeply") from e
    return decode(data, registry)


def load(path: str | Path, registry: NodeRegistry) -> BlueprintGraph:
    """Read a graph from a ``.blueprint`` or ``.material_bp`` file.

    Raises:
        SerializationError: If the file cannot be read or is invalid
        VersionError: If the file was written by a newer format version
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SerializationError(f"Cannot read {path}: {e}") from e

    graph = loads(text, registry)
    logger.debug(f"Loaded '{graph.name}' ({len(graph.nodes)} nodes) from {path}")
    return graph
