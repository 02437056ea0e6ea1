"""
Exceptions and warnings for the blueprint compiler.

Errors are raised where a failure is detected. Graph edits raise
``GraphStructureError`` subclasses synchronously and leave the graph
unchanged; the code generators collect ``CodegenError`` and ``CycleError``
instances into their results; serialization raises ``SerializationError``.

Warnings are never raised. They are collected and returned next to
successful output.
"""


class BlueprintError(Exception):
    """Base exception for all blueprint compiler errors.

    Carries an optional node id so callers (the editor, the CLI) can point
    at the offending node.

    Examples:
        >>> raise CodegenError("Unknown node type 'foo/bar'", node_id=7)
        CodegenError: Unknown node type 'foo/bar' (node 7)
    """

    def __init__(self, message: str, node_id: int | None = None):
        """Initialize the exception with a message and optional node id.

        Args:
            message: The error message
            node_id: Id of the node where the error occurred
        """
        self.message = message
        self.node_id = node_id

        location_info = f" (node {node_id})" if node_id is not None else ""
        super().__init__(f"{message}{location_info}")

    def with_node(self, node_id: int) -> "BlueprintError":
        """Create a new error of the same type bound to a different node.

        Args:
            node_id: Node to associate with the error

        Returns:
            A new instance with the updated node id
        """
        return type(self)(self.message, node_id)


# =============================================================================
# Graph edits
# =============================================================================


class GraphStructureError(BlueprintError):
    """An edit would violate a structural invariant of the graph."""


class UnknownNodeType(GraphStructureError):
    """The requested type id is not registered."""


class PinNotFound(GraphStructureError):
    """A pin (or its node) does not exist in the requested direction."""


class IncompatibleTypes(GraphStructureError):
    """The two pin types do not satisfy the compatibility relation."""


class FlowDataMismatch(GraphStructureError):
    """One side of a connection is a Flow pin and the other is not."""


class InputAlreadyConnected(GraphStructureError):
    """The input pin already has an incoming connection."""


class SelfLoop(GraphStructureError):
    """A data connection would feed a node from its own output."""


# =============================================================================
# Code generation
# =============================================================================


class CycleError(BlueprintError):
    """A cycle (or runaway recursion) was found while resolving the graph."""


class CodegenError(BlueprintError):
    """Generation failed for the affected event handler or channel."""


class UnknownVariable(CodegenError):
    """A variable node references a name missing from the variable table."""


# =============================================================================
# Serialization
# =============================================================================


class SerializationError(BlueprintError):
    """Reading or writing a blueprint document failed."""


class VersionError(SerializationError):
    """The document was written by a newer format version."""


# =============================================================================
# Warnings
# =============================================================================


class BlueprintWarning(UserWarning):
    """Non-fatal diagnostic returned alongside generated output."""

    def __init__(self, message: str, node_id: int | None = None):
        self.message = message
        self.node_id = node_id
        location_info = f" (node {node_id})" if node_id is not None else ""
        super().__init__(f"{message}{location_info}")


class ReachabilityWarning(BlueprintWarning):
    """A node cannot be reached from any event node."""


class UnconnectedInputWarning(BlueprintWarning):
    """A required input was left unconnected and its default was used."""


class DefaultTypeMismatchWarning(BlueprintWarning):
    """A stored value does not match its pin type; the pin default was used."""
