"""Plain data records stored in a graph: nodes, connections, variables."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from blueprintc.types import PinId, PinType, PinValue


class GraphKind(Enum):
    """What a graph compiles to."""

    SCRIPT = "script"
    MATERIAL = "material"

    @property
    def extension(self) -> str:
        return ".blueprint" if self is GraphKind.SCRIPT else ".material_bp"

    def allows_category(self, category: str) -> bool:
        """Whether nodes of a registry category belong in this kind's palette."""
        if self is GraphKind.SCRIPT:
            return category != "Shader"
        return category in ("Shader", "Math", "Utility")


@dataclass
class Node:
    """A node instance. Pins come from the registry definition of ``type_id``.

    ``overrides`` holds sparse per-input values replacing pin defaults.
    ``metadata`` is opaque editor data (position, comment text) passed
    through untouched.
    """

    id: int
    type_id: str
    overrides: dict[str, PinValue] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Connection:
    """Directed edge from an output pin to an input pin."""

    output: PinId
    input: PinId

    def touches(self, node_id: int) -> bool:
        return self.output.node_id == node_id or self.input.node_id == node_id


@dataclass
class Variable:
    """Graph-level variable readable and writable by variable nodes."""

    name: str
    pin_type: PinType
    default: PinValue
    description: str = ""
