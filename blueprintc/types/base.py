"""Pin type tags."""

from enum import Enum, auto


class PinType(Enum):
    """Type tag carried by every pin."""

    FLOW = auto()
    BOOL = auto()
    FLOAT = auto()
    VEC2 = auto()
    VEC3 = auto()
    VEC4 = auto()
    COLOR = auto()
    STRING = auto()
    ANY = auto()

    @property
    def is_flow(self) -> bool:
        return self is PinType.FLOW

    @property
    def is_vector(self) -> bool:
        return self in VECTOR_SIZES

    @property
    def size(self) -> int:
        """Number of float components (0 for non-numeric types)."""
        if self is PinType.FLOAT:
            return 1
        return VECTOR_SIZES.get(self, 0)

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def color(self) -> tuple[int, int, int]:
        """Editor color hint (RGB)."""
        return _COLORS[self]


VECTOR_SIZES: dict[PinType, int] = {
    PinType.VEC2: 2,
    PinType.VEC3: 3,
    PinType.VEC4: 4,
    PinType.COLOR: 4,
}

_LABELS = {
    PinType.FLOW: "Flow",
    PinType.BOOL: "Bool",
    PinType.FLOAT: "Float",
    PinType.VEC2: "Vec2",
    PinType.VEC3: "Vec3",
    PinType.VEC4: "Vec4",
    PinType.COLOR: "Color",
    PinType.STRING: "String",
    PinType.ANY: "Any",
}

_COLORS = {
    PinType.FLOW: (255, 255, 255),
    PinType.BOOL: (200, 100, 100),
    PinType.FLOAT: (100, 200, 100),
    PinType.VEC2: (200, 200, 100),
    PinType.VEC3: (200, 150, 100),
    PinType.VEC4: (180, 120, 200),
    PinType.COLOR: (150, 100, 200),
    PinType.STRING: (200, 100, 200),
    PinType.ANY: (150, 150, 150),
}
