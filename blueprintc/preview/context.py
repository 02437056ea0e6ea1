"""Ambient evaluation context for the preview evaluator."""

from dataclasses import dataclass, replace

from blueprintc.types import ColorValue, FloatValue, PinValue, Vec2Value, Vec3Value


@dataclass(frozen=True)
class EvaluationContext:
    """Sample values that stand in for per-fragment shader inputs.

    Passed explicitly to every evaluation; a bake builds one context per
    texel with ``with_uv`` instead of mutating shared state.
    """

    uv: tuple[float, float] = (0.5, 0.5)
    time: float = 0.0
    normal: tuple[float, float, float] = (0.0, 0.0, 1.0)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vertex_color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)

    def with_uv(self, u: float, v: float) -> "EvaluationContext":
        return replace(self, uv=(float(u), float(v)))

    def with_time(self, time: float) -> "EvaluationContext":
        return replace(self, time=float(time))

    def ambient(self, name: str) -> PinValue:
        """Value of an ambient source ("uv", "time", "normal", ...)."""
        match name:
            case "uv":
                return Vec2Value(*self.uv)
            case "time":
                return FloatValue(self.time)
            case "normal":
                return Vec3Value(*self.normal)
            case "position":
                return Vec3Value(*self.position)
            case "vertex_color":
                return ColorValue(*self.vertex_color)
        raise ValueError(f"Unknown ambient source: {name}")
