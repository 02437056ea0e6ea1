"""Compiler configuration.

Defaults live in ``CompilerConfig``. ``CompilerConfig.from_env`` applies
``BLUEPRINTC_*`` environment overrides; CLI options override both.
"""

import os
from dataclasses import dataclass, replace

from loguru import logger

ENV_PREFIX = "BLUEPRINTC_"

SHADER_TARGETS = ("wgsl", "glsl")


@dataclass(frozen=True)
class CompilerConfig:
    """Settings shared by the code generators and the evaluator."""

    # Hard cap on resolver recursion; guards against cycles that slip past
    # the on-path visited set.
    max_depth: int = 256
    float_precision: int = 6
    indent: str = "    "
    max_output_nodes: int = 1
    shader_target: str = "wgsl"

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.float_precision < 1:
            raise ValueError(
                f"float_precision must be positive, got {self.float_precision}"
            )
        if self.shader_target not in SHADER_TARGETS:
            raise ValueError(
                f"Unknown shader target: {self.shader_target}. "
                f"Expected one of {', '.join(SHADER_TARGETS)}"
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "CompilerConfig":
        """Build a config from defaults plus ``BLUEPRINTC_*`` variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            A validated configuration

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        if max_depth := env.get(f"{ENV_PREFIX}MAX_DEPTH"):
            overrides["max_depth"] = _parse_int("MAX_DEPTH", max_depth)
        if precision := env.get(f"{ENV_PREFIX}FLOAT_PRECISION"):
            overrides["float_precision"] = _parse_int("FLOAT_PRECISION", precision)
        if target := env.get(f"{ENV_PREFIX}SHADER_TARGET"):
            overrides["shader_target"] = target.lower()

        if overrides:
            logger.debug(f"Config overrides from environment: {overrides}")
        return replace(cls(), **overrides)

    def with_overrides(self, **changes: object) -> "CompilerConfig":
        """Copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e
