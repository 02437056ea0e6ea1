"""Result records returned by the code generators."""

from dataclasses import dataclass, field

from blueprintc.errors import BlueprintError, BlueprintWarning


@dataclass
class ScriptResult:
    """Result of script generation.

    ``code`` is empty whenever ``errors`` is non-empty.
    """

    code: str
    warnings: list[BlueprintWarning] = field(default_factory=list)
    errors: list[BlueprintError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise the first collected error, if any."""
        if self.errors:
            raise self.errors[0]


@dataclass
class TextureBinding:
    """A texture slot the generated shader reads from."""

    name: str
    binding: int
    sampler_binding: int
    asset_path: str


@dataclass
class ShaderResult:
    """Result of shader generation."""

    code: str
    texture_bindings: list[TextureBinding] = field(default_factory=list)
    is_pbr: bool = False
    warnings: list[BlueprintWarning] = field(default_factory=list)
    errors: list[BlueprintError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0]
