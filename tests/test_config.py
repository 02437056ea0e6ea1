"""Tests for compiler configuration and error types."""

import pytest

from blueprintc.config import CompilerConfig
from blueprintc.errors import (
    BlueprintError,
    CodegenError,
    GraphStructureError,
    ReachabilityWarning,
    SelfLoop,
    SerializationError,
    UnknownVariable,
    VersionError,
)


class TestCompilerConfig:
    """Tests for CompilerConfig."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = CompilerConfig()
        assert config.max_depth == 256
        assert config.float_precision == 6
        assert config.shader_target == "wgsl"
        assert config.max_output_nodes == 1

    @pytest.mark.parametrize(
        "changes",
        [{"max_depth": 0}, {"float_precision": 0}, {"shader_target": "hlsl"}],
    )
    def test_invalid_values(self, changes):
        """Invalid settings raise ValueError."""
        with pytest.raises(ValueError):
            CompilerConfig(**changes)

    def test_from_env(self):
        """BLUEPRINTC_* variables override the defaults."""
        # Arrange
        environ = {
            "BLUEPRINTC_MAX_DEPTH": "64",
            "BLUEPRINTC_FLOAT_PRECISION": "3",
            "BLUEPRINTC_SHADER_TARGET": "GLSL",
            "UNRELATED": "1",
        }

        # Act
        config = CompilerConfig.from_env(environ)

        # Assert
        assert config == CompilerConfig(max_depth=64, float_precision=3, shader_target="glsl")

    def test_from_env_empty(self):
        """An empty environment gives the defaults."""
        assert CompilerConfig.from_env({}) == CompilerConfig()

    def test_from_env_bad_integer(self):
        """Non-integer values are reported with the variable name."""
        with pytest.raises(ValueError, match="BLUEPRINTC_MAX_DEPTH"):
            CompilerConfig.from_env({"BLUEPRINTC_MAX_DEPTH": "deep"})

    def test_with_overrides_skips_none(self):
        """None values leave fields untouched."""
        config = CompilerConfig().with_overrides(shader_target="glsl", float_precision=None)
        assert config.shader_target == "glsl"
        assert config.float_precision == 6


class TestErrors:
    """Tests for the error hierarchy."""

    def test_message_includes_node(self):
        """Errors bound to a node mention it."""
        error = CodegenError("Unknown node type 'foo/bar'", node_id=7)
        assert str(error) == "Unknown node type 'foo/bar' (node 7)"
        assert error.message == "Unknown node type 'foo/bar'"

    def test_message_without_node(self):
        """Errors without a node carry the bare message."""
        assert str(CodegenError("Material has no output node")) == "Material has no output node"

    def test_with_node(self):
        """with_node keeps the type and message."""
        error = SelfLoop("Node cannot connect to itself").with_node(3)
        assert isinstance(error, SelfLoop)
        assert error.node_id == 3

    def test_hierarchy(self):
        """Specific errors subclass their family."""
        assert issubclass(SelfLoop, GraphStructureError)
        assert issubclass(UnknownVariable, CodegenError)
        assert issubclass(VersionError, SerializationError)
        assert issubclass(SerializationError, BlueprintError)

    def test_warnings_are_user_warnings(self):
        """Warnings carry a node id and are UserWarning subclasses."""
        warning = ReachabilityWarning("Node is not connected to any event", 4)
        assert isinstance(warning, UserWarning)
        assert str(warning).endswith("(node 4)")
