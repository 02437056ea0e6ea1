"""Tests for the pin type system."""

import pytest

from blueprintc.errors import SerializationError
from blueprintc.types import (
    AnyValue,
    BoolValue,
    ColorValue,
    FloatValue,
    PinType,
    StringValue,
    Vec2Value,
    Vec3Value,
    compatible,
    decode_type,
    decode_value,
    default_for_type,
    encode_value,
    from_components,
    is_flow_mismatch,
    unwrap,
    value_matches,
)


class TestCompatibility:
    """Tests for the connection compatibility relation."""

    def test_identical_types_are_compatible(self):
        """Every type connects to itself."""
        for pin_type in PinType:
            assert compatible(pin_type, pin_type)

    def test_any_matches_everything(self):
        """Any is compatible in both directions with every type."""
        for pin_type in PinType:
            assert compatible(PinType.ANY, pin_type)
            assert compatible(pin_type, PinType.ANY)

    def test_vec4_and_color_interchange(self):
        """Vec4 and Color share a layout and connect both ways."""
        assert compatible(PinType.VEC4, PinType.COLOR)
        assert compatible(PinType.COLOR, PinType.VEC4)

    def test_no_implicit_widening(self):
        """A Float never feeds a vector and vectors do not mix sizes."""
        assert not compatible(PinType.FLOAT, PinType.VEC3)
        assert not compatible(PinType.VEC2, PinType.VEC3)
        assert not compatible(PinType.BOOL, PinType.FLOAT)

    def test_flow_mismatch(self):
        """Exactly one Flow side is a mismatch."""
        assert is_flow_mismatch(PinType.FLOW, PinType.FLOAT)
        assert is_flow_mismatch(PinType.STRING, PinType.FLOW)
        assert not is_flow_mismatch(PinType.FLOW, PinType.FLOW)
        assert not is_flow_mismatch(PinType.FLOAT, PinType.VEC3)


class TestValues:
    """Tests for pin values and defaults."""

    def test_sizes(self):
        """Numeric types report their component counts."""
        assert PinType.FLOAT.size == 1
        assert PinType.VEC2.size == 2
        assert PinType.COLOR.size == 4
        assert PinType.STRING.size == 0

    def test_defaults(self):
        """Each type has a zero value; Flow carries none."""
        assert default_for_type(PinType.FLOW) is None
        assert default_for_type(PinType.BOOL) == BoolValue(False)
        assert default_for_type(PinType.VEC3) == Vec3Value(0.0, 0.0, 0.0)
        assert default_for_type(PinType.COLOR) == ColorValue(1.0, 1.0, 1.0, 1.0)
        assert default_for_type(PinType.ANY) == AnyValue(FloatValue(0.0))

    def test_from_components(self):
        """Numeric values build from float tuples."""
        # Act
        value = from_components(PinType.VEC2, (1, 2))

        # Assert
        assert value == Vec2Value(1.0, 2.0)

    def test_from_components_wrong_size(self):
        """The component count must match the type."""
        with pytest.raises(ValueError, match="takes 3 components"):
            from_components(PinType.VEC3, (1.0, 2.0))

    def test_unwrap_nested_any(self):
        """unwrap strips every Any layer."""
        assert unwrap(AnyValue(AnyValue(FloatValue(2.0)))) == FloatValue(2.0)

    def test_value_matches(self):
        """Stored values fit compatible pins only; nothing fits Flow."""
        assert value_matches(ColorValue(1, 0, 0), PinType.VEC4)
        assert value_matches(StringValue("x"), PinType.ANY)
        assert not value_matches(FloatValue(1.0), PinType.VEC3)
        assert not value_matches(FloatValue(1.0), PinType.FLOW)

    def test_value_matches_unwraps_any(self):
        """Any-wrapped values are judged by their inner type on concrete pins."""
        assert value_matches(AnyValue(FloatValue(1.0)), PinType.FLOAT)
        assert not value_matches(AnyValue(StringValue("oops")), PinType.FLOAT)
        assert value_matches(AnyValue(StringValue("oops")), PinType.ANY)


class TestCodec:
    """Tests for JSON encoding of pin types and values."""

    def test_encode_value(self):
        """Vectors encode as component lists tagged with the type label."""
        assert encode_value(Vec3Value(1.0, 2.0, 3.0)) == {
            "type": "Vec3",
            "value": [1.0, 2.0, 3.0],
        }

    def test_any_roundtrip(self):
        """Any values nest the inner encoding."""
        # Arrange
        value = AnyValue(StringValue("hi"))

        # Act
        decoded = decode_value(encode_value(value))

        # Assert
        assert decoded == value

    def test_scalar_payload_accepted_for_float(self):
        """A bare number decodes as a Float."""
        assert decode_value({"type": "Float", "value": 0.25}) == FloatValue(0.25)

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "Vec2", "value": [1.0]},
            {"type": "Bool", "value": 1},
            {"type": "Float", "value": True},
            {"type": "Flow", "value": None},
            {"type": "Vec9", "value": [0.0]},
            {"value": [0.0]},
        ],
    )
    def test_malformed_values(self, raw):
        """Ill-typed payloads raise SerializationError."""
        with pytest.raises(SerializationError):
            decode_value(raw)

    def test_unknown_type_label(self):
        """Unknown labels raise SerializationError."""
        with pytest.raises(SerializationError, match="Unknown pin type"):
            decode_type("Matrix")
