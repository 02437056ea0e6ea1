"""Tests for the preview evaluator."""

import math

import pytest

from blueprintc.config import CompilerConfig
from blueprintc.errors import CycleError
from blueprintc.graph.node import Connection, Node
from blueprintc.preview import EvaluationContext, evaluate, evaluate_channels
from blueprintc.preview import noise
from blueprintc.preview.nodes import EVALUATORS
from blueprintc.types import (
    ColorValue,
    FloatValue,
    PinId,
    PinType,
    StringValue,
    Vec2Value,
    Vec3Value,
)


def _binary(graph, type_id: str, a, b) -> int:
    node = graph.add_node(type_id)
    graph.set_override(node, "a", a)
    graph.set_override(node, "b", b)
    return node


class TestContext:
    """Tests for the ambient evaluation context."""

    def test_defaults(self):
        """The representative context samples the middle of the surface."""
        context = EvaluationContext()
        assert context.ambient("uv") == Vec2Value(0.5, 0.5)
        assert context.ambient("normal") == Vec3Value(0.0, 0.0, 1.0)
        assert context.ambient("vertex_color") == ColorValue(1.0, 1.0, 1.0, 1.0)

    def test_with_uv_returns_copy(self):
        """with_uv leaves the original context untouched."""
        base = EvaluationContext(time=2.0)
        moved = base.with_uv(0.1, 0.2)
        assert moved.uv == (0.1, 0.2)
        assert moved.time == 2.0
        assert base.uv == (0.5, 0.5)

    def test_unknown_ambient(self):
        """Unknown ambient names raise ValueError."""
        with pytest.raises(ValueError):
            EvaluationContext().ambient("pressure")


class TestEvaluate:
    """Tests for evaluating single pins."""

    def test_uv_to_vec3(self, uv_material):
        """A base color built from uv components follows the context uv."""
        # Arrange
        graph, ids = uv_material
        context = EvaluationContext(uv=(0.25, 0.75))

        # Act
        value = evaluate(graph, ids["output"], "base_color", context)

        # Assert
        assert value == Vec3Value(0.25, 0.75, 0.0)
        assert evaluate(graph, ids["vec"], "v", context) == value

    def test_default_context(self, uv_material):
        """Without a context the middle of the surface is sampled."""
        graph, ids = uv_material
        assert evaluate(graph, ids["vec"], "v") == Vec3Value(0.5, 0.5, 0.0)

    def test_float_arithmetic(self, material_graph):
        """Stored operands combine."""
        add = _binary(material_graph, "math/add", FloatValue(1.0), FloatValue(2.0))
        assert evaluate(material_graph, add, "result") == FloatValue(3.0)

    def test_broadcast(self, material_graph):
        """A Float operand is broadcast over a vector operand."""
        # Arrange
        uv = material_graph.add_node("shader/uv")
        mul = material_graph.add_node("math/multiply")
        material_graph.connect(uv, "uv", mul, "a")
        material_graph.set_override(mul, "b", FloatValue(2.0))

        # Act
        value = evaluate(material_graph, mul, "result", EvaluationContext(uv=(0.25, 0.5)))

        # Assert
        assert value == Vec2Value(0.5, 1.0)

    def test_mismatched_operands(self, material_graph):
        """Vectors of different sizes do not combine."""
        add = _binary(
            material_graph, "math/add", Vec2Value(1.0, 1.0), Vec3Value(1.0, 1.0, 1.0)
        )
        assert evaluate(material_graph, add, "result") is None

    def test_divide_by_zero(self, material_graph):
        """Division by zero yields zero."""
        div = _binary(material_graph, "math/divide", FloatValue(1.0), FloatValue(0.0))
        assert evaluate(material_graph, div, "result") == FloatValue(0.0)

    def test_sqrt_of_negative(self, material_graph):
        """Square roots clamp negative input to zero."""
        node = material_graph.add_node("math/sqrt")
        material_graph.set_override(node, "value", FloatValue(-4.0))
        assert evaluate(material_graph, node, "result") == FloatValue(0.0)

    @pytest.mark.parametrize(
        "base, exponent, expected",
        [
            (2.0, 3.0, 8.0),
            (-2.0, 2.0, 4.0),
            (-2.0, 0.5, 0.0),
            (10.0, 1000.0, math.inf),
        ],
    )
    def test_pow(self, material_graph, base, exponent, expected):
        """pow handles negative bases and overflow."""
        node = material_graph.add_node("math/pow")
        material_graph.set_override(node, "base", FloatValue(base))
        material_graph.set_override(node, "exponent", FloatValue(exponent))
        assert evaluate(material_graph, node, "result") == FloatValue(expected)

    def test_compare(self, script_graph):
        """Compare evaluates its literal mode."""
        compare = _binary(script_graph, "logic/compare", FloatValue(1.0), FloatValue(2.0))
        script_graph.set_override(compare, "mode", StringValue("<"))
        assert evaluate(script_graph, compare, "result").value is True

    def test_time(self, material_graph):
        """Time outputs read the context time."""
        time = material_graph.add_node("shader/time")
        context = EvaluationContext(time=math.pi / 2)
        assert evaluate(material_graph, time, "sin_time", context).value == pytest.approx(1.0)
        assert evaluate(material_graph, time, "time", context) == FloatValue(math.pi / 2)

    def test_ambient_fallback(self, material_graph):
        """An unwired uv input samples the context."""
        # Arrange
        checker = material_graph.add_node("shader/checkerboard")

        # Act
        dark = evaluate(material_graph, checker, "value", EvaluationContext(uv=(0.25, 0.25)))
        light = evaluate(material_graph, checker, "value", EvaluationContext(uv=(0.75, 0.25)))

        # Assert
        assert dark == FloatValue(0.0)
        assert light == FloatValue(1.0)

    def test_override_beats_ambient(self, material_graph):
        """An explicit uv override wins over the context."""
        checker = material_graph.add_node("shader/checkerboard")
        material_graph.set_override(checker, "uv", Vec2Value(0.75, 0.25))
        value = evaluate(material_graph, checker, "value", EvaluationContext(uv=(0.25, 0.25)))
        assert value == FloatValue(1.0)

    def test_mismatched_override_uses_default(self, material_graph):
        """A stale override is replaced by the pin default."""
        vec = material_graph.add_node("shader/make_vec3")
        material_graph.set_override(vec, "y", FloatValue(2.0))
        material_graph.nodes[vec].overrides["x"] = Vec3Value(1.0, 1.0, 1.0)
        assert evaluate(material_graph, vec, "v") == Vec3Value(0.0, 2.0, 0.0)

    def test_variable_get(self, script_graph):
        """variable/get yields the variable default."""
        script_graph.set_variable("speed", PinType.FLOAT, FloatValue(3.0))
        get = script_graph.add_node("variable/get")
        script_graph.set_override(get, "var_name", StringValue("speed"))
        assert evaluate(script_graph, get, "value") == FloatValue(3.0)

    def test_no_preview_form(self, material_graph):
        """Texture samples and unknown kinds evaluate to None."""
        tex = material_graph.add_node("shader/sample_texture")
        material_graph.insert_node(Node(50, "future/hologram"))
        assert evaluate(material_graph, tex, "color") is None
        assert evaluate(material_graph, 50, "value") is None
        assert evaluate(material_graph, 99, "value") is None

    def test_cycle(self, material_graph):
        """A data cycle raises CycleError."""
        # Arrange
        a = material_graph.add_node("math/add")
        b = material_graph.add_node("math/add")
        material_graph.connect(a, "result", b, "a")
        material_graph.connections.append(
            Connection(PinId.output(b, "result"), PinId.input(a, "a"))
        )

        # Act / Assert
        with pytest.raises(CycleError):
            evaluate(material_graph, b, "result")


class TestChannels:
    """Tests for evaluate_channels."""

    def test_pbr_channels(self, uv_material):
        """Every channel is filled, wired or not."""
        # Arrange
        graph, _ = uv_material

        # Act
        channels = evaluate_channels(graph, EvaluationContext(uv=(0.1, 0.2)))

        # Assert
        assert channels["base_color"] == Vec3Value(0.1, 0.2, 0.0)
        assert channels["metallic"] == FloatValue(0.0)
        assert channels["roughness"] == FloatValue(0.5)
        assert channels["normal"] == Vec3Value(0.0, 0.0, 1.0)
        assert set(channels) == {
            "base_color",
            "metallic",
            "roughness",
            "normal",
            "emissive",
            "ao",
            "alpha",
        }

    def test_no_output(self, material_graph):
        """Without an output node there are no channels."""
        material_graph.add_node("shader/uv")
        assert evaluate_channels(material_graph) == {}

    def test_unevaluable_channel_uses_default(self, material_graph):
        """A channel fed by a texture sample falls back to its default."""
        tex = material_graph.add_node("shader/sample_texture")
        output = material_graph.add_node("shader/unlit_output")
        material_graph.connect(tex, "color", output, "color")
        assert evaluate_channels(material_graph)["color"] == ColorValue(1.0, 1.0, 1.0, 1.0)


class TestNoise:
    """Tests for the procedural noise functions."""

    def test_deterministic(self):
        """Noise is a pure function of its coordinates."""
        assert noise.simple_noise(1.3, 2.7) == noise.simple_noise(1.3, 2.7)
        assert noise.hash21(4.0, 5.0) == noise.hash21(4.0, 5.0)

    def test_ranges(self):
        """Value noises stay within [0, 1]."""
        for i in range(20):
            x, y = i * 0.37, i * 0.91
            assert 0.0 <= noise.simple_noise(x, y) <= 1.0
            assert 0.0 <= noise.hash21(x, y) <= 1.0
            distance, cell = noise.voronoi_noise(x, y)
            assert distance >= 0.0
            assert 0.0 <= cell <= 1.0

    def test_fract_is_floor_based(self):
        """fract of a negative number stays in [0, 1)."""
        assert noise.fract(-0.25) == pytest.approx(0.75)

    def test_fbm_octaves_capped(self):
        """Octaves beyond the cap add nothing."""
        capped = noise.fbm_noise(0.3, 0.6, noise.MAX_OCTAVES, 1.0, 0.5, 2.0, 0.5)
        assert noise.fbm_noise(0.3, 0.6, 50, 1.0, 0.5, 2.0, 0.5) == capped

    def test_checkerboard(self):
        """Adjacent cells alternate."""
        assert noise.checkerboard(0.1, 0.1, 2.0) == 0.0
        assert noise.checkerboard(0.6, 0.1, 2.0) == 1.0
        assert noise.checkerboard(0.6, 0.6, 2.0) == 0.0


class TestLargeGraphs:
    """Tests for deep and shared producer graphs."""

    def test_long_chain(self, material_graph):
        """A chain deeper than the interpreter stack evaluates."""
        # Arrange
        nodes = [material_graph.add_node("shader/one_minus")]
        for _ in range(1499):
            node = material_graph.add_node("shader/one_minus")
            material_graph.connect(nodes[-1], "result", node, "x")
            nodes.append(node)

        # Act
        config = CompilerConfig(max_depth=2000)
        value = evaluate(material_graph, nodes[-1], "result", config=config)

        # Assert
        assert value == FloatValue(0.0)

    def test_shared_producers_evaluated_once(self, material_graph, monkeypatch):
        """Each node of a doubly-linked chain is evaluated exactly once."""
        # Arrange
        calls = []
        add = EVALUATORS["math/add"]

        def counting_add(ev, pin):
            calls.append(ev.node.id)
            return add(ev, pin)

        monkeypatch.setitem(EVALUATORS, "math/add", counting_add)
        nodes = [_binary(material_graph, "math/add", FloatValue(1.0), FloatValue(0.0))]
        for _ in range(24):
            node = material_graph.add_node("math/add")
            material_graph.connect(nodes[-1], "result", node, "a")
            material_graph.connect(nodes[-1], "result", node, "b")
            nodes.append(node)

        # Act
        value = evaluate(material_graph, nodes[-1], "result")

        # Assert
        assert value == FloatValue(2.0**24)
        assert sorted(calls) == sorted(nodes)

    def test_depth_cap(self, material_graph):
        """Producers beyond max_depth raise CycleError."""
        # Arrange
        nodes = [material_graph.add_node("shader/one_minus")]
        for _ in range(20):
            node = material_graph.add_node("shader/one_minus")
            material_graph.connect(nodes[-1], "result", node, "x")
            nodes.append(node)

        # Act / Assert
        with pytest.raises(CycleError, match="depth exceeded 8"):
            evaluate(
                material_graph, nodes[-1], "result", config=CompilerConfig(max_depth=8)
            )
