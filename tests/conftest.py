"""Fixtures and configuration for pytest."""

import pytest

from blueprintc.graph import BlueprintGraph, GraphKind
from blueprintc.registry import NodeRegistry, create_default_registry


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as baking many texels")


@pytest.fixture(scope="session")
def registry() -> NodeRegistry:
    """Fixture providing the frozen built-in node catalogue."""
    return create_default_registry()


@pytest.fixture
def script_graph(registry: NodeRegistry) -> BlueprintGraph:
    """Fixture providing an empty script graph."""
    return BlueprintGraph(registry, name="Player", kind=GraphKind.SCRIPT)


@pytest.fixture
def material_graph(registry: NodeRegistry) -> BlueprintGraph:
    """Fixture providing an empty material graph."""
    return BlueprintGraph(registry, name="Rock", kind=GraphKind.MATERIAL)


@pytest.fixture
def hello_graph(script_graph: BlueprintGraph) -> BlueprintGraph:
    """Fixture providing on_ready -> print with the default message."""
    ready = script_graph.add_node("event/on_ready")
    printer = script_graph.add_node("utility/print")
    script_graph.connect(ready, "exec", printer, "exec")
    return script_graph


@pytest.fixture
def uv_material(material_graph: BlueprintGraph) -> tuple[BlueprintGraph, dict[str, int]]:
    """Fixture providing uv -> make_vec3(u, v, 0) -> pbr_output.base_color."""
    uv = material_graph.add_node("shader/uv")
    vec = material_graph.add_node("shader/make_vec3")
    output = material_graph.add_node("shader/pbr_output")
    material_graph.connect(uv, "u", vec, "x")
    material_graph.connect(uv, "v", vec, "y")
    material_graph.connect(vec, "v", output, "base_color")
    return material_graph, {"uv": uv, "vec": vec, "output": output}


@pytest.fixture
def checker_material(material_graph: BlueprintGraph) -> tuple[BlueprintGraph, int]:
    """Fixture providing checkerboard -> unlit_output.color."""
    checker = material_graph.add_node("shader/checkerboard")
    output = material_graph.add_node("shader/unlit_output")
    material_graph.connect(checker, "value", output, "color")
    return material_graph, output
