"""Tests for the command line interface."""

import sys
from pathlib import Path

import pytest
from loguru import logger
from PIL import Image
from typer.testing import CliRunner
from watchdog.events import FileModifiedEvent

from blueprintc.config import CompilerConfig
from blueprintc.graph import graph_hash
from blueprintc.graph.node import Node
from blueprintc.main import BlueprintChangeHandler, app
from blueprintc.serialization import save
from blueprintc.types import StringValue

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logger():
    """The CLI callback points loguru at the runner's stream; reset it afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def hello_file(hello_graph, tmp_path) -> Path:
    """Fixture providing the hello graph saved as a .blueprint file."""
    return save(hello_graph, tmp_path / "hello.blueprint")


@pytest.fixture
def uv_file(uv_material, tmp_path) -> Path:
    """Fixture providing the uv material saved as a .material_bp file."""
    graph, _ = uv_material
    return save(graph, tmp_path / "uv.material_bp")


@pytest.fixture
def checker_file(checker_material, tmp_path) -> Path:
    """Fixture providing the checkerboard material saved as a .material_bp file."""
    graph, _ = checker_material
    return save(graph, tmp_path / "checker.material_bp")


class TestGeneral:
    """Tests for top-level behavior."""

    def test_help_lists_commands(self):
        """--help names every command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("compile-script", "compile-shader", "bake", "bake-gif", "watch", "info"):
            assert command in result.stdout

    def test_missing_file(self, tmp_path):
        """Unreadable blueprints exit with status 1."""
        result = runner.invoke(app, ["compile-script", str(tmp_path / "nope.blueprint")])
        assert result.exit_code == 1


class TestCompileScript:
    """Tests for compile-script."""

    def test_stdout(self, hello_file):
        """Code goes to stdout when no output file is given."""
        result = runner.invoke(app, ["compile-script", str(hello_file)])
        assert result.exit_code == 0
        assert 'print("Hello");' in result.stdout

    def test_output_file(self, hello_file, tmp_path):
        """-o writes the code to a file, creating parent directories."""
        # Arrange
        output = tmp_path / "out" / "hello.rhai"

        # Act
        result = runner.invoke(app, ["compile-script", str(hello_file), "-o", str(output)])

        # Assert
        assert result.exit_code == 0
        assert output.read_text() == 'fn on_ready() {\n    print("Hello");\n}\n'

    def test_header(self, hello_file):
        """--header prefixes provenance comments."""
        result = runner.invoke(app, ["compile-script", str(hello_file), "--header"])
        assert "// Generated by blueprintc v0.1.0" in result.stdout
        assert "// Source file: hello.blueprint" in result.stdout
        assert "// Target: rhai" in result.stdout

    def test_generation_errors(self, hello_graph, tmp_path):
        """Graphs with errors exit with status 1."""
        hello_graph.insert_node(Node(9, "future/teleport"))
        path = save(hello_graph, tmp_path / "broken.blueprint")
        result = runner.invoke(app, ["compile-script", str(path)])
        assert result.exit_code == 1


class TestCompileShader:
    """Tests for compile-shader."""

    def test_default_wgsl(self, uv_file):
        """WGSL is the default target."""
        result = runner.invoke(app, ["compile-shader", str(uv_file)])
        assert result.exit_code == 0
        assert "fn fragment(in: VertexOutput)" in result.stdout

    def test_glsl_target(self, uv_file):
        """-t glsl selects GLSL."""
        result = runner.invoke(app, ["compile-shader", str(uv_file), "-t", "glsl"])
        assert result.exit_code == 0
        assert "#version 460 core" in result.stdout

    def test_precision(self, checker_file):
        """--precision controls float literals."""
        result = runner.invoke(app, ["compile-shader", str(checker_file), "--precision", "3"])
        assert "checkerboard(in.uv, 2.000)" in result.stdout

    def test_invalid_target(self, uv_file):
        """Unknown targets exit with status 1."""
        result = runner.invoke(app, ["compile-shader", str(uv_file), "-t", "hlsl"])
        assert result.exit_code == 1

    def test_environment_target(self, uv_file, monkeypatch):
        """BLUEPRINTC_SHADER_TARGET applies when -t is omitted."""
        monkeypatch.setenv("BLUEPRINTC_SHADER_TARGET", "glsl")
        result = runner.invoke(app, ["compile-shader", str(uv_file)])
        assert "#version 460 core" in result.stdout

    def test_two_outputs(self, material_graph, tmp_path):
        """Materials with several outputs exit with status 1."""
        material_graph.add_node("shader/pbr_output")
        material_graph.add_node("shader/pbr_output")
        path = save(material_graph, tmp_path / "two.material_bp")
        result = runner.invoke(app, ["compile-shader", str(path)])
        assert result.exit_code == 1


class TestBake:
    """Tests for bake and bake-gif."""

    def test_bake_png(self, checker_file, tmp_path):
        """The output node's color channel is baked by default."""
        # Arrange
        output = tmp_path / "checker.png"

        # Act
        result = runner.invoke(app, ["bake", str(checker_file), str(output), "-s", "8"])

        # Assert
        assert result.exit_code == 0
        with Image.open(output) as image:
            assert image.size == (8, 8)

    def test_bake_explicit_pin(self, uv_material, uv_file, tmp_path):
        """--node and --pin pick another pin."""
        _, ids = uv_material
        output = tmp_path / "vec.png"
        result = runner.invoke(
            app,
            ["bake", str(uv_file), str(output), "-n", str(ids["vec"]), "-p", "v", "-s", "2"],
        )
        assert result.exit_code == 0
        assert output.exists()

    def test_bake_missing_node(self, checker_file, tmp_path):
        """An unknown node id exits with status 1."""
        result = runner.invoke(
            app, ["bake", str(checker_file), str(tmp_path / "x.png"), "-n", "42"]
        )
        assert result.exit_code == 1

    def test_bake_without_output_node(self, material_graph, tmp_path):
        """Without an output node --node is required."""
        material_graph.add_node("shader/uv")
        path = save(material_graph, tmp_path / "bare.material_bp")
        result = runner.invoke(app, ["bake", str(path), str(tmp_path / "x.png")])
        assert result.exit_code == 1

    def test_bake_gif(self, checker_file, tmp_path):
        """bake-gif writes an animated GIF."""
        # Arrange
        output = tmp_path / "checker.gif"

        # Act
        result = runner.invoke(
            app,
            ["bake-gif", str(checker_file), str(output), "-s", "4", "--fps", "5", "-d", "0.4"],
        )

        # Assert
        assert result.exit_code == 0
        assert output.read_bytes()[:4] == b"GIF8"


class TestInfoAndNodes:
    """Tests for info and nodes."""

    def test_info(self, hello_graph, hello_file):
        """info prints counts, events and the content hash."""
        result = runner.invoke(app, ["info", str(hello_file)])
        assert result.exit_code == 0
        assert "Kind:        script" in result.stdout
        assert "Nodes:       2" in result.stdout
        assert "Events:      event/on_ready" in result.stdout
        assert f"Hash:        {graph_hash(hello_graph)}" in result.stdout

    def test_info_material(self, uv_file):
        """Materials list their output nodes."""
        result = runner.invoke(app, ["info", str(uv_file)])
        assert "Outputs:     shader/pbr_output" in result.stdout

    def test_info_unknown_types(self, hello_graph, tmp_path):
        """Unknown node types are listed."""
        hello_graph.insert_node(Node(9, "future/teleport"))
        path = save(hello_graph, tmp_path / "future.blueprint")
        result = runner.invoke(app, ["info", str(path)])
        assert "Unknown:     future/teleport" in result.stdout

    def test_nodes_for_material(self):
        """--kind filters the catalogue to one graph kind's palette."""
        result = runner.invoke(app, ["nodes", "--kind", "material"])
        assert result.exit_code == 0
        assert "Shader:" in result.stdout
        assert "shader/checkerboard" in result.stdout
        assert "event/on_ready" not in result.stdout

    def test_nodes_by_category(self):
        """--category filters case-insensitively."""
        result = runner.invoke(app, ["nodes", "-c", "events"])
        assert "event/on_update" in result.stdout
        assert "math/add" not in result.stdout

    def test_nodes_unknown_kind(self):
        """Unknown kinds exit with status 1."""
        result = runner.invoke(app, ["nodes", "--kind", "animation"])
        assert result.exit_code == 1


class TestWatchHandler:
    """Tests for the watch command's change handler."""

    def test_compile_writes_output(self, hello_file, tmp_path):
        """A compile writes the output file and counts the success."""
        # Arrange
        output = tmp_path / "hello.rhai"
        handler = BlueprintChangeHandler(hello_file, output, CompilerConfig())

        # Act
        ok = handler.compile()

        # Assert
        assert ok
        assert handler.compiles == 1
        assert 'print("Hello");' in output.read_text()

    def test_material_uses_shader_compiler(self, uv_file, tmp_path):
        """.material_bp files compile to shaders."""
        output = tmp_path / "uv.frag"
        handler = BlueprintChangeHandler(uv_file, output, CompilerConfig(shader_target="glsl"))
        assert handler.compile()
        assert output.read_text().startswith("#version 460 core")

    def test_failure_keeps_watching(self, hello_file, tmp_path):
        """A broken file is reported and the handler stays usable."""
        # Arrange
        output = tmp_path / "hello.rhai"
        handler = BlueprintChangeHandler(hello_file, output, CompilerConfig())
        good = hello_file.read_text()
        hello_file.write_text("{broken")

        # Act
        failed = handler.compile()
        hello_file.write_text(good)
        handler.on_modified(FileModifiedEvent(str(hello_file)))

        # Assert
        assert not failed
        assert handler.compiles == 1
        assert output.exists()

    def test_other_files_ignored(self, hello_file, tmp_path):
        """Changes to other files in the directory do not recompile."""
        handler = BlueprintChangeHandler(hello_file, tmp_path / "hello.rhai", CompilerConfig())
        handler.on_modified(FileModifiedEvent(str(tmp_path / "other.blueprint")))
        assert handler.compiles == 0

    def test_moved_node_skips_recompile(self, hello_graph, hello_file, tmp_path):
        """Saving after only moving a node leaves the output alone."""
        # Arrange
        output = tmp_path / "hello.rhai"
        handler = BlueprintChangeHandler(hello_file, output, CompilerConfig())
        handler.compile()
        output.write_text("untouched")

        # Act
        hello_graph.nodes[1].metadata["position"] = [300.0, 80.0]
        save(hello_graph, hello_file)
        handler.on_modified(FileModifiedEvent(str(hello_file)))

        # Assert
        assert handler.compiles == 1
        assert output.read_text() == "untouched"

    def test_content_change_recompiles(self, hello_graph, hello_file, tmp_path):
        """An edited override produces fresh code."""
        # Arrange
        output = tmp_path / "hello.rhai"
        handler = BlueprintChangeHandler(hello_file, output, CompilerConfig())
        handler.compile()

        # Act
        hello_graph.set_override(1, "message", StringValue("Bye"))
        save(hello_graph, hello_file)
        handler.on_modified(FileModifiedEvent(str(hello_file)))

        # Assert
        assert handler.compiles == 2
        assert 'print("Bye");' in output.read_text()

    def test_dispatch_follows_graph_kind(self, uv_material, tmp_path):
        """A material saved under a script suffix still compiles as a shader."""
        # Arrange
        graph, _ = uv_material
        misnamed = save(graph, tmp_path / "uv.blueprint")
        output = tmp_path / "uv.frag"
        handler = BlueprintChangeHandler(misnamed, output, CompilerConfig(shader_target="glsl"))

        # Act
        ok = handler.compile()

        # Assert
        assert ok
        assert output.read_text().startswith("#version 460 core")
