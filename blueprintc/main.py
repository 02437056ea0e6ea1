"""Command line interface for blueprintc.

This module provides a command-line interface for compiling blueprint graphs
to scripts and shaders, baking procedural material previews to images, and
inspecting graphs and the node catalogue.
"""

import os
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import arrow
import typer
import watchdog.events
import watchdog.observers
from loguru import logger
from watchdog.events import FileSystemEventHandler

from blueprintc import __version__
from blueprintc.codegen import generate_script, generate_shader
from blueprintc.codegen.shader import COLOR_CHANNELS
from blueprintc.config import CompilerConfig
from blueprintc.errors import BlueprintError
from blueprintc.graph import BlueprintGraph, GraphKind, graph_hash
from blueprintc.preview import (
    EvaluationContext,
    bake_frames,
    bake_texture,
    save_gif,
    save_texture,
)
from blueprintc.registry import NodeRegistry, create_default_registry
from blueprintc.serialization import load

# Define type variables for TypedCallable
F = TypeVar("F", bound=Callable[..., Any])


# TypedCommand decorator helper
def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="blueprintc",
    help=(
        "Compile visual blueprint graphs to scripts and shaders. "
        "Commands: compile-script, compile-shader, bake, bake-gif, watch, info, nodes."
    ),
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


# =============================================================================
# Helpers
# =============================================================================


def _build_config(
    target: str | None = None, precision: int | None = None
) -> CompilerConfig:
    """Environment config with CLI options applied on top.

    Raises:
        typer.Exit: If an option or environment variable is invalid
    """
    try:
        return CompilerConfig.from_env().with_overrides(
            shader_target=target.lower() if target else None,
            float_precision=precision,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1) from e


def _load_graph(
    blueprint_file: Path, registry: NodeRegistry | None = None
) -> BlueprintGraph:
    try:
        return load(blueprint_file, registry or create_default_registry())
    except BlueprintError as e:
        logger.error(f"Failed to load {blueprint_file}: {e}")
        raise typer.Exit(1) from e


def _add_header(code: str, source_file: Path, target: str) -> str:
    """Prefix generated code with provenance comments."""
    timestamp = arrow.utcnow().format("YYYY-MM-DD HH:mm:ss UTC")
    header = f"// Generated by blueprintc v{__version__}\n"
    header += f"// Generation time: {timestamp}\n"
    header += f"// Source file: {source_file.name}\n"
    header += f"// Target: {target}\n"
    header += "\n"
    return header + code


def _emit(code: str, output: Path | None) -> None:
    """Write code to a file, or to stdout when no file is given."""
    if output is None:
        typer.echo(code, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(code, encoding="utf-8")
    logger.info(f"Code written to {output}")


def _fail_on_errors(errors: list[BlueprintError], source: Path) -> None:
    if not errors:
        return
    for error in errors:
        logger.error(f"{source.name}: {error}")
    raise typer.Exit(1)


def _compile_script(
    blueprint_file: Path,
    config: CompilerConfig,
    header: bool,
    graph: BlueprintGraph | None = None,
) -> str:
    if graph is None:
        graph = _load_graph(blueprint_file)
    result = generate_script(graph, config)
    _fail_on_errors(result.errors, blueprint_file)
    logger.info(
        f"Compiled script '{graph.name}' ({len(result.warnings)} warning(s))"
    )
    return _add_header(result.code, blueprint_file, "rhai") if header else result.code


def _compile_shader(
    blueprint_file: Path,
    config: CompilerConfig,
    header: bool,
    graph: BlueprintGraph | None = None,
) -> str:
    if graph is None:
        graph = _load_graph(blueprint_file)
    result = generate_shader(graph, config=config)
    _fail_on_errors(result.errors, blueprint_file)
    for binding in result.texture_bindings:
        logger.info(
            f"Texture '{binding.name}' at binding {binding.binding} "
            f"(sampler {binding.sampler_binding}): {binding.asset_path}"
        )
    logger.info(
        f"Compiled {config.shader_target.upper()} shader '{graph.name}' "
        f"({'PBR' if result.is_pbr else 'unlit'}, {len(result.warnings)} warning(s))"
    )
    if header:
        return _add_header(result.code, blueprint_file, config.shader_target)
    return result.code


def _bake_source(
    graph: BlueprintGraph, node_id: int | None, pin: str | None
) -> tuple[int, str]:
    """Pick the pin to bake: the color channel of the output node by default.

    Raises:
        typer.Exit: If the node or pin cannot be determined
    """
    if node_id is None:
        outputs = graph.output_nodes()
        if not outputs:
            logger.error(f"Material '{graph.name}' has no output node; pass --node")
            raise typer.Exit(1)
        node_id = outputs[0].id

    if graph.get_node(node_id) is None:
        logger.error(f"No node with id {node_id} in '{graph.name}'")
        raise typer.Exit(1)

    if pin is None:
        channels = [p.name for p in graph.input_pins(node_id) if p.name in COLOR_CHANNELS]
        outputs = [p.name for p in graph.output_pins(node_id)]
        candidates = channels or outputs
        if not candidates:
            logger.error(f"Node {node_id} has no pin to bake; pass --pin")
            raise typer.Exit(1)
        pin = candidates[0]
    return node_id, pin


# =============================================================================
# Commands
# =============================================================================


# Define reusable arguments
BLUEPRINT_ARG = typer.Argument(..., help="Blueprint file (.blueprint or .material_bp)")
OUTPUT_CODE_OPTION = typer.Option(
    None, "--output", "-o", help="Output code file path (stdout when omitted)"
)


@typed_command(app.command("compile-script"))
def compile_script(
    blueprint_file: Path = BLUEPRINT_ARG,
    output: Path | None = OUTPUT_CODE_OPTION,
    header: bool = typer.Option(
        False, "--header", help="Prefix the code with generation comments"
    ),
) -> None:
    """Compile a script blueprint to Rhai source.

    Example: blueprintc compile-script player.blueprint -o player.rhai
    """
    config = _build_config()
    _emit(_compile_script(blueprint_file, config, header), output)


@typed_command(app.command("compile-shader"))
def compile_shader(
    blueprint_file: Path = BLUEPRINT_ARG,
    output: Path | None = OUTPUT_CODE_OPTION,
    target: str | None = typer.Option(
        None, "--target", "-t", help="Shader language (wgsl, glsl)"
    ),
    precision: int | None = typer.Option(
        None, "--precision", help="Decimal places in float literals"
    ),
    header: bool = typer.Option(
        False, "--header", help="Prefix the code with generation comments"
    ),
) -> None:
    """Compile a material blueprint to a fragment shader.

    Example: blueprintc compile-shader rock.material_bp -t glsl -o rock.frag
    """
    config = _build_config(target, precision)
    _emit(_compile_shader(blueprint_file, config, header), output)


# Define reusable arguments
OUTPUT_IMAGE_ARG = typer.Argument(..., help="Output image file path")
OUTPUT_GIF_ARG = typer.Argument(..., help="Output GIF file path")
NODE_OPTION = typer.Option(
    None, "--node", "-n", help="Node to bake (the material output by default)"
)
PIN_OPTION = typer.Option(
    None, "--pin", "-p", help="Pin to bake (the color channel by default)"
)


@typed_command(app.command("bake"))
def bake(
    blueprint_file: Path = BLUEPRINT_ARG,
    output: Path = OUTPUT_IMAGE_ARG,
    node: int | None = NODE_OPTION,
    pin: str | None = PIN_OPTION,
    size: int = typer.Option(256, "--size", "-s", help="Texture edge length"),
    time_value: float = typer.Option(0.0, "--time", help="Time value for the texture"),
) -> None:
    """Bake a material pin to a texture by evaluating it per texel.

    Example: blueprintc bake rock.material_bp rock.png --size 128
    """
    graph = _load_graph(blueprint_file)
    node_id, pin_name = _bake_source(graph, node, pin)
    config = _build_config()

    logger.info(f"Baking node {node_id} pin '{pin_name}' at {size}x{size}...")
    try:
        pixels = bake_texture(
            graph,
            node_id,
            pin_name,
            size,
            EvaluationContext().with_time(time_value),
            config,
        )
        save_texture(pixels, output)
    except (BlueprintError, ValueError, OSError) as e:
        logger.error(f"Bake failed: {e}")
        raise typer.Exit(1) from e


@typed_command(app.command("bake-gif"))
def bake_gif(
    blueprint_file: Path = BLUEPRINT_ARG,
    output: Path = OUTPUT_GIF_ARG,
    node: int | None = NODE_OPTION,
    pin: str | None = PIN_OPTION,
    size: int = typer.Option(128, "--size", "-s", help="Frame edge length"),
    fps: int = typer.Option(15, "--fps", help="Frames per second"),
    duration: float = typer.Option(2.0, "--duration", "-d", help="Duration in seconds"),
    time_offset: float = typer.Option(
        0.0, "--time-offset", help="Starting time for animation"
    ),
) -> None:
    """Bake an animated preview of a material pin to a GIF.

    Example: blueprintc bake-gif water.material_bp water.gif --fps 10
    """
    graph = _load_graph(blueprint_file)
    node_id, pin_name = _bake_source(graph, node, pin)
    config = _build_config()

    logger.info(f"Baking {duration}s GIF at {fps}fps to {output}...")
    try:
        frames = bake_frames(
            graph,
            node_id,
            pin_name,
            size=size,
            duration=duration,
            fps=fps,
            time_offset=time_offset,
            config=config,
        )
        save_gif(frames, output, fps)
    except (BlueprintError, ValueError, OSError) as e:
        logger.error(f"Bake failed: {e}")
        raise typer.Exit(1) from e


class BlueprintChangeHandler(FileSystemEventHandler):  # type: ignore
    """Event handler recompiling a blueprint whenever it changes."""

    def __init__(
        self,
        blueprint_file: Path,
        output: Path | None,
        config: CompilerConfig,
        header: bool = False,
    ):
        """Initialize blueprint change handler.

        Args:
            blueprint_file: Path to the watched blueprint
            output: Where compiled code goes (stdout when None)
            config: Compiler settings
            header: Whether to prefix generation comments
        """
        self.blueprint_file = blueprint_file.resolve()
        self.output = output
        self.config = config
        self.header = header
        self.compiles = 0
        self.last_hash: str | None = None

    def on_modified(self, event: watchdog.events.FileSystemEvent) -> None:
        """Handle file modified event.

        Args:
            event: File system event
        """
        if os.path.abspath(event.src_path) == str(self.blueprint_file):
            logger.info(f"Detected changes in {self.blueprint_file.name}")
            self.compile()

    def compile(self) -> bool:
        """Compile the blueprint once; failures are logged and watching goes on.

        Saves that leave the content hash unchanged (a node moved in the
        editor, say) are skipped.
        """
        try:
            graph = _load_graph(self.blueprint_file)
            digest = graph_hash(graph)
            if digest == self.last_hash:
                logger.info(f"{self.blueprint_file.name} unchanged; skipping recompile")
                return True
            compile_fn = (
                _compile_shader if graph.kind is GraphKind.MATERIAL else _compile_script
            )
            code = compile_fn(self.blueprint_file, self.config, self.header, graph)
            _emit(code, self.output)
        except typer.Exit:
            logger.warning("Compilation failed; waiting for the next change")
            return False
        self.last_hash = digest
        self.compiles += 1
        return True


@typed_command(app.command("watch"))
def watch(
    blueprint_file: Path = BLUEPRINT_ARG,
    output: Path | None = OUTPUT_CODE_OPTION,
    target: str | None = typer.Option(
        None, "--target", "-t", help="Shader language for materials (wgsl, glsl)"
    ),
    header: bool = typer.Option(
        False, "--header", help="Prefix the code with generation comments"
    ),
) -> None:
    """Watch a blueprint file and recompile it on every change.

    Example: blueprintc watch rock.material_bp -o rock.wgsl
    """
    config = _build_config(target)
    handler = BlueprintChangeHandler(blueprint_file, output, config, header)
    handler.compile()

    # Create file system observer for auto-recompile
    observer = watchdog.observers.Observer()

    # Watch the file's directory, not the file itself
    observer.schedule(handler, path=str(handler.blueprint_file.parent), recursive=False)
    observer.start()
    logger.info(f"Watching {handler.blueprint_file} (Ctrl+C to stop)...")

    try:
        while observer.is_alive():
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, stopping...")
    finally:
        observer.stop()
        observer.join()


@typed_command(app.command("info"))
def info(blueprint_file: Path = BLUEPRINT_ARG) -> None:
    """Summarize a blueprint: kind, counts, unknown node types and content hash.

    Example: blueprintc info player.blueprint
    """
    registry = create_default_registry()
    graph = _load_graph(blueprint_file, registry)
    unknown = sorted({n.type_id for n in graph.nodes.values() if n.type_id not in registry})

    typer.echo(f"Name:        {graph.name}")
    typer.echo(f"Kind:        {graph.kind.value}")
    typer.echo(f"Nodes:       {len(graph.nodes)}")
    typer.echo(f"Connections: {len(graph.connections)}")
    typer.echo(f"Variables:   {len(graph.variables)}")
    if graph.kind is GraphKind.SCRIPT:
        events = ", ".join(n.type_id for n in graph.event_nodes()) or "none"
        typer.echo(f"Events:      {events}")
    else:
        outputs = ", ".join(n.type_id for n in graph.output_nodes()) or "none"
        typer.echo(f"Outputs:     {outputs}")
    if unknown:
        typer.echo(f"Unknown:     {', '.join(unknown)}")
    typer.echo(f"Hash:        {graph_hash(graph)}")


@typed_command(app.command("nodes"))
def nodes(
    kind: str | None = typer.Option(
        None, "--kind", "-k", help="Only nodes usable in this graph kind (script, material)"
    ),
    category: str | None = typer.Option(
        None, "--category", "-c", help="Only nodes in this category"
    ),
) -> None:
    """List the node catalogue grouped by category.

    Example: blueprintc nodes --kind material
    """
    registry = create_default_registry()
    if kind is None:
        definitions = list(registry)
    else:
        try:
            definitions = registry.list_for_kind(GraphKind(kind.lower()))
        except ValueError as e:
            logger.error(f"Unknown graph kind: {kind}. Expected script or material")
            raise typer.Exit(1) from e
    if category is not None:
        definitions = [d for d in definitions if d.category.lower() == category.lower()]

    for current in registry.categories():
        members = [d for d in definitions if d.category == current]
        if not members:
            continue
        typer.echo(f"{current}:")
        for definition in members:
            typer.echo(f"  {definition.type_id:<28} {definition.display_name}")
    logger.debug(f"Listed {len(definitions)} node type(s)")


if __name__ == "__main__":
    app()
