"""Shader target abstraction.

A ShaderTarget encapsulates everything the shader generator needs to emit
source for one shading language: type names, literal syntax, builtin
mapping, texture access and the layout of the final fragment program.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from blueprintc.codegen.code_block import CodeBlock
from blueprintc.codegen.models import TextureBinding
from blueprintc.types import AnyValue, BoolValue, FloatValue, PinType, PinValue

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ShaderParts:
    """Pieces of a fragment program, assembled by a target."""

    name: str
    body: list[str]
    channels: dict[str, str]
    is_pbr: bool
    helpers: list[str] = field(default_factory=list)
    textures: list[TextureBinding] = field(default_factory=list)
    builtins: set[str] = field(default_factory=set)


# =============================================================================
# Target ABC
# =============================================================================


class ShaderTarget(ABC):
    """Base class for all shader targets."""

    name: str = ""
    file_extension: str = ""

    # --- Syntax ---

    @abstractmethod
    def type_name(self, pin_type: PinType) -> str:
        """Map a pin type to the target type name."""
        ...

    def float_literal(self, value: float, precision: int = 6) -> str:
        return f"{float(value):.{precision}f}"

    def construct(self, pin_type: PinType, args: list[str]) -> str:
        return f"{self.type_name(pin_type)}({', '.join(args)})"

    def literal(self, value: PinValue, precision: int = 6) -> str:
        """Format a literal value.

        Raises:
            ValueError: For values with no shader representation (strings)
        """
        match value:
            case AnyValue(inner=inner):
                return self.literal(inner, precision)
            case BoolValue(value=flag):
                return "true" if flag else "false"
            case FloatValue(value=number):
                return self.float_literal(number, precision)
        components = value.components
        if components is None:
            raise ValueError(f"{value.pin_type.label} values have no shader form")
        return self.construct(
            value.pin_type, [self.float_literal(c, precision) for c in components]
        )

    @abstractmethod
    def declare(self, name: str, pin_type: PinType, expr: str) -> str:
        """Statement binding ``expr`` to a new immutable local."""
        ...

    def saturate(self, expr: str) -> str:
        return f"saturate({expr})"

    def int_cast(self, expr: str) -> str:
        return f"int({expr})"

    # --- Builtins and resources ---

    @abstractmethod
    def get_builtin_mapping(self) -> dict[str, str]:
        """Mapping from ambient names (uv, time, ...) to target expressions."""
        ...

    def map_builtin(self, canonical_name: str) -> str:
        mapping = self.get_builtin_mapping()
        if canonical_name not in mapping:
            raise ValueError(f"Unknown shader builtin: {canonical_name}")
        return mapping[canonical_name]

    @abstractmethod
    def texture_sample(self, texture: str, uv: str) -> str: ...

    # --- Program layout ---

    @abstractmethod
    def assemble(self, parts: ShaderParts) -> str:
        """Build the complete fragment program."""
        ...


# =============================================================================
# WGSL
# =============================================================================


class WgslTarget(ShaderTarget):
    """WGSL fragment shader for Bevy's material pipeline."""

    name = "wgsl"
    file_extension = ".wgsl"

    TYPE_NAMES = {
        PinType.BOOL: "bool",
        PinType.FLOAT: "f32",
        PinType.VEC2: "vec2<f32>",
        PinType.VEC3: "vec3<f32>",
        PinType.VEC4: "vec4<f32>",
        PinType.COLOR: "vec4<f32>",
    }

    def type_name(self, pin_type: PinType) -> str:
        return self.TYPE_NAMES[pin_type]

    def declare(self, name: str, pin_type: PinType, expr: str) -> str:
        return f"let {name} = {expr};"

    def int_cast(self, expr: str) -> str:
        return f"i32({expr})"

    def get_builtin_mapping(self) -> dict[str, str]:
        return {
            "uv": "in.uv",
            "time": "globals.time",
            "normal": "in.world_normal",
            "position": "in.world_position",
            "vertex_color": "in.color",
        }

    def texture_sample(self, texture: str, uv: str) -> str:
        return f"textureSample({texture}, {texture}_sampler, {uv})"

    def assemble(self, parts: ShaderParts) -> str:
        code = CodeBlock()
        code.add_line("// Generated by blueprintc. Do not edit.")
        code.add_line(f"// Material: {parts.name}")
        code.add_line()

        if parts.is_pbr:
            with code.block("#import bevy_pbr::", closer="}"):
                for item in (
                    "pbr_functions::pbr,",
                    "pbr_types::PbrInput,",
                    "pbr_types::pbr_input_new,",
                    "mesh_view_bindings::view,",
                    "mesh_view_bindings::globals,",
                ):
                    code.add_line(item)
        else:
            code.add_line("#import bevy_pbr::mesh_view_bindings::globals")
        code.add_line()

        for texture in parts.textures:
            code.add_line(
                f"@group(2) @binding({texture.binding}) "
                f"var {texture.name}: texture_2d<f32>;"
            )
            code.add_line(
                f"@group(2) @binding({texture.sampler_binding}) "
                f"var {texture.name}_sampler: sampler;"
            )
        code.add_line()

        for helper in parts.helpers:
            code.add_lines(helper.strip("\n").splitlines())
            code.add_line()

        with code.block("struct VertexOutput", closer="};"):
            code.add_line("@builtin(position) position: vec4<f32>,")
            code.add_line("@location(0) world_position: vec3<f32>,")
            code.add_line("@location(1) world_normal: vec3<f32>,")
            code.add_line("@location(2) uv: vec2<f32>,")
            if "vertex_color" in parts.builtins:
                code.add_line("@location(3) color: vec4<f32>,")
        code.add_line()

        code.add_line("@fragment")
        with code.block("fn fragment(in: VertexOutput) -> @location(0) vec4<f32>"):
            code.add_lines(parts.body)
            code.add_line()
            channels = parts.channels
            if parts.is_pbr:
                code.add_line("// PBR Output")
                code.add_line("var pbr_input: PbrInput = pbr_input_new();")
                code.add_line(f"pbr_input.material.base_color = {channels['base_color']};")
                code.add_line(f"pbr_input.material.metallic = {channels['metallic']};")
                code.add_line(
                    f"pbr_input.material.perceptual_roughness = {channels['roughness']};"
                )
                emissive = channels["emissive"]
                code.add_line(f"pbr_input.material.emissive = {emissive}.rgb * {emissive}.a;")
                code.add_line(f"pbr_input.occlusion = vec3<f32>({channels['ao']});")
                code.add_line(f"pbr_input.world_normal = normalize({channels['normal']});")
                code.add_line("pbr_input.world_position = vec4<f32>(in.world_position, 1.0);")
                code.add_line("pbr_input.frag_coord = in.position;")
                code.add_line()
                code.add_line("var color = pbr(pbr_input);")
                code.add_line(f"color.a = {channels['alpha']};")
                code.add_line("return color;")
            else:
                code.add_line("// Unlit Output")
                code.add_line(
                    f"return vec4<f32>({channels['color']}.rgb, {channels['alpha']});"
                )

        return code.get_code() + "\n"


# =============================================================================
# GLSL
# =============================================================================


class GlslTarget(ShaderTarget):
    """GLSL 4.60 fragment shader for a plain OpenGL pipeline.

    There is no PBR library on this target; the PBR output is approximated
    with one directional light (Lambert diffuse plus a Blinn-Phong lobe
    shaped by roughness and metallic).
    """

    name = "glsl"
    file_extension = ".frag"

    TYPE_NAMES = {
        PinType.BOOL: "bool",
        PinType.FLOAT: "float",
        PinType.VEC2: "vec2",
        PinType.VEC3: "vec3",
        PinType.VEC4: "vec4",
        PinType.COLOR: "vec4",
    }

    LIGHT_DIRECTION = "vec3(0.5, 1.0, 0.3)"

    def type_name(self, pin_type: PinType) -> str:
        return self.TYPE_NAMES[pin_type]

    def declare(self, name: str, pin_type: PinType, expr: str) -> str:
        return f"{self.type_name(pin_type)} {name} = {expr};"

    def saturate(self, expr: str) -> str:
        return f"clamp({expr}, 0.0, 1.0)"

    def get_builtin_mapping(self) -> dict[str, str]:
        return {
            "uv": "vs_uv",
            "time": "u_time",
            "normal": "vs_world_normal",
            "position": "vs_world_position",
            "vertex_color": "vs_color",
        }

    def texture_sample(self, texture: str, uv: str) -> str:
        return f"texture({texture}, {uv})"

    def assemble(self, parts: ShaderParts) -> str:
        code = CodeBlock()
        code.add_line("#version 460 core")
        code.add_line()
        code.add_line("// Generated by blueprintc. Do not edit.")
        code.add_line(f"// Material: {parts.name}")
        code.add_line()

        code.add_line("uniform float u_time;")
        code.add_line("in vec2 vs_uv;")
        code.add_line("in vec3 vs_world_position;")
        code.add_line("in vec3 vs_world_normal;")
        if "vertex_color" in parts.builtins:
            code.add_line("in vec4 vs_color;")
        code.add_line("out vec4 fragColor;")
        code.add_line()

        for texture in parts.textures:
            code.add_line(
                f"layout(binding = {texture.binding}) uniform sampler2D {texture.name};"
            )
        code.add_line()

        for helper in parts.helpers:
            code.add_lines(helper.strip("\n").splitlines())
            code.add_line()

        with code.block("void main()"):
            code.add_lines(parts.body)
            code.add_line()
            channels = parts.channels
            if parts.is_pbr:
                code.add_line("// PBR Output (single directional light)")
                code.add_line(f"vec4 base_color = {channels['base_color']};")
                code.add_line(f"vec4 emissive = {channels['emissive']};")
                code.add_line(f"vec3 n = normalize({channels['normal']});")
                code.add_line(f"vec3 l = normalize({self.LIGHT_DIRECTION});")
                code.add_line("vec3 h = normalize(l + vec3(0.0, 0.0, 1.0));")
                code.add_line("float diffuse = max(dot(n, l), 0.0);")
                code.add_line(
                    f"float shininess = mix(64.0, 4.0, {channels['roughness']});"
                )
                code.add_line(
                    "float specular = pow(max(dot(n, h), 0.0), shininess) "
                    f"* mix(0.04, 1.0, {channels['metallic']});"
                )
                code.add_line(
                    "vec3 lit = base_color.rgb * (0.2 + 0.8 * diffuse) "
                    f"* {channels['ao']} + vec3(specular);"
                )
                code.add_line(
                    f"fragColor = vec4(lit + emissive.rgb * emissive.a, {channels['alpha']});"
                )
            else:
                code.add_line("// Unlit Output")
                code.add_line(
                    f"fragColor = vec4({channels['color']}.rgb, {channels['alpha']});"
                )

        return code.get_code() + "\n"


TARGETS: dict[str, type[ShaderTarget]] = {
    WgslTarget.name: WgslTarget,
    GlslTarget.name: GlslTarget,
}


def get_target(name: str) -> ShaderTarget:
    """Instantiate a target by name ("wgsl" or "glsl").

    Raises:
        ValueError: If the name is unknown
    """
    target_class = TARGETS.get(name.lower())
    if target_class is None:
        raise ValueError(
            f"Unknown shader target: {name}. Expected one of {', '.join(TARGETS)}"
        )
    return target_class()
