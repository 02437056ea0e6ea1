"""Code generators: Rhai scripts and WGSL/GLSL fragment shaders."""

from .models import ScriptResult, ShaderResult, TextureBinding
from .script import ScriptGenerator, generate_script
from .shader import ShaderGenerator, generate_shader
from .target import GlslTarget, ShaderTarget, WgslTarget, get_target

__all__ = [
    "ScriptResult",
    "ShaderResult",
    "TextureBinding",
    "ScriptGenerator",
    "generate_script",
    "ShaderGenerator",
    "generate_shader",
    "GlslTarget",
    "ShaderTarget",
    "WgslTarget",
    "get_target",
]
