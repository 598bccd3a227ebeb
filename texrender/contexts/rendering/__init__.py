"""
Rendering Context

Responsibilities:
- Rejects formulas with forbidden commands before anything is spawned
- Runs the TeX toolchain with a wall-clock timeout
- Converts the intermediate artifact to SVG (and optionally PNG)
- Extracts size metadata from the SVG and injects the size announcement script
- Removes every scratch file on every exit path

Owns: Toolchain invocation, failure classification, scratch files, error records
Never: Decides how a formula is wrapped into a document
"""

from texrender.contexts.rendering.compiler import CompileResult, DocumentCompiler, RenderRequest
from texrender.contexts.rendering.config import (
    CommandTemplate,
    RenderConfig,
    build_render_config,
    load_render_config,
)
from texrender.contexts.rendering.converter import (
    ConversionResult,
    ImageConverter,
    SvgDimensions,
    SvgMetadata,
    inject_size_script,
    parse_svg_metadata,
)
from texrender.contexts.rendering.errors import (
    ConfigurationError,
    ProcessStartError,
    RenderError,
    RenderErrorKind,
    RenderFailure,
)
from texrender.contexts.rendering.formula_validator import FORBIDDEN_COMMANDS, validate_formula
from texrender.contexts.rendering.logger import ErrorLogSink
from texrender.contexts.rendering.process_runner import ProcessResult, ProcessRunner, ProcessStatus
from texrender.contexts.rendering.renderer import FormulaRenderer, RenderResult
from texrender.contexts.rendering.scratch import SCRATCH_SUFFIXES, ScratchSet

__all__ = [
    # Pipeline
    "FormulaRenderer",
    "RenderResult",
    "RenderRequest",
    # Configuration
    "RenderConfig",
    "CommandTemplate",
    "build_render_config",
    "load_render_config",
    # Stages
    "validate_formula",
    "FORBIDDEN_COMMANDS",
    "ProcessRunner",
    "ProcessResult",
    "ProcessStatus",
    "DocumentCompiler",
    "CompileResult",
    "ImageConverter",
    "ConversionResult",
    "SvgMetadata",
    "SvgDimensions",
    "parse_svg_metadata",
    "inject_size_script",
    "ScratchSet",
    "SCRATCH_SUFFIXES",
    # Errors and logging
    "RenderError",
    "RenderErrorKind",
    "RenderFailure",
    "ConfigurationError",
    "ProcessStartError",
    "ErrorLogSink",
]
