"""
Formula Rendering Pipeline

Orchestrates validation, typesetting, image conversion and scratch cleanup for
one formula at a time. Independent calls (including concurrent ones from several
threads) each get their own scratch set.
"""

import shutil
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from texrender.contexts.rendering.compiler import DocumentCompiler, RenderRequest
from texrender.contexts.rendering.config import RenderConfig
from texrender.contexts.rendering.converter import ImageConverter, SvgDimensions
from texrender.contexts.rendering.errors import RenderError, RenderErrorKind, RenderFailure
from texrender.contexts.rendering.logger import ErrorLogSink, _log_info, _log_success
from texrender.contexts.rendering.process_runner import ProcessRunner
from texrender.contexts.templating import FormulaTemplater


@dataclass
class RenderResult:
    """
    Outcome of one render request.

    Attributes:
        success: Whether an SVG was produced
        svg: SVG bytes, UTF-8 (None on failure)
        png: PNG bytes (None on failure or when no PNG command is configured)
        dimensions: Depth, width and height in output units, when the SVG carried markers
        error: Failure classification (None on success)
    """

    success: bool
    svg: Optional[bytes] = None
    png: Optional[bytes] = None
    dimensions: Optional[SvgDimensions] = None
    error: Optional[RenderError] = None

    @classmethod
    def failed(cls, error: RenderError) -> "RenderResult":
        return cls(success=False, error=error)

    @property
    def error_kind(self) -> Optional[RenderErrorKind]:
        return self.error.kind if self.error is not None else None

    def raise_for_error(self) -> "RenderResult":
        """Raise RenderFailure for a failed result, return self otherwise."""
        if not self.success:
            raise RenderFailure(self.error)
        return self


class FormulaRenderer:
    """
    Renders LaTeX formulas to SVG (and optionally PNG).

    Example:
        >>> renderer = FormulaRenderer(load_render_config())
        >>> result = renderer.render(r"\\frac{a}{b}")
        >>> if result.success:
        ...     Path("formula.svg").write_bytes(result.svg)
        ... else:
        ...     print(result.error.kind)

    A renderer built with a log_dir owns a loguru file handler; close it (or use
    it as a context manager) to detach the handler.
    """

    def __init__(
        self,
        config: RenderConfig,
        templater: FormulaTemplater = None,
        runner: ProcessRunner = None,
        log_sink: ErrorLogSink = None,
    ):
        self.config = config
        self.runner = runner or ProcessRunner()
        self.log_sink = log_sink if log_sink is not None else ErrorLogSink(config.log_dir)
        self.compiler = DocumentCompiler(
            templater=templater, runner=self.runner, log_sink=self.log_sink
        )
        self.converter = ImageConverter(config, runner=self.runner, log_sink=self.log_sink)

    def render(self, formula: str, caller_context: Mapping[str, Any] = None) -> RenderResult:
        """
        Render a formula.

        Args:
            formula: LaTeX math-mode source
            caller_context: Caller environment, recorded when the formula is rejected

        Returns:
            RenderResult; every scratch file is removed before this returns
        """
        request = RenderRequest(
            formula=formula, config=self.config, caller_context=dict(caller_context or {})
        )
        start_time = time.time()

        compiled = self.compiler.compile(request)
        if not compiled.success:
            _log_info(f"Render failed: {compiled.error.kind.value}")
            return RenderResult.failed(compiled.error)

        with compiled.scratch as scratch:
            svg = self.converter.to_svg(scratch, formula)
            if not svg.success:
                return RenderResult.failed(svg.error)

            png = self.converter.to_png(scratch, formula)
            if not png.success:
                return RenderResult.failed(png.error)

        _log_success(f"Rendered in {time.time() - start_time:.2f}s")
        return RenderResult(
            success=True, svg=svg.data, png=png.data, dimensions=svg.dimensions
        )

    def check_toolchain(self) -> Dict[str, Dict[str, Any]]:
        """
        Check that each configured command's executable is on PATH.

        Returns:
            Dict keyed by config key with 'executable', 'available' and 'path'
        """
        report = {}
        for key, command in self.config.commands().items():
            path = shutil.which(command.executable)
            report[key] = {
                "executable": command.executable,
                "available": path is not None,
                "path": path,
            }
        return report

    def close(self) -> None:
        self.log_sink.close()

    def __enter__(self) -> "FormulaRenderer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
