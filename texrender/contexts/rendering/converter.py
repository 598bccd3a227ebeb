"""
Image Conversion Module

Converts the intermediate artifact to SVG (and optionally PNG), reads the
baseline and bounding-box markers back out of the SVG, and injects a script that
announces the image size to an embedding frame.
"""

import re
from dataclasses import dataclass
from typing import Optional

from texrender.contexts.rendering.config import CommandTemplate, RenderConfig
from texrender.contexts.rendering.errors import ProcessStartError, RenderError
from texrender.contexts.rendering.logger import (
    ErrorLogSink,
    _log_debug,
    _log_error,
    log_debug_block,
)
from texrender.contexts.rendering.process_runner import ProcessRunner
from texrender.contexts.rendering.scratch import ScratchSet

SVG_PRECISION = 5

NUMBER = r"(-?[\d.]+)"

# <!--start 19.8752 31.3399 -->
#           x       y
START_MARKER_PATTERN = re.compile(rf"<!--start {NUMBER} {NUMBER} -->")
# <!--bbox 0 31.3399 42 10 -->
#          x y       w  h
BBOX_MARKER_PATTERN = re.compile(rf"<!--bbox {NUMBER} {NUMBER} {NUMBER} {NUMBER} -->")

DEFS_TAG = b"<defs>"

SIZE_SCRIPT_TEMPLATE = (
    '<script type="text/ecmascript">'
    "if(window.parent.postMessage)"
    'window.parent.postMessage("{depth}|{width}|{height}|"+window.location,"*");'
    "</script>\n"
)


@dataclass(frozen=True)
class SvgDimensions:
    """Image size and baseline depth in output units."""

    depth: float
    width: float
    height: float


@dataclass(frozen=True)
class SvgMetadata:
    """Baseline start point and bounding box read from the SVG markers."""

    x_start: float
    y_start: float
    bbox_x: float
    bbox_y: float
    bbox_w: float
    bbox_h: float

    def dimensions(self, scale: float) -> SvgDimensions:
        """
        Convert to output units.

        Args:
            scale: Factor from the internal SVG scale to output units
        """
        return SvgDimensions(
            depth=round(scale * (self.bbox_y - self.y_start + self.bbox_h), SVG_PRECISION),
            width=round(scale * self.bbox_w, SVG_PRECISION),
            height=round(scale * self.bbox_h, SVG_PRECISION),
        )


def parse_svg_metadata(svg: str) -> Optional[SvgMetadata]:
    """
    Read the start and bbox markers from SVG text.

    Both markers must be present; a partial or malformed match means no metadata.
    """
    start = START_MARKER_PATTERN.search(svg)
    bbox = BBOX_MARKER_PATTERN.search(svg)
    if start is None or bbox is None:
        return None

    try:
        x_start, y_start = (float(v) for v in start.groups())
        bbox_x, bbox_y, bbox_w, bbox_h = (float(v) for v in bbox.groups())
    except ValueError:
        # e.g. "1.2.3" matches [\d.]+ but is not a number
        return None

    return SvgMetadata(x_start, y_start, bbox_x, bbox_y, bbox_w, bbox_h)


def format_number(value: float) -> str:
    """Shortest decimal form: 10.0 -> "10", 0.50000 -> "0.5"."""
    text = f"{value:.{SVG_PRECISION}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def size_script(dimensions: SvgDimensions) -> str:
    return SIZE_SCRIPT_TEMPLATE.format(
        depth=format_number(dimensions.depth),
        width=format_number(dimensions.width),
        height=format_number(dimensions.height),
    )


def inject_size_script(svg: bytes, dimensions: SvgDimensions) -> bytes:
    """Insert the size script before the first <defs>; unchanged if there is none."""
    if DEFS_TAG not in svg:
        return svg
    return svg.replace(DEFS_TAG, size_script(dimensions).encode("utf-8") + DEFS_TAG, 1)


@dataclass
class ConversionResult:
    """
    Result of one conversion step.

    Attributes:
        success: Whether the expected output file was produced
        data: Output file contents (only on success)
        dimensions: Size metadata (SVG only, when the markers were present)
        error: Failure classification (only on failure)
    """

    success: bool
    data: Optional[bytes] = None
    dimensions: Optional[SvgDimensions] = None
    error: Optional[RenderError] = None

    @classmethod
    def failed(cls, error: RenderError) -> "ConversionResult":
        return cls(success=False, error=error)


class ImageConverter:
    """Runs the SVG and PNG conversion commands against a compiled scratch set."""

    def __init__(
        self,
        config: RenderConfig,
        runner: ProcessRunner = None,
        log_sink: ErrorLogSink = None,
    ):
        self.config = config
        self.runner = runner or ProcessRunner()
        self.log_sink = log_sink or ErrorLogSink(None)

    def _run(
        self,
        command: CommandTemplate,
        scratch: ScratchSet,
        formula: str,
        target: str,
        capture_stdout: bool = False,
    ):
        """Run a conversion command; returns an error for commands that cannot start."""
        argv = command.format(scratch.base)
        try:
            process = self.runner.run(
                argv,
                timeout=self.config.timeout,
                cwd=scratch.directory,
                capture_stdout=capture_stdout,
            )
        except ProcessStartError as e:
            _log_error(f"Cannot run {target} converter: {e}")
            self.log_sink.error(
                f"Cannot run {target} converter",
                {
                    "formula": formula,
                    "command": command.template,
                    "error": str(e.original_error or e),
                },
            )
            return None, RenderError.process_start_failure(f"{target} converter")

        if self.config.debug:
            log_debug_block(f"{target} COMMAND", " ".join(argv))
            log_debug_block(f"{target} OUTPUT", process.output)
        return process, None

    def _missing_output(self, target: str, formula: str, command: CommandTemplate, process):
        _log_error(f"{target} conversion produced no output")
        self.log_sink.error(
            f"{target} conversion failed",
            {
                "formula": formula,
                "command": command.template,
                "status": process.status.as_dict(),
                "output": process.output,
            },
        )
        return ConversionResult.failed(RenderError.conversion_failure(target))

    def to_svg(self, scratch: ScratchSet, formula: str = "") -> ConversionResult:
        """
        Convert the intermediate artifact to SVG and annotate it with size metadata.

        Returns:
            ConversionResult with the SVG bytes (UTF-8) and, when both markers were
            found, the computed dimensions
        """
        command = self.config.svg_command
        process, error = self._run(command, scratch, formula, "SVG")
        if error is not None:
            return ConversionResult.failed(error)

        if not scratch.svg.exists():
            return self._missing_output("SVG", formula, command, process)

        data = scratch.svg.read_bytes()
        dimensions = None
        # Lossy decode for the marker search only; data stays untouched
        metadata = parse_svg_metadata(data.decode("utf-8", errors="replace"))
        if metadata is None:
            _log_debug("SVG has no start/bbox markers, skipping size script")
        else:
            dimensions = metadata.dimensions(self.config.outer_scale)
            data = inject_size_script(data, dimensions)

        return ConversionResult(success=True, data=data, dimensions=dimensions)

    def to_png(self, scratch: ScratchSet, formula: str = "") -> ConversionResult:
        """
        Produce a PNG if a PNG command is configured.

        SVG-to-PNG takes precedence over intermediate-to-PNG. The SVG-to-PNG
        command may write the image to stdout or to ``{base}.png``; the direct
        command must write ``{base}.png``. Without either command the result is
        successful with no data.
        """
        from_svg = self.config.svg2png_command is not None
        command = self.config.svg2png_command or self.config.png_command
        if command is None:
            return ConversionResult(success=True)

        process, error = self._run(command, scratch, formula, "PNG", capture_stdout=from_svg)
        if error is not None:
            return ConversionResult.failed(error)

        if scratch.png.exists():
            return ConversionResult(success=True, data=scratch.png.read_bytes())
        if from_svg and process.stdout:
            return ConversionResult(success=True, data=process.stdout)

        return self._missing_output("PNG", formula, command, process)
