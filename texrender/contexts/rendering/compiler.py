"""
Document Compilation Module

Typesets a formula document into the intermediate (DVI) artifact.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from texrender.contexts.rendering.config import RenderConfig
from texrender.contexts.rendering.errors import ProcessStartError, RenderError
from texrender.contexts.rendering.formula_validator import validate_formula
from texrender.contexts.rendering.logger import (
    ErrorLogSink,
    _log_debug,
    _log_error,
    _log_warning,
    log_debug_block,
)
from texrender.contexts.rendering.process_runner import ProcessResult, ProcessRunner
from texrender.contexts.rendering.scratch import ScratchSet
from texrender.contexts.templating import FormulaTemplater, TemplateRenderError


@dataclass(frozen=True)
class RenderRequest:
    """
    One formula to render, with its configuration.

    Attributes:
        formula: Caller-supplied LaTeX math-mode source
        config: Rendering configuration for this request
        caller_context: Caller environment, logged with rejected formulas
    """

    formula: str
    config: RenderConfig
    caller_context: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class CompileResult:
    """
    Result of the typesetting stage.

    Attributes:
        success: Whether the intermediate artifact was produced
        scratch: Scratch set holding the artifact (only on success; the caller releases it)
        error: Failure classification (only on failure)
        process: Typesetter run, if it got that far
    """

    success: bool
    scratch: Optional[ScratchSet] = None
    error: Optional[RenderError] = None
    process: Optional[ProcessResult] = None

    @classmethod
    def failed(cls, error: RenderError, process: ProcessResult = None) -> "CompileResult":
        return cls(success=False, error=error, process=process)


def _read_log(scratch: ScratchSet) -> str:
    # LaTeX writes log files in latin-1 (font metadata contains non-UTF-8)
    try:
        return scratch.log.read_text(encoding="latin-1")
    except OSError:
        return ""


class DocumentCompiler:
    """Validates, templates and typesets a formula."""

    def __init__(
        self,
        templater: FormulaTemplater = None,
        runner: ProcessRunner = None,
        log_sink: ErrorLogSink = None,
    ):
        self.templater = templater or FormulaTemplater()
        self.runner = runner or ProcessRunner()
        self.log_sink = log_sink or ErrorLogSink(None)

    def compile(self, request: RenderRequest) -> CompileResult:
        """
        Compile a formula to the intermediate artifact.

        Steps: validate the formula, render the document, write it to a fresh
        scratch set, run the typesetter, then check for the intermediate file.

        The intermediate file is the only success signal; the typesetter exit
        code is ignored.

        On failure the scratch set is already released and the error is generic;
        compiler diagnostics only go to the log sink.
        """
        config = request.config
        formula = request.formula

        error = validate_formula(formula, self.log_sink, request.caller_context)
        if error is not None:
            return CompileResult.failed(error)

        try:
            source = self.templater.render(formula)
        except TemplateRenderError as e:
            _log_error(f"Cannot build document: {e.message}")
            self.log_sink.error("Cannot build document", {"formula": formula, "error": str(e)})
            return CompileResult.failed(RenderError.invalid_formula())

        if config.debug:
            log_debug_block("LATEX SOURCE", source)

        scratch = ScratchSet.allocate(config.scratch_dir)
        try:
            result = self._typeset(request, scratch, source)
        except BaseException:
            scratch.release()
            raise

        if not result.success:
            scratch.release()
        return result

    def _typeset(self, request: RenderRequest, scratch: ScratchSet, source: str) -> CompileResult:
        config = request.config
        scratch.source.write_text(source, encoding="utf-8")
        command = config.latex_command.format(scratch.base)

        try:
            process = self.runner.run(command, timeout=config.timeout, cwd=scratch.directory)
        except ProcessStartError as e:
            _log_error(f"Cannot run LaTeX: {e}")
            self.log_sink.error(
                "Cannot run LaTeX",
                {
                    "formula": request.formula,
                    "command": config.latex_command.template,
                    "error": str(e.original_error or e),
                    "source": source,
                },
            )
            return CompileResult.failed(RenderError.process_start_failure("LaTeX"))

        if config.debug:
            log_debug_block("LATEX LOG", _read_log(scratch))
            log_debug_block("LATEX STATUS", process.status.as_dict())

        dvi_exists = scratch.dvi.exists()

        if not dvi_exists and process.status.was_killed:
            self.log_sink.error(
                "LaTeX finished incorrectly",
                {
                    "formula": request.formula,
                    "status": process.status.as_dict(),
                    f"file_exists({scratch.dvi.name})": dvi_exists,
                    "source": source,
                    "trace": _read_log(scratch),
                },
            )
        elif not dvi_exists:
            self.log_sink.error(
                "Invalid formula",
                {"formula": request.formula, "source": source, "trace": _read_log(scratch)},
            )
        elif process.status.was_killed:
            _log_warning("LaTeX was killed but produced its output")
            self.log_sink.warning(
                "LaTeX killed after producing output",
                {"formula": request.formula, "status": process.status.as_dict()},
            )

        if not dvi_exists:
            _log_debug(f"No {scratch.dvi.name} produced ({process.status.as_dict()})")
            return CompileResult.failed(RenderError.invalid_formula(), process=process)

        return CompileResult(success=True, scratch=scratch, process=process)

