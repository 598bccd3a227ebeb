"""
Formula validation.

Rejects formulas that could escape math mode: read or write files, load packages,
or alter how the compiler reads its input. Runs before anything is spawned.
"""

from typing import Any, Mapping, Optional

from texrender.contexts.rendering.errors import RenderError
from texrender.contexts.rendering.logger import ErrorLogSink, _log_warning

# Plain substring match, deliberately not tokenized
FORBIDDEN_COMMANDS = (
    "\\write",
    "\\input",
    "\\usepackage",
    "\\include",
    "\\openin",
    "\\openout",
    "\\read",
    "\\immediate",
    "\\special",
    "\\catcode",
    "\\csname",
    "\\directlua",
    "\\lstinputlisting",
    "\\verbatiminput",
    "\\documentclass",
    "\\shipout",
    # ^^5c reads as a backslash, which would hide every entry above
    "^^",
)


def find_forbidden_command(formula: str) -> Optional[str]:
    """First deny-listed command contained in ``formula``, or None."""
    for command in FORBIDDEN_COMMANDS:
        if command in formula:
            return command
    return None


def validate_formula(
    formula: str,
    log_sink: ErrorLogSink = None,
    caller_context: Optional[Mapping[str, Any]] = None,
) -> Optional[RenderError]:
    """
    Check a formula against the deny-list.

    Args:
        formula: Caller-supplied LaTeX source
        log_sink: Receives a record with the formula and caller context on rejection
        caller_context: Caller environment (remote address, CLI invocation, ...)

    Returns:
        None if the formula is acceptable, a FORBIDDEN_INPUT RenderError otherwise
    """
    command = find_forbidden_command(formula)
    if command is None:
        return None

    _log_warning(f"Forbidden command {command} in formula")
    if log_sink is not None:
        log_sink.error("Forbidden command", {"command": command, "formula": formula})
        log_sink.error("Caller context", dict(caller_context or {}))

    return RenderError.forbidden_input()
