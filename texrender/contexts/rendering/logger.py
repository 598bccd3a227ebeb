"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix,
the structured error sink, and the debug observation channel.
All rendering modules should import from this module, not from loguru directly.
"""

import json
import uuid
from contextlib import suppress
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from texrender.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"

ERROR_LOG_NAME = "render_errors_{time:YYYY-MM-DD}.log"
ERROR_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message} | {extra[context]}"


def setup_rendering_logger(log_dir: Optional[Path] = None, debug: bool = False) -> Optional[Path]:
    """
    Setup logger for rendering context.

    Args:
        log_dir: Directory for this rendering session (None for console only)
        debug: Show DEBUG records (the debug channel) on the console

    Returns:
        Path to log file, or None
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        console_level="DEBUG" if debug else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_debug_block(title: str, text: Any) -> None:
    """
    Write a multi-line block to the debug channel.

    Uses opt(raw=True) so loguru does not prefix every line of the block.
    """
    logger.opt(raw=True).debug(f"\n{'=' * 80}\n{title}:\n{'=' * 80}\n{text}\n")


class ErrorLogSink:
    """
    Structured error records for failed renders.

    With a log directory, records go to a daily file
    ``render_errors_YYYY-MM-DD.log`` as ``message | JSON context``. Without one,
    every call is a no-op. Each sink only writes its own records.

    Example:
        with ErrorLogSink(Path("/var/log/texrender")) as sink:
            sink.error("Forbidden command", {"formula": formula})
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self._sink_id = uuid.uuid4().hex
        self._handler_id: Optional[int] = None

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._handler_id = logger.add(
                self.log_dir / ERROR_LOG_NAME,
                format=ERROR_LOG_FORMAT,
                level="WARNING",
                rotation="00:00",
                encoding="utf-8",
                filter=lambda record: record["extra"].get("error_sink") == self._sink_id,
            )

    @property
    def enabled(self) -> bool:
        return self._handler_id is not None

    def _record(self, level: str, message: str, context: Optional[Mapping[str, Any]]) -> None:
        if not self.enabled:
            return
        payload = json.dumps(dict(context or {}), default=str, ensure_ascii=False)
        logger.bind(error_sink=self._sink_id, context=payload).log(
            level, f"{CONTEXT_PREFIX} {message}"
        )

    def error(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        """Record an error with its context mapping."""
        self._record("ERROR", message, context)

    def warning(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self._record("WARNING", message, context)

    def close(self) -> None:
        """Detach the file handler. Safe after setup_logger() removed all handlers."""
        if self._handler_id is not None:
            with suppress(ValueError):
                logger.remove(self._handler_id)
            self._handler_id = None

    def __enter__(self) -> "ErrorLogSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
