"""Unit tests for the structured error sink."""

import json

import pytest
from loguru import logger

from texrender.contexts.rendering import ErrorLogSink
from texrender.contexts.rendering.logger import setup_rendering_logger


def read_records(log_dir):
    files = list(log_dir.glob("render_errors_*.log"))
    assert len(files) == 1
    return files[0].read_text(encoding="utf-8").splitlines()


@pytest.mark.unit
def test_sink_writes_message_and_json_context(tmp_path):
    log_dir = tmp_path / "logs"

    with ErrorLogSink(log_dir) as sink:
        assert sink.enabled
        sink.error("Forbidden command", {"formula": r"\input{x}", "remote_addr": "203.0.113.7"})

    lines = read_records(log_dir)
    assert len(lines) == 1
    assert "ERROR" in lines[0]
    assert "Forbidden command" in lines[0]
    context = json.loads(lines[0].split(" | ", 3)[3])
    assert context == {"formula": r"\input{x}", "remote_addr": "203.0.113.7"}


@pytest.mark.unit
def test_sink_ignores_other_log_records(tmp_path):
    """Test that ordinary log calls do not end up in the error file."""
    log_dir = tmp_path / "logs"

    with ErrorLogSink(log_dir) as sink:
        logger.error("unrelated error")
        sink.warning("LaTeX killed after producing output", {"status": {"timed_out": True}})

    lines = read_records(log_dir)
    assert len(lines) == 1
    assert "unrelated" not in lines[0]


@pytest.mark.unit
def test_two_sinks_are_isolated(tmp_path):
    with ErrorLogSink(tmp_path / "a") as first, ErrorLogSink(tmp_path / "b") as second:
        first.error("first")
        second.error("second")

    assert "first" in read_records(tmp_path / "a")[0]
    assert "second" in read_records(tmp_path / "b")[0]


@pytest.mark.unit
def test_sink_without_directory_is_noop(tmp_path):
    sink = ErrorLogSink(None)

    assert sink.enabled is False
    sink.error("nothing", {"a": 1})
    sink.close()


@pytest.mark.unit
def test_non_serializable_context_is_stringified(tmp_path):
    log_dir = tmp_path / "logs"

    with ErrorLogSink(log_dir) as sink:
        sink.error("path", {"path": tmp_path})

    assert str(tmp_path) in read_records(log_dir)[0]


@pytest.mark.unit
def test_close_after_handlers_were_reset(tmp_path):
    """Test that close() survives setup_rendering_logger() dropping every handler."""
    sink = ErrorLogSink(tmp_path / "logs")
    setup_rendering_logger()

    sink.close()
    sink.close()

    assert sink.enabled is False
