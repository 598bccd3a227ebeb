"""Pytest configuration and fixtures for texrender tests."""

import shlex
import sys
from pathlib import Path

import pytest

from texrender.contexts.rendering import ErrorLogSink, ProcessRunner, build_render_config

TOOLCHAIN_PATH = Path(__file__).parent / "fixtures" / "toolchain"


def tool_command(script: str, *extra_args: str) -> str:
    """Command template running a fake toolchain script on {base}."""
    prefix = " ".join(shlex.quote(arg) for arg in (sys.executable, str(TOOLCHAIN_PATH / script)))
    return " ".join([prefix, "{base}", *extra_args])


FAKE_LATEX = tool_command("fake_latex.py")
FAKE_DVISVGM = tool_command("fake_dvisvgm.py")
FAKE_DVIPNG = tool_command("fake_png.py", "dvi")
FAKE_SVG2PNG = tool_command("fake_png.py", "svg")
FAKE_SVG2PNG_STDOUT = tool_command("fake_png.py", "svg", "--stdout")


class RecordingSink(ErrorLogSink):
    """Error sink that keeps records in memory instead of writing files."""

    def __init__(self):
        super().__init__(None)
        self.records = []

    @property
    def enabled(self) -> bool:
        return True

    def error(self, message, context=None):
        self.records.append(("ERROR", message, dict(context or {})))

    def warning(self, message, context=None):
        self.records.append(("WARNING", message, dict(context or {})))

    def messages(self):
        return [message for _, message, _ in self.records]


class CountingRunner(ProcessRunner):
    """ProcessRunner that records every command it is asked to run."""

    def __init__(self):
        self.commands = []

    def run(self, command, timeout, cwd=None, capture_stdout=False):
        self.commands.append(list(command))
        return super().run(command, timeout=timeout, cwd=cwd, capture_stdout=capture_stdout)


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def make_config(scratch_dir):
    """Factory for a RenderConfig wired to the fake toolchain."""

    def _make_config(**overrides):
        values = {
            "latex_command": FAKE_LATEX,
            "svg_command": FAKE_DVISVGM,
            "svg2png_command": None,
            "png_command": None,
            "timeout": 10.0,
            "outer_scale": 1.0,
            "scratch_dir": str(scratch_dir),
            "log_dir": None,
            "debug": False,
        }
        values.update(overrides)
        return build_render_config(values)

    return _make_config


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def counting_runner():
    return CountingRunner()


@pytest.fixture
def simple_formula():
    """Return a minimal valid formula."""
    return r"\frac{a}{b}"
