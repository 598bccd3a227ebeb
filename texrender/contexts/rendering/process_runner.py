"""
Process Runner

Runs an external command with a wall-clock timeout, capturing its output and
how the process ended.
"""

import os
import shlex
import signal
import subprocess
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from texrender.contexts.rendering.errors import ProcessStartError
from texrender.contexts.rendering.logger import _log_debug, _log_warning


@dataclass(frozen=True)
class ProcessStatus:
    """
    How a process ended. Exactly one outcome is set.

    Attributes:
        exit_code: Exit code of a normal exit
        timed_out: Killed because the timeout elapsed
        signal: Number of the signal that killed the process
    """

    exit_code: Optional[int] = None
    timed_out: bool = False
    signal: Optional[int] = None

    def __post_init__(self):
        outcomes = (self.exit_code is not None, self.timed_out, self.signal is not None)
        if sum(outcomes) != 1:
            raise ValueError(f"ProcessStatus needs exactly one outcome, got {self!r}")

    @classmethod
    def exited(cls, exit_code: int) -> "ProcessStatus":
        return cls(exit_code=exit_code)

    @classmethod
    def killed_by_timeout(cls) -> "ProcessStatus":
        return cls(timed_out=True)

    @classmethod
    def killed_by_signal(cls, signum: int) -> "ProcessStatus":
        return cls(signal=signum)

    @classmethod
    def from_returncode(cls, returncode: int) -> "ProcessStatus":
        # Popen reports death by signal N as -N
        if returncode < 0:
            return cls.killed_by_signal(-returncode)
        return cls.exited(returncode)

    @property
    def was_killed(self) -> bool:
        return self.timed_out or self.signal is not None

    def as_dict(self) -> Dict[str, object]:
        return {"exit_code": self.exit_code, "timed_out": self.timed_out, "signal": self.signal}


@dataclass(frozen=True)
class ProcessResult:
    """
    Captured output and termination status of one command.

    Attributes:
        command: Argument vector that was run
        output: Combined stdout and stderr text (stderr only when stdout was captured)
        status: How the process ended
        stdout: Raw stdout bytes, when captured separately
    """

    command: Sequence[str]
    output: str
    status: ProcessStatus
    stdout: Optional[bytes] = None


def _kill_process_group(process: subprocess.Popen) -> None:
    # The child leads its own session, so its helpers (mktexpk, gs, ...) go too
    with suppress(ProcessLookupError, PermissionError):
        os.killpg(process.pid, signal.SIGKILL)
    with suppress(ProcessLookupError):
        process.kill()


class ProcessRunner:
    """Spawns external commands. One instance is safe to share between requests."""

    def run(
        self,
        command: Union[str, Sequence[str]],
        timeout: float,
        cwd: Optional[Path] = None,
        capture_stdout: bool = False,
    ) -> ProcessResult:
        """
        Run ``command`` and wait at most ``timeout`` seconds for it.

        Args:
            command: Argument vector, or a string split with shell-word rules
            timeout: Wall-clock limit in seconds
            cwd: Working directory for the process
            capture_stdout: Keep stdout as raw bytes, apart from stderr

        Returns:
            ProcessResult; a process still running at the deadline is killed and
            reported as killed by timeout

        Raises:
            ProcessStartError: If the process could not be created at all
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        _log_debug(f"Running: {shlex.join(argv)}")

        try:
            process = subprocess.Popen(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE if capture_stdout else subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessStartError(argv, e) from e

        try:
            raw_stdout, raw_stderr = process.communicate(timeout=timeout)
            status = ProcessStatus.from_returncode(process.returncode)
        except subprocess.TimeoutExpired:
            _kill_process_group(process)
            raw_stdout, raw_stderr = process.communicate()
            status = ProcessStatus.killed_by_timeout()
            _log_warning(f"{argv[0]} killed after {timeout}s timeout")

        if capture_stdout:
            stdout, raw_output = raw_stdout or b"", raw_stderr
        else:
            stdout, raw_output = None, raw_stdout

        # Replace invalid UTF-8 bytes instead of crashing
        output = (raw_output or b"").decode("utf-8", errors="replace")
        return ProcessResult(command=argv, output=output, status=status, stdout=stdout)
