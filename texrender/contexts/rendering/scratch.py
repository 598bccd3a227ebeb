"""
Scratch File Manager

Allocates a uniquely named base path for one render and removes every file
derived from it when the render is done.
"""

import os
import tempfile
from contextlib import suppress
from pathlib import Path

# Base file, LaTeX log and aux, intermediate, and image outputs
SCRATCH_SUFFIXES = ("", ".log", ".aux", ".dvi", ".svg", ".png")


class ScratchSet:
    """
    A family of temporary files sharing one base path.

    Use as a context manager so release runs on every exit path:

        with ScratchSet.allocate(scratch_dir) as scratch:
            scratch.base.write_text(source)
            ...
    """

    def __init__(self, base: Path):
        self.base = Path(base)
        self.released = False

    @classmethod
    def allocate(cls, scratch_dir: Path) -> "ScratchSet":
        """
        Create a uniquely named empty file in ``scratch_dir`` and use it as the base.

        mkstemp creates the file exclusively, so concurrent callers never share a name.
        """
        scratch_dir = Path(scratch_dir)
        scratch_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="tex", dir=str(scratch_dir))
        os.close(fd)
        return cls(Path(name))

    @property
    def directory(self) -> Path:
        return self.base.parent

    @property
    def name(self) -> str:
        return self.base.name

    def path(self, suffix: str) -> Path:
        """Derived file path, e.g. ``path(".dvi")``."""
        return self.base.with_name(self.base.name + suffix)

    @property
    def source(self) -> Path:
        return self.base

    @property
    def log(self) -> Path:
        return self.path(".log")

    @property
    def dvi(self) -> Path:
        return self.path(".dvi")

    @property
    def svg(self) -> Path:
        return self.path(".svg")

    @property
    def png(self) -> Path:
        return self.path(".png")

    def paths(self):
        return [self.path(suffix) for suffix in SCRATCH_SUFFIXES]

    def release(self) -> None:
        """Remove the base file and every derived file. Never raises."""
        for path in self.paths():
            with suppress(OSError):
                path.unlink()
        self.released = True

    def __enter__(self) -> "ScratchSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ScratchSet({str(self.base)!r})"
