r"""Stand-in for dvipng / rsvg-convert: writes a PNG tagged with its source format.

Usage: fake_png.py BASE (dvi|svg) [--stdout]
Writes {base}.png, or the PNG bytes to stdout with --stdout (as rsvg-convert does).
The marker \nopng in the DVI makes it write nothing.
"""

import sys
from pathlib import Path

base = Path(sys.argv[1])
source_format = sys.argv[2]
to_stdout = "--stdout" in sys.argv[3:]

source = base.with_name(f"{base.name}.{source_format}")
if not source.exists():
    print(f"{source} not found", file=sys.stderr)
    sys.exit(1)

if "\\nopng" in base.with_name(base.name + ".dvi").read_text(encoding="utf-8"):
    print("no image", file=sys.stderr)
    sys.exit(0)

png = b"\x89PNG\r\n\x1a\n" + source_format.encode()
if to_stdout:
    print("rendering to stdout", file=sys.stderr)
    sys.stdout.buffer.write(png)
else:
    base.with_name(base.name + ".png").write_bytes(png)
