r"""Stand-in for dvisvgm: turns {base}.dvi into {base}.svg.

Markers in the DVI (a copy of the source) change its output:
    \nosvg       no SVG written
    \nomarkers   SVG without start/bbox comments
    \nodefs      SVG without a <defs> element
    \rawbytes    SVG with a comment that is not valid UTF-8
"""

import sys
from pathlib import Path

base = Path(sys.argv[1])
dvi = base.with_name(base.name + ".dvi").read_text(encoding="utf-8")

if "\\nosvg" in dvi:
    print("ERROR: no pages")
    sys.exit(0)

markers = "" if "\\nomarkers" in dvi else (
    "<!--start 19.8752 31.3399 -->\n<!--bbox 0.0 31.3399 42.0 10.0 -->\n"
)
defs = "" if "\\nodefs" in dvi else "<defs>\n<path id='g0-97' d='M1 1'/>\n</defs>\n"

svg = (
    "<?xml version='1.0' encoding='UTF-8'?>\n"
    "<svg version='1.1' xmlns='http://www.w3.org/2000/svg' width='42pt' height='10pt'>\n"
    + markers
    + defs
    + "<g id='page1'>\n<use x='0' y='0' xlink:href='#g0-97'/>\n</g>\n</svg>\n"
)
data = svg.encode("utf-8")
if "\\rawbytes" in dvi:
    data = data.replace(b"<defs>", b"<!-- \xe9t\xe9 \xff -->\n<defs>", 1)
base.with_name(base.name + ".svg").write_bytes(data)
