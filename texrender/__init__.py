"""
texrender - LaTeX math formulas rendered to SVG and PNG

Turns a formula into a complete LaTeX document, typesets it with an external TeX
toolchain and converts the result into an embeddable SVG image (optionally PNG).

Architecture:
- Templating Context: Wraps a formula into a compilable LaTeX document
- Rendering Context: Validation, typesetting, image conversion and scratch cleanup
"""

from texrender.contexts.rendering import FormulaRenderer, RenderResult, load_render_config

__version__ = "0.1.0"

__all__ = ["FormulaRenderer", "RenderResult", "load_render_config"]
