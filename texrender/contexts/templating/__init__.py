"""
Templating Context

Responsibilities:
- Wraps a bare math formula into a complete, compilable LaTeX document
- Chooses inline-display wrapping vs. standalone environments
- Loads whitelisted packages triggered by the formula content
- Emits the metadata markers the rendering context reads back from the SVG

Owns: LaTeX document template, package whitelist
Never: Runs the TeX toolchain
"""

from texrender.contexts.templating.exceptions import TemplateRenderError
from texrender.contexts.templating.registries import PackageRegistry, TemplateRegistry
from texrender.contexts.templating.templater import FormulaTemplater

__all__ = ["FormulaTemplater", "PackageRegistry", "TemplateRegistry", "TemplateRenderError"]
