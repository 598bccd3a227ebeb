"""
Formula Templater

Wraps a bare formula into the complete LaTeX document handed to the typesetter.
"""

import re
from typing import List

from jinja2 import TemplateError

from texrender.contexts.templating.exceptions import TemplateRenderError
from texrender.contexts.templating.registries import PackageRegistry, TemplateRegistry

DEFAULT_TEMPLATE = "formula"

# Environments that are complete on their own and must not be wrapped in $...$
STANDALONE_ENVIRONMENTS = (
    "align",
    "align*",
    "alignat",
    "alignat*",
    "eqnarray",
    "eqnarray*",
    "equation",
    "equation*",
    "flalign",
    "flalign*",
    "gather",
    "gather*",
    "multline",
    "multline*",
    "tikzpicture",
    "tikzcd",
)

BEGIN_ENVIRONMENT_PATTERN = re.compile(r"^\s*\\begin\{([a-zA-Z]+\*?)\}")


class FormulaTemplater:
    """Renders formulas into LaTeX documents using the Jinja2 template registry."""

    def __init__(
        self,
        template_registry: TemplateRegistry = None,
        package_registry: PackageRegistry = None,
        template_name: str = DEFAULT_TEMPLATE,
    ):
        self.template_registry = template_registry or TemplateRegistry()
        self.package_registry = package_registry or PackageRegistry(
            self.template_registry.templates_path
        )
        self.template_name = template_name

    @staticmethod
    def is_standalone(formula: str) -> bool:
        """True if the formula opens one of the display environments itself."""
        match = BEGIN_ENVIRONMENT_PATTERN.match(formula)
        return match is not None and match.group(1) in STANDALONE_ENVIRONMENTS

    def packages_for(self, formula: str) -> List[str]:
        return self.package_registry.packages_for(self.template_name, formula)

    def render(self, formula: str) -> str:
        """
        Wrap ``formula`` into a complete LaTeX document.

        Args:
            formula: LaTeX math-mode source

        Returns:
            Document source ready for the typesetter

        Raises:
            TemplateRenderError: If the template cannot be loaded or rendered
        """
        try:
            template = self.template_registry.get_template(self.template_name)
            return template.render(
                formula=formula.strip(),
                standalone=self.is_standalone(formula),
                packages=self.packages_for(formula),
            )
        except TemplateError as e:
            raise TemplateRenderError(
                "Failed to render formula document",
                template_name=self.template_name,
                template_path=self.template_registry.get_template_path(self.template_name),
                original_error=e,
            ) from e
