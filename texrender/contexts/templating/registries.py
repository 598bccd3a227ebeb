"""
Templating Registries

Registries for loading and caching document templates and the package whitelist.
"""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv
from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateNotFound
from omegaconf import OmegaConf

load_dotenv()
TEMPLATES_PATH = Path(
    os.getenv("TEXRENDER_TEMPLATES_PATH", Path(__file__).resolve().parent / "template")
)


class TemplateRegistry:
    """
    Registry for loading and caching Jinja2 templates for LaTeX generation.

    Templates are stored in {templates_path}/{name}/template.tex.jinja
    and use custom delimiters to avoid conflicts with LaTeX syntax:
    - Variable: <<< var >>>
    - Block: <%% block %%>
    - Comment: <# comment #>
    """

    def __init__(self, templates_path: Path = None):
        """
        Initialize the template registry.

        Args:
            templates_path: Base path for template directories. Defaults to
                           TEXRENDER_TEMPLATES_PATH from environment
        """
        if templates_path is None:
            templates_path = TEMPLATES_PATH

        self.templates_path = Path(templates_path)
        self._cache: Dict[str, Template] = {}

        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_path)),
            # Catches silent failures
            undefined=StrictUndefined,
            # Custom delimiters to avoid LaTeX brace conflicts
            variable_start_string="<<<",
            variable_end_string=">>>",
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<#",
            comment_end_string="#>",
            # Preserve whitespace (important for LaTeX)
            trim_blocks=False,
            lstrip_blocks=False,
            keep_trailing_newline=True,
        )

    def get_template(self, name: str) -> Template:
        """
        Get a template by name, loading and caching it if necessary.

        Raises:
            TemplateNotFound: If template file doesn't exist
            TemplateSyntaxError: If template has Jinja2 syntax errors
        """
        if name in self._cache:
            return self._cache[name]

        template_path = f"{name}/template.tex.jinja"

        try:
            template = self.env.get_template(template_path)
        except TemplateNotFound as e:
            raise TemplateNotFound(
                f"Template not found for '{name}' at {self.templates_path / template_path}"
            ) from e

        self._cache[name] = template
        return template

    def get_template_path(self, name: str) -> Path:
        """Path to the template file for ``name``."""
        return self.templates_path / name / "template.tex.jinja"

    def clear_cache(self):
        """Clear the template cache."""
        self._cache.clear()

    def is_cached(self, name: str) -> bool:
        return name in self._cache


class PackageRegistry:
    """
    Whitelist of LaTeX packages a formula may pull in implicitly.

    Loaded from {templates_path}/{name}/packages.yaml, a mapping of package name to
    the list of substrings that trigger it:

        tikz:
          - \\begin{tikzpicture}
        xy:
          - \\xymatrix
    """

    def __init__(self, templates_path: Path = None):
        if templates_path is None:
            templates_path = TEMPLATES_PATH

        self.templates_path = Path(templates_path)
        self._cache: Dict[str, Dict[str, List[str]]] = {}

    def get_config_path(self, name: str) -> Path:
        return self.templates_path / name / "packages.yaml"

    def get_triggers(self, name: str) -> Dict[str, List[str]]:
        """
        Get the package -> triggers mapping for a template, loading and caching it.

        A template without a packages.yaml has no optional packages.
        """
        if name in self._cache:
            return self._cache[name]

        config_path = self.get_config_path(name)
        triggers: Dict[str, List[str]] = {}

        if config_path.exists():
            config = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True) or {}
            for package, package_triggers in config.items():
                triggers[str(package)] = [str(t) for t in (package_triggers or [])]

        self._cache[name] = triggers
        return triggers

    def packages_for(self, name: str, formula: str) -> List[str]:
        """Packages whose triggers occur in ``formula``, in whitelist order."""
        return [
            package
            for package, package_triggers in self.get_triggers(name).items()
            if any(trigger in formula for trigger in package_triggers)
        ]
