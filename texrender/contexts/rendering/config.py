"""
Rendering Configuration

Loads the rendering configuration from YAML (OmegaConf) with environment overrides
(python-dotenv) and validates command templates once, at load time.

Examples:
    >>> config = load_render_config()
    >>> config = load_render_config(timeout=10, debug=True)
    >>> config = load_render_config(Path("/etc/texrender/render_config.yaml"))
"""

import os
import shlex
import tempfile
from dataclasses import dataclass
from pathlib import Path
from string import Formatter
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from omegaconf import OmegaConf

from texrender.contexts.rendering.errors import ConfigurationError

load_dotenv()
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "render_config.yaml"
RENDER_CONFIG_PATH = Path(os.getenv("TEXRENDER_CONFIG_PATH", DEFAULT_CONFIG_PATH))
SCRATCH_DIR = os.getenv("TEXRENDER_SCRATCH_DIR")
LOG_DIR = os.getenv("TEXRENDER_LOG_DIR")

PLACEHOLDER = "base"

COMMAND_KEYS = ("latex_command", "svg_command", "svg2png_command", "png_command")
REQUIRED_COMMAND_KEYS = ("latex_command", "svg_command")


@dataclass(frozen=True)
class CommandTemplate:
    """
    An external command with a single ``{base}`` placeholder.

    The template is split into arguments once; each argument is formatted
    separately, so the substituted path never needs shell quoting.

    Attributes:
        template: The raw template string as configured
        argv: The template split into argument templates
    """

    template: str
    argv: Tuple[str, ...]

    @classmethod
    def parse(cls, template: str, name: str = "command") -> "CommandTemplate":
        """
        Validate and split a command template.

        Raises:
            ConfigurationError: If the template is empty, malformed, or references
                anything other than exactly one ``{base}`` placeholder
        """
        if not isinstance(template, str) or not template.strip():
            raise ConfigurationError(f"{name}: command template must be a non-empty string")

        try:
            fields = {
                field_name
                for _, field_name, _, _ in Formatter().parse(template)
                if field_name is not None
            }
        except ValueError as e:
            raise ConfigurationError(f"{name}: malformed command template: {e}") from e

        if fields != {PLACEHOLDER}:
            raise ConfigurationError(
                f"{name}: command template must contain exactly one placeholder "
                f"{{{PLACEHOLDER}}}, found {sorted(fields) or 'none'}: {template!r}"
            )

        try:
            argv = tuple(shlex.split(template))
        except ValueError as e:
            raise ConfigurationError(f"{name}: cannot split command template: {e}") from e

        return cls(template=template, argv=argv)

    @property
    def executable(self) -> str:
        return self.argv[0]

    def format(self, base: Path) -> List[str]:
        """Argument vector with the scratch base path substituted."""
        return [arg.format(**{PLACEHOLDER: str(base)}) for arg in self.argv]

    def __str__(self) -> str:
        return self.template


@dataclass(frozen=True)
class RenderConfig:
    """
    Immutable rendering configuration, passed explicitly into the pipeline.

    Attributes:
        latex_command: Typesetting command, produces {base}.dvi
        svg_command: Intermediate-to-SVG command, produces {base}.svg
        svg2png_command: Optional SVG-to-PNG command, produces {base}.png
        png_command: Optional intermediate-to-PNG command, produces {base}.png
        timeout: Wall-clock limit for each external command, in seconds
        outer_scale: Factor from internal SVG units to the units reported to callers
        scratch_dir: Directory holding scratch sets
        log_dir: Directory for structured error records (None disables them)
        debug: Stream intermediate sources, logs and commands to the debug channel
    """

    latex_command: CommandTemplate
    svg_command: CommandTemplate
    scratch_dir: Path
    svg2png_command: Optional[CommandTemplate] = None
    png_command: Optional[CommandTemplate] = None
    timeout: float = 5.0
    outer_scale: float = 1.00375
    log_dir: Optional[Path] = None
    debug: bool = False

    @property
    def png_enabled(self) -> bool:
        return self.svg2png_command is not None or self.png_command is not None

    def commands(self) -> Dict[str, CommandTemplate]:
        """Configured command templates by key."""
        return {
            key: getattr(self, key) for key in COMMAND_KEYS if getattr(self, key) is not None
        }


def _optional_path(value: Any) -> Optional[Path]:
    if value is None or str(value).strip() == "":
        return None
    return Path(str(value)).expanduser()


def build_render_config(values: Dict[str, Any]) -> RenderConfig:
    """
    Build a validated RenderConfig from a plain mapping.

    Raises:
        ConfigurationError: On missing commands, bad templates or invalid numbers
    """
    commands = {}
    for key in COMMAND_KEYS:
        template = values.get(key)
        if template is None or (key not in REQUIRED_COMMAND_KEYS and not str(template).strip()):
            if key in REQUIRED_COMMAND_KEYS:
                raise ConfigurationError(f"{key} is required")
            commands[key] = None
            continue
        commands[key] = CommandTemplate.parse(str(template), name=key)

    try:
        timeout = float(values.get("timeout", 5.0))
        outer_scale = float(values.get("outer_scale", 1.00375))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"timeout and outer_scale must be numbers: {e}") from e

    if timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {timeout}")
    if outer_scale <= 0:
        raise ConfigurationError(f"outer_scale must be positive, got {outer_scale}")

    scratch_dir = (
        _optional_path(values.get("scratch_dir"))
        or _optional_path(SCRATCH_DIR)
        or Path(tempfile.gettempdir()) / "texrender"
    )
    log_dir = _optional_path(values.get("log_dir")) or _optional_path(LOG_DIR)

    return RenderConfig(
        latex_command=commands["latex_command"],
        svg_command=commands["svg_command"],
        svg2png_command=commands["svg2png_command"],
        png_command=commands["png_command"],
        timeout=timeout,
        outer_scale=outer_scale,
        scratch_dir=scratch_dir,
        log_dir=log_dir,
        debug=bool(values.get("debug", False)),
    )


def load_render_config(config_path: Path = None, **overrides: Any) -> RenderConfig:
    """
    Load render_config.yaml and apply keyword overrides.

    Args:
        config_path: Optional path to config file (defaults to TEXRENDER_CONFIG_PATH
                     or the bundled render_config.yaml)
        **overrides: Values replacing those from the file; None values are ignored

    Returns:
        Validated RenderConfig

    Raises:
        ConfigurationError: If the file is missing or any value is invalid
    """
    if config_path is None:
        config_path = RENDER_CONFIG_PATH

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Render config not found: {config_path}")

    config = OmegaConf.load(config_path)
    overrides = {
        key: str(value) if isinstance(value, Path) else value
        for key, value in overrides.items()
        if value is not None
    }
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.create(overrides))

    values = OmegaConf.to_container(config, resolve=True) or {}
    return build_render_config(values)
