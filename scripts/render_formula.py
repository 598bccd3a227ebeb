#!/usr/bin/env python3
"""
Formula Rendering CLI

Renders a LaTeX formula to SVG (and optionally PNG) using the rendering context.

Commands:
    render - Render a single formula
    check  - Check that the configured toolchain is installed

Examples:\n

    render_formula.py render '\\frac{a}{b}' -o formula.svg            # Render to SVG

    render_formula.py render 'e^{i\\pi}+1=0' -o f.svg --png f.png      # SVG and PNG

    render_formula.py render '\\sqrt{2}' -o f.svg --debug             # Show sources and logs

    render_formula.py check                                          # Check toolchain
"""

import os
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from texrender.contexts.rendering import ConfigurationError, FormulaRenderer, load_render_config
from texrender.contexts.rendering.logger import setup_rendering_logger

app = typer.Typer(
    help="Render LaTeX formulas to SVG and PNG images",
    add_completion=False,
    invoke_without_command=True,
)


def caller_context() -> dict:
    """Who invoked the CLI, recorded alongside rejected formulas."""
    return {
        "interface": "cli",
        "argv": sys.argv,
        "cwd": str(Path.cwd()),
        "user": os.getenv("USER"),
        "pid": os.getpid(),
    }


def _load_config(config_path: Optional[Path], **overrides):
    try:
        return load_render_config(config_path, **overrides)
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("render")
def render_command(
    formula: Annotated[str, typer.Argument(help="LaTeX math-mode formula")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the SVG image"),
    ] = Path("formula.svg"),
    png: Annotated[
        Optional[Path],
        typer.Option("--png", help="Where to write the PNG image (needs a PNG command)"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Render config YAML (default: bundled config)"),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", "-t", help="Timeout per external command, in seconds", min=0.1),
    ] = None,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Directory for structured error records"),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", "-d", help="Show LaTeX source, logs and commands"),
    ] = False,
):
    """
    Render a formula to SVG.

    Examples:\n

        $ render_formula.py render '\\frac{a}{b}' -o frac.svg

        $ render_formula.py render '\\sum_{i=1}^n i' -o sum.svg --png sum.png --debug
    """
    config = _load_config(
        config_path, timeout=timeout, log_dir=log_dir, debug=True if debug else None
    )
    setup_rendering_logger(debug=config.debug)

    if png is not None and not config.png_enabled:
        typer.secho(
            "Warning: --png given but no PNG command is configured", fg=typer.colors.YELLOW, err=True
        )

    with FormulaRenderer(config) as renderer:
        result = renderer.render(formula, caller_context=caller_context())

    if not result.success:
        typer.secho(
            f"✗ {result.error.message} ({result.error.kind.value})",
            fg=typer.colors.RED,
            bold=True,
            err=True,
        )
        raise typer.Exit(code=1)

    output.write_bytes(result.svg)
    typer.secho(f"✓ SVG: {output}", fg=typer.colors.GREEN, bold=True)

    if png is not None and result.png is not None:
        png.write_bytes(result.png)
        typer.secho(f"✓ PNG: {png}", fg=typer.colors.GREEN, bold=True)

    if result.dimensions is not None:
        dims = result.dimensions
        typer.echo(f"  depth={dims.depth} width={dims.width} height={dims.height}")

    raise typer.Exit(code=0)


@app.command("check")
def check_command(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Render config YAML (default: bundled config)"),
    ] = None,
):
    """
    Check that every configured command's executable is installed.

    Examples:\n

        $ render_formula.py check

        $ render_formula.py check --config deploy/render_config.yaml
    """
    config = _load_config(config_path)

    with FormulaRenderer(config) as renderer:
        report = renderer.check_toolchain()

    for key, entry in report.items():
        if entry["available"]:
            typer.secho(f"✓ {key}: {entry['path']}", fg=typer.colors.GREEN)
        else:
            typer.secho(f"✗ {key}: {entry['executable']} not found", fg=typer.colors.RED)

    all_available = all(entry["available"] for entry in report.values())
    raise typer.Exit(code=0 if all_available else 1)


if __name__ == "__main__":
    app()
