"""Unit tests for rendering configuration loading and command templates."""

from pathlib import Path

import pytest

from texrender.contexts.rendering import (
    CommandTemplate,
    ConfigurationError,
    build_render_config,
    load_render_config,
)


@pytest.mark.unit
def test_default_config_loads():
    """Test that the bundled render_config.yaml is valid."""
    config = load_render_config()

    assert config.latex_command.executable == "latex"
    assert config.svg_command.executable == "dvisvgm"
    assert config.svg2png_command is None
    assert config.png_command is None
    assert config.png_enabled is False
    assert config.timeout > 0
    assert config.outer_scale > 0


@pytest.mark.unit
def test_overrides_replace_file_values(tmp_path):
    """Test that keyword overrides win and None overrides are ignored."""
    config = load_render_config(
        timeout=12, debug=True, log_dir=tmp_path / "logs", scratch_dir=tmp_path, png_command=None
    )

    assert config.timeout == 12.0
    assert config.debug is True
    assert config.log_dir == tmp_path / "logs"
    assert config.scratch_dir == tmp_path
    assert config.png_command is None


@pytest.mark.unit
def test_config_file_from_path(tmp_path):
    """Test loading an operator-supplied YAML file."""
    config_file = tmp_path / "render.yaml"
    config_file.write_text(
        "latex_command: latex {base}\n"
        "svg_command: dvisvgm --output=%f.svg {base}.dvi\n"
        "png_command: dvipng -T tight -o {base}.png {base}.dvi\n"
        "timeout: 2\n"
        "outer_scale: 1.5\n"
    )

    config = load_render_config(config_file)

    assert config.png_enabled is True
    assert config.timeout == 2.0
    assert config.outer_scale == 1.5
    assert config.png_command.format(Path("/tmp/x")) == [
        "dvipng", "-T", "tight", "-o", "/tmp/x.png", "/tmp/x.dvi"
    ]


@pytest.mark.unit
def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_render_config(tmp_path / "nope.yaml")


@pytest.mark.unit
def test_placeholder_may_repeat():
    """Test that {base} may appear several times (e.g. as input and output)."""
    template = CommandTemplate.parse("rsvg-convert -f png -o {base}.png {base}.svg")

    assert template.format(Path("/s/tex1")) == [
        "rsvg-convert", "-f", "png", "-o", "/s/tex1.png", "/s/tex1.svg"
    ]


@pytest.mark.unit
def test_escaped_braces_are_literal():
    template = CommandTemplate.parse("tool --opt={{x}} {base}")
    assert template.format(Path("/a")) == ["tool", "--opt={x}", "/a"]


@pytest.mark.unit
def test_path_with_spaces_stays_one_argument():
    """Test that the substituted path is never re-split."""
    template = CommandTemplate.parse("latex {base}")
    assert template.format(Path("/tmp/my dir/tex1")) == ["latex", "/tmp/my dir/tex1"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "template",
    [
        "latex",  # no placeholder
        "latex {file}",  # wrong name
        "latex {base} {out}",  # extra placeholder
        "latex {}",  # positional
        "latex {0}",
        "latex {base",  # malformed
        "",
        "   ",
        "latex '{base}",  # unbalanced quote
    ],
)
def test_bad_templates_rejected_at_load_time(template):
    with pytest.raises(ConfigurationError):
        CommandTemplate.parse(template)


@pytest.mark.unit
def test_required_commands(make_config):
    with pytest.raises(ConfigurationError):
        make_config(latex_command=None)
    with pytest.raises(ConfigurationError):
        make_config(svg_command=None)


@pytest.mark.unit
def test_optional_commands_validated_too(make_config):
    """Test that optional commands are checked at load time as well."""
    with pytest.raises(ConfigurationError):
        make_config(png_command="dvipng {input}")


@pytest.mark.unit
@pytest.mark.parametrize("key,value", [("timeout", 0), ("timeout", -1), ("outer_scale", 0)])
def test_numbers_must_be_positive(make_config, key, value):
    with pytest.raises(ConfigurationError):
        make_config(**{key: value})


@pytest.mark.unit
def test_non_numeric_timeout(make_config):
    with pytest.raises(ConfigurationError):
        make_config(timeout="soon")


@pytest.mark.unit
def test_scratch_dir_falls_back_to_temp_dir():
    config = build_render_config({"latex_command": "latex {base}", "svg_command": "x {base}"})
    assert config.scratch_dir.name == "texrender" or config.scratch_dir.exists()
    assert config.log_dir is None or isinstance(config.log_dir, Path)


@pytest.mark.unit
def test_commands_lists_configured_templates(make_config):
    config = make_config(png_command="dvipng {base}")
    assert list(config.commands()) == ["latex_command", "svg_command", "png_command"]
