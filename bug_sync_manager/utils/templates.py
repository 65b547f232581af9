"""Helpers for building and rendering Jinja2 templates."""

from pathlib import Path
from typing import Any

import jinja2

TEMPLATES_DIRECTORY = Path(__file__).parent.parent / "templates"


def construct_jinja2_template_from_file(template_path: Path) -> jinja2.Template:
    """Build a Jinja2 template from a file.

    Block tags do not leave stray newlines or indentation behind, so templates can
    be laid out for readability while still producing tight Markdown.
    """
    environment = jinja2.Environment(
        loader=jinja2.FileSystemLoader(template_path.parent),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )
    return environment.get_template(template_path.name)


def render_template_with_context(template: jinja2.Template, **context: Any) -> str:
    """Render a template with the given keyword context."""
    return template.render(**context)
