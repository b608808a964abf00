"""Jinja2 template rendering for devcontainer scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``dockstart/scaffolder/templates/`` directory and renders them with a
context built from the ``Topology``.  Undefined variables are errors, so a
template that drifts from the data it is given fails loudly instead of
emitting blank values.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from ..models import Artifact
from .errors import TemplateRenderError


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for devcontainer artifacts.

    Each artifact has exactly one template, addressed by its logical name
    (``docker-compose.yml.j2``, ``backup/backup-postgres.sh.j2``, ...).
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["quote_yaml"] = _quote_yaml_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"backup/Dockerfile.backup.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.

        Raises:
            TemplateNotFound: If the template does not exist.
            jinja2.TemplateError: On syntax errors or undefined variables.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- Artifact rendering ------------------------------------------------

    def render_artifact(
        self,
        template_path: str,
        output_path: str,
        context: dict[str, Any],
        *,
        executable: bool = False,
    ) -> Artifact:
        """Render *template_path* into an ``Artifact`` named *output_path*.

        Jinja2 failures are wrapped in ``TemplateRenderError`` carrying the
        artifact name so callers can report which file could not be built.
        """
        try:
            content = self.render(template_path, context)
        except TemplateNotFound as exc:
            raise TemplateRenderError(output_path, template_path, f"template not found: {exc.name}") from exc
        except TemplateError as exc:
            raise TemplateRenderError(output_path, template_path, str(exc)) from exc
        return Artifact(
            path=output_path,
            content=content,
            executable=executable,
            template=template_path,
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")


def _quote_yaml_filter(value: Any) -> str:
    """Single-quote a scalar for YAML, doubling embedded quotes."""
    return "'" + str(value).replace("'", "''") + "'"
