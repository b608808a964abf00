"""dockstart configuration.

Typed settings for one generation run.  Uses a Pydantic v2 model so values
are validated at construction time and can be serialised to/from JSON or
read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .utils import sanitize_name

_TRUTHY = {"1", "true", "yes", "on"}


class GeneratorConfig(BaseModel):
    """Settings for a single ``dockstart`` invocation.

    Instances are created by the CLI (or by ``from_env``) and passed to the
    generation entry points.  ``project_name`` falls back to the sanitized
    name of ``project_root`` when left empty.
    """

    project_root: Path = Field(default=Path("."), description="Project whose environment is generated")
    project_name: str = Field(default="", description="Name used for services, databases, and labels")
    output_dir_name: str = Field(default=".devcontainer", description="Output directory under the project root")
    template_dir: Path | None = Field(
        default=None, description="Override for the bundled Jinja2 template directory"
    )
    force: bool = Field(default=False, description="Overwrite an existing devcontainer setup")
    dry_run: bool = Field(default=False, description="Render and report without writing files")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def output_path(self) -> Path:
        """Directory that receives every generated artifact."""
        return self.project_root / self.output_dir_name

    @property
    def resolved_project_name(self) -> str:
        """The explicit project name, or one derived from the root directory.

        Both forms go through ``sanitize_name`` since the name lands unquoted
        in compose keys, tags and environment values.
        """
        name = sanitize_name(self.project_name) if self.project_name else ""
        return name or sanitize_name(self.project_root.resolve().name) or "app"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, project_root: Path | None = None) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            DOCKSTART_PROJECT_NAME, DOCKSTART_TEMPLATE_DIR,
            DOCKSTART_FORCE, DOCKSTART_DRY_RUN.
        """
        template_dir = os.environ.get("DOCKSTART_TEMPLATE_DIR")
        return cls(
            project_root=project_root or Path("."),
            project_name=os.environ.get("DOCKSTART_PROJECT_NAME", ""),
            template_dir=Path(template_dir) if template_dir else None,
            force=os.environ.get("DOCKSTART_FORCE", "").lower() in _TRUTHY,
            dry_run=os.environ.get("DOCKSTART_DRY_RUN", "").lower() in _TRUTHY,
        )
