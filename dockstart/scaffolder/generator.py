"""Main scaffolding orchestrator.

Takes a ``Topology`` and produces the ``.devcontainer/`` directory: the core
artifacts (Dockerfile, compose file, devcontainer.json) plus the files of
every enabled sidecar.  All artifacts are rendered before anything touches
the disk, so template and validation errors leave the project untouched.
Write errors abort immediately; files written before the failure are kept.
"""

from __future__ import annotations

from pathlib import Path

from ..models import Artifact, Topology
from ..utils import ensure_dir, write_file
from .backup_gen import BackupGenerator
from .compose_gen import ComposeGenerator
from .devcontainer_gen import DevcontainerGenerator
from .dockerfile_gen import DockerfileGenerator
from .errors import FilesystemError
from .logsidecar_gen import LogSidecarGenerator
from .metrics_gen import MetricsGenerator
from .processor_gen import FileProcessorGenerator
from .templates import TemplateRenderer

OUTPUT_DIR_NAME = ".devcontainer"


class EnvironmentGenerator:
    """Renders and writes every artifact for a ``Topology``.

    Sub-generators share one ``TemplateRenderer``.  Each is given the same
    topology value, so names and paths agree across files by construction.
    """

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.dockerfile_gen = DockerfileGenerator(self.renderer)
        self.compose_gen = ComposeGenerator(self.renderer)
        self.devcontainer_gen = DevcontainerGenerator(self.renderer)
        self.log_gen = LogSidecarGenerator(self.renderer)
        self.backup_gen = BackupGenerator(self.renderer)
        self.processor_gen = FileProcessorGenerator(self.renderer)
        self.metrics_gen = MetricsGenerator(self.renderer)

    # -- Rendering ---------------------------------------------------------

    def render(self, topology: Topology) -> list[Artifact]:
        """Render every artifact for *topology*, in write order.

        Raises:
            TemplateRenderError: If any template fails to render.
            InvalidOutputError: If devcontainer.json is not valid JSON.
        """
        # 1. Core artifacts
        artifacts = [
            self.dockerfile_gen.render(topology),
            self.compose_gen.render(topology),
            self.devcontainer_gen.render(topology),
        ]

        # 2. Sidecars, in composition order (worker and tracing live in compose)
        artifacts.extend(self.log_gen.render(topology))
        artifacts.extend(self.backup_gen.render(topology))
        artifacts.extend(self.processor_gen.render(topology))
        artifacts.extend(self.metrics_gen.render(topology))
        return artifacts

    def directories(self, topology: Topology) -> list[str]:
        """Sub-directories of the output directory that must exist."""
        dirs: list[str] = []
        for group in (
            self.backup_gen.directories(topology),
            self.processor_gen.directories(topology),
            self.metrics_gen.directories(topology),
        ):
            for directory in group:
                if directory not in dirs:
                    dirs.append(directory)
        return dirs

    # -- Writing -----------------------------------------------------------

    def write(
        self,
        topology: Topology,
        output_dir: str | Path,
        artifacts: list[Artifact] | None = None,
    ) -> list[Path]:
        """Create the directory tree under *output_dir* and write *artifacts*.

        Args:
            topology: The topology the artifacts were rendered from.
            output_dir: The ``.devcontainer`` directory itself.
            artifacts: Pre-rendered artifacts; rendered from *topology* if
                omitted.

        Returns:
            Paths of the written files, in write order.

        Raises:
            FilesystemError: On the first directory or file that cannot be
                created.
        """
        if artifacts is None:
            artifacts = self.render(topology)
        out = Path(output_dir)

        for directory in ["", *self.directories(topology)]:
            target = out / directory if directory else out
            try:
                ensure_dir(target)
            except OSError as exc:
                raise FilesystemError(target, exc.strerror or str(exc)) from exc

        written: list[Path] = []
        for artifact in artifacts:
            target = out / artifact.path
            try:
                ensure_dir(target.parent)
                write_file(target, artifact.content, executable=artifact.executable)
            except OSError as exc:
                raise FilesystemError(target, exc.strerror or str(exc)) from exc
            written.append(target)
        return written

    def generate(
        self,
        topology: Topology,
        project_root: str | Path,
        output_dir_name: str = OUTPUT_DIR_NAME,
    ) -> list[Path]:
        """Render and write the full environment under *project_root*."""
        artifacts = self.render(topology)
        return self.write(topology, Path(project_root) / output_dir_name, artifacts)


def generate(
    topology: Topology,
    project_root: str | Path,
    renderer: TemplateRenderer | None = None,
) -> list[Path]:
    """Write the ``.devcontainer/`` environment for *topology* into *project_root*.

    Convenience wrapper around ``EnvironmentGenerator.generate``.
    """
    return EnvironmentGenerator(renderer).generate(topology, project_root)
