"""File processor sidecar generation.

Renders the processor image, its entrypoint, the polling/dispatch script,
and one handler script per enabled media type.  The ``files/`` staging
directories mirror the in-container ``pending -> processing -> processed``
layout so uploads can be inspected from the host.
"""

from __future__ import annotations

from ..models import Artifact, Topology
from .templates import TemplateRenderer

STAGING_DIRS: tuple[str, ...] = ("pending", "processing", "processed", "failed")


class FileProcessorGenerator:
    """Generates every file of the upload-processing sidecar."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> list[Artifact]:
        """Render the processor sidecar, or nothing when it is disabled."""
        processor = topology.file_processor
        if not processor.enabled:
            return []

        context = {"config": processor}
        render = self.renderer.render_artifact
        artifacts = [
            render("processor/Dockerfile.processor.j2", "Dockerfile.processor", context),
            render(
                "processor/entrypoint.processor.sh.j2",
                "entrypoint.processor.sh",
                context,
                executable=True,
            ),
            render(
                "processor/process-files.sh.j2",
                "scripts/process-files.sh",
                context,
                executable=True,
            ),
        ]
        handlers = (
            (processor.process_images, "image"),
            (processor.process_documents, "document"),
            (processor.process_video, "video"),
        )
        for enabled, media in handlers:
            if enabled:
                artifacts.append(
                    render(
                        f"processor/process-{media}.sh.j2",
                        f"scripts/process-{media}.sh",
                        context,
                        executable=True,
                    )
                )
        artifacts.append(Artifact(path="files/pending/.gitkeep", content=""))
        return artifacts

    @staticmethod
    def directories(topology: Topology) -> list[str]:
        """Directories the processor needs under the output directory."""
        if not topology.file_processor.enabled:
            return []
        return ["scripts", *(f"files/{name}" for name in STAGING_DIRS)]
