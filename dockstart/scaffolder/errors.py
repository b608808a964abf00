"""Exception types raised while generating a devcontainer environment."""

from __future__ import annotations

from pathlib import Path


class GenerationError(Exception):
    """Base class for every failure during rendering or writing."""

    def __init__(self, message: str, artifact: str = "") -> None:
        self.artifact = artifact
        if artifact:
            message = f"{artifact}: {message}"
        super().__init__(message)


class TemplateRenderError(GenerationError):
    """A template is missing or references data the context does not provide."""

    def __init__(self, artifact: str, template: str, detail: str) -> None:
        self.template = template
        super().__init__(f"failed to render template {template!r}: {detail}", artifact)


class InvalidOutputError(GenerationError):
    """Rendered content does not parse as the format it claims to be."""


class FilesystemError(GenerationError):
    """Creating a directory or writing a file failed."""

    def __init__(self, path: str | Path, detail: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to write {self.path}: {detail}", artifact=str(path))
