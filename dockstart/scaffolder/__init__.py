"""Devcontainer scaffolding for dockstart.

Usage::

    from dockstart.models import FeatureSummary
    from dockstart.scaffolder import build_topology, generate

    summary = FeatureSummary(language="node", version="20", services=["postgres"])
    topology = build_topology(summary, "my-app")
    written = generate(topology, "/path/to/my-app")
"""

from .composition import build_topology
from .errors import (
    FilesystemError,
    GenerationError,
    InvalidOutputError,
    TemplateRenderError,
)
from .generator import EnvironmentGenerator, generate
from .templates import TemplateRenderer

__all__ = [
    "EnvironmentGenerator",
    "FilesystemError",
    "GenerationError",
    "InvalidOutputError",
    "TemplateRenderError",
    "TemplateRenderer",
    "build_topology",
    "generate",
]
