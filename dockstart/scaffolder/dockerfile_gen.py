"""Dockerfile generation for the application container."""

from __future__ import annotations

from typing import Any

from ..models import Artifact, Topology
from .templates import TemplateRenderer

# Tools installed in every development image.
COMMON_APT_PACKAGES: tuple[str, ...] = ("git", "curl", "ca-certificates", "sudo")

# Command-line clients for the backing services, so the app container can
# reach them directly while developing.
SERVICE_CLIENT_PACKAGES: dict[str, str] = {
    "postgres": "postgresql-client",
    "mysql": "default-mysql-client",
    "redis": "redis-tools",
}


class DockerfileGenerator:
    """Generates the development ``Dockerfile``."""

    TEMPLATE = "Dockerfile.j2"
    OUTPUT = "Dockerfile"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> Artifact:
        """Render the Dockerfile for *topology*."""
        return self.renderer.render_artifact(
            self.TEMPLATE, self.OUTPUT, self.build_context(topology)
        )

    def build_context(self, topology: Topology) -> dict[str, Any]:
        """Build the template context for *topology*."""
        lang = topology.language
        packages = list(COMMON_APT_PACKAGES)
        for service in topology.services:
            package = SERVICE_CLIENT_PACKAGES.get(service)
            if package and package not in packages:
                packages.append(package)
        return {
            "project_name": topology.project_name,
            "base_image": lang.base_image.format(version=topology.summary.resolved_version()),
            "apt_packages": packages,
            "post_install": list(lang.post_install),
        }
