"""Fluent Bit configuration for the log aggregation sidecar."""

from __future__ import annotations

from ..models import FLUENTD_PORT, Artifact, Topology
from .templates import TemplateRenderer


class LogSidecarGenerator:
    """Generates ``fluent-bit.conf`` when structured logging was detected."""

    TEMPLATE = "fluent-bit.conf.j2"
    OUTPUT = "fluent-bit.conf"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> list[Artifact]:
        """Return the Fluent Bit config, or nothing when the sidecar is disabled."""
        log = topology.log
        if not log.enabled:
            return []
        context = {
            "config": log,
            "project_name": topology.project_name,
            "forward_port": FLUENTD_PORT,
        }
        return [self.renderer.render_artifact(self.TEMPLATE, self.OUTPUT, context)]
