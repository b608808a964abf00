"""Prometheus and Grafana configuration for the metrics sidecar."""

from __future__ import annotations

from typing import Any

from ..models import (
    APP_SERVICE,
    POSTGRES_EXPORTER_PORT,
    POSTGRES_EXPORTER_SERVICE,
    PROMETHEUS_SERVICE,
    REDIS_EXPORTER_PORT,
    REDIS_EXPORTER_SERVICE,
    WORKER_SERVICE,
    Artifact,
    Topology,
)
from .devcontainer_gen import format_json
from .templates import TemplateRenderer

# Template name -> output path
_METRICS_FILES: dict[str, str] = {
    "metrics/prometheus.yml.j2": "prometheus/prometheus.yml",
    "metrics/datasource.yml.j2": "grafana/provisioning/datasources/prometheus.yml",
    "metrics/provider.yml.j2": "grafana/provisioning/dashboards/provider.yml",
    "metrics/app-metrics.json.j2": "grafana/provisioning/dashboards/app-metrics.json",
}


class MetricsGenerator:
    """Generates the Prometheus scrape config and Grafana provisioning."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> list[Artifact]:
        """Render the metrics files, or nothing when the sidecar is disabled."""
        if not topology.metrics.enabled:
            return []

        context = self.build_context(topology)
        artifacts: list[Artifact] = []
        for template_name, output_path in _METRICS_FILES.items():
            artifact = self.renderer.render_artifact(template_name, output_path, context)
            if output_path.endswith(".json"):
                artifact = Artifact(
                    path=artifact.path,
                    content=format_json(artifact.content, artifact=output_path),
                    template=artifact.template,
                )
            artifacts.append(artifact)
        return artifacts

    def build_context(self, topology: Topology) -> dict[str, Any]:
        """Build the template context for *topology*."""
        return {
            "config": topology.metrics,
            "names": {
                "app": APP_SERVICE,
                "worker": WORKER_SERVICE,
                "prometheus": PROMETHEUS_SERVICE,
                "postgres_exporter": POSTGRES_EXPORTER_SERVICE,
                "redis_exporter": REDIS_EXPORTER_SERVICE,
            },
            "ports": {
                "postgres_exporter": POSTGRES_EXPORTER_PORT,
                "redis_exporter": REDIS_EXPORTER_PORT,
            },
        }

    @staticmethod
    def directories(topology: Topology) -> list[str]:
        """Directories the metrics stack needs under the output directory."""
        if not topology.metrics.enabled:
            return []
        return [
            "prometheus",
            "grafana/provisioning/datasources",
            "grafana/provisioning/dashboards",
        ]
