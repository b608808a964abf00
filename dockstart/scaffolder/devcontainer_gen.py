"""``devcontainer.json`` generation.

Renders the template, checks that the result is valid JSON, and re-indents
it with tabs.  Invalid JSON is an error; a failure while re-indenting is
not, and the unindented text is returned instead.
"""

from __future__ import annotations

import json
from typing import Any

from ..models import (
    APP_SERVICE,
    GRAFANA_SERVICE,
    JAEGER_SERVICE,
    PROMETHEUS_SERVICE,
    SERVICE_DEFAULTS,
    Artifact,
    Topology,
)
from .errors import InvalidOutputError
from .templates import TemplateRenderer


class DevcontainerGenerator:
    """Generates ``devcontainer.json``."""

    TEMPLATE = "devcontainer.json.j2"
    OUTPUT = "devcontainer.json"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> Artifact:
        """Render, validate, and pretty-print ``devcontainer.json``."""
        artifact = self.renderer.render_artifact(
            self.TEMPLATE, self.OUTPUT, self.build_context(topology)
        )
        return Artifact(
            path=artifact.path,
            content=format_json(artifact.content, artifact=self.OUTPUT),
            template=artifact.template,
        )

    def build_context(self, topology: Topology) -> dict[str, Any]:
        """Build the template context for *topology*."""
        lang = topology.language
        summary = topology.summary
        return {
            "name": topology.project_name,
            "use_compose": topology.uses_compose,
            "service": APP_SERVICE,
            "image": lang.devcontainer_image.format(version=summary.resolved_version()),
            "extensions": list(lang.extensions),
            "forward_ports": forward_ports(topology),
            "port_labels": port_labels(topology),
            "post_create_command": lang.post_create_command,
            "remote_user": lang.remote_user,
        }


def port_labels(topology: Topology) -> dict[int, str]:
    """Forwarded ports mapped to a display label, in forwarding order.

    The first label registered for a port wins.
    """
    labels: dict[int, str] = {}

    def _add(port: int | None, label: str) -> None:
        if port and port not in labels:
            labels[port] = label

    _add(topology.language.app_port, "Application")
    for service in topology.services:
        defaults = SERVICE_DEFAULTS.get(service)
        if defaults is not None:
            _add(defaults.port, service)
    if topology.metrics.enabled:
        _add(topology.metrics.prometheus_port, PROMETHEUS_SERVICE)
        _add(topology.metrics.grafana_port, GRAFANA_SERVICE)
    if topology.tracing.enabled:
        _add(topology.tracing.jaeger_ui_port, f"{JAEGER_SERVICE} UI")
    return labels


def forward_ports(topology: Topology) -> list[int]:
    """Ports the devcontainer forwards to the host, without duplicates."""
    return list(port_labels(topology))


def format_json(content: str, *, artifact: str = "") -> str:
    """Validate *content* as JSON and re-indent it with tabs.

    Raises:
        InvalidOutputError: If *content* is not valid JSON.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise InvalidOutputError(f"generated invalid JSON: {exc}", artifact) from exc

    try:
        return json.dumps(data, indent="\t", ensure_ascii=False) + "\n"
    except (TypeError, ValueError):
        return content

