"""Shared pytest fixtures for the dockstart test suite.

Provides reusable fixtures for:
- Temporary project directories
- Feature summaries covering each sidecar combination
- A real TemplateRenderer over the bundled templates
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dockstart.models import FeatureSummary
from dockstart.scaffolder import TemplateRenderer, build_topology


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary project directory (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


# ---------------------------------------------------------------------------
# Feature summaries
# ---------------------------------------------------------------------------

@pytest.fixture
def minimal_summary() -> FeatureSummary:
    """A Node project with no services and no sidecars."""
    return FeatureSummary(language="node", version="20")


@pytest.fixture
def postgres_summary() -> FeatureSummary:
    """A Node project backed by PostgreSQL only."""
    return FeatureSummary(language="node", version="20", services=["postgres"])


@pytest.fixture
def full_summary() -> FeatureSummary:
    """A Node project that enables every sidecar."""
    return FeatureSummary(
        language="node",
        version="20",
        services=["postgres"],
        logging_libraries=["pino"],
        log_format="json",
        queue_libraries=["bullmq"],
        worker_command="node worker.js",
        file_upload_libraries=["multer"],
        upload_path="/uploads",
        metrics_libraries=["prom-client"],
        metrics_port=3000,
        metrics_path="/metrics",
        tracing_libraries=["@opentelemetry/sdk-node"],
        tracing_protocol="otlp",
    )


@pytest.fixture
def full_topology(full_summary):
    """Topology with every sidecar enabled."""
    return build_topology(full_summary, "myapp")


@pytest.fixture
def summary_file(tmp_project_dir: Path, full_summary: FeatureSummary) -> Path:
    """The full summary written as JSON into the project directory."""
    path = tmp_project_dir / "summary.json"
    path.write_text(
        json.dumps(full_summary.model_dump(mode="json"), indent=2),
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

@pytest.fixture
def renderer() -> TemplateRenderer:
    """A TemplateRenderer over the bundled templates."""
    return TemplateRenderer()
