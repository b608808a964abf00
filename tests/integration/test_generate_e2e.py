"""Integration tests for summary-to-devcontainer generation.

These tests run the real composition engine, renderer, and writer against
temporary project directories and verify that the generated files are
valid, consistent, and carry the expected wiring.

No external services (Docker, databases) are required.
"""

from __future__ import annotations

import itertools
import json
import os
from pathlib import Path

import pytest
import yaml

from dockstart.cli import main
from dockstart.models import FeatureSummary
from dockstart.scaffolder import build_topology, generate


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CAPABILITIES = {
    "log": {"logging_libraries": ["pino"], "log_format": "json"},
    "worker": {"queue_libraries": ["bullmq"], "worker_command": "node worker.js"},
    "uploads": {"file_upload_libraries": ["multer"]},
    "metrics": {"metrics_libraries": ["prom-client"]},
    "tracing": {"tracing_libraries": ["@opentelemetry/api"]},
}

_SERVICE_SETS = ([], ["postgres"], ["mysql", "redis"])


def _generate(project: Path, summary: FeatureSummary) -> Path:
    generate(build_topology(summary, "myapp"), project)
    return project / ".devcontainer"


def _summary(services: list[str], capabilities: tuple[str, ...]) -> FeatureSummary:
    data: dict = {"language": "node", "version": "20", "services": services}
    for name in capabilities:
        data.update(_CAPABILITIES[name])
    return FeatureSummary.model_validate(data)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestScenarios:
    """Known inputs with the files they must produce."""

    def test_node_with_postgres_and_redis(self, tmp_project_dir: Path):
        out = _generate(tmp_project_dir, FeatureSummary(language="node", services=["postgres", "redis"]))
        compose = (out / "docker-compose.yml").read_text(encoding="utf-8")

        assert "image: postgres:16-alpine" in compose
        assert "image: redis:7-alpine" in compose
        assert "db-backup:" in compose
        assert "postgres-data:" in compose
        assert "redis-data:" in compose
        assert "backups:" in compose
        assert "DB_HOST=postgres" in compose
        assert "REDIS_HOST=redis" in compose

        assert (out / "scripts" / "backup-postgres.sh").is_file()
        assert (out / "scripts" / "backup-redis.sh").is_file()
        assert (out / "backups").is_dir()

    def test_uploads_without_services(self, tmp_project_dir: Path):
        out = _generate(
            tmp_project_dir, FeatureSummary(language="node", file_upload_libraries=["multer"])
        )
        compose = (out / "docker-compose.yml").read_text(encoding="utf-8")
        doc = yaml.safe_load(compose)

        assert "file-processor:" in compose
        assert "PENDING_PATH=/uploads/pending" in compose
        assert "db-backup:" not in compose
        assert any(v.startswith("uploads:") for v in doc["services"]["app"]["volumes"])
        assert (out / "files" / "pending").is_dir()

    def test_relative_upload_path(self, tmp_project_dir: Path):
        summary = FeatureSummary(
            language="go", file_upload_libraries=["multipart"], upload_path="uploads"
        )
        out = _generate(tmp_project_dir, summary)
        doc = yaml.safe_load((out / "docker-compose.yml").read_text(encoding="utf-8"))

        assert "uploads:/uploads" in doc["services"]["app"]["volumes"]
        assert "uploads:/uploads" in doc["services"]["file-processor"]["volumes"]
        assert "PENDING_PATH=/uploads/pending" in doc["services"]["file-processor"]["environment"]
        for block in doc["services"].values():
            for volume in block.get("volumes", []):
                assert volume.split(":")[1].startswith("/"), volume

    def test_hostile_project_name(self, tmp_project_dir: Path):
        summary = FeatureSummary(
            language="node",
            services=["postgres"],
            logging_libraries=["pino"],
            tracing_libraries=["@opentelemetry/api"],
        )
        generate(build_topology(summary, "my: app #1"), tmp_project_dir)
        out = tmp_project_dir / ".devcontainer"
        doc = yaml.safe_load((out / "docker-compose.yml").read_text(encoding="utf-8"))
        assert "postgres" in doc["services"]
        assert json.loads((out / "devcontainer.json").read_text(encoding="utf-8"))["name"] == "my-app-1"

    def test_image_mode_without_sidecars(self, tmp_project_dir: Path):
        out = _generate(tmp_project_dir, FeatureSummary(language="rust"))
        doc = json.loads((out / "devcontainer.json").read_text(encoding="utf-8"))
        assert doc["image"] == "mcr.microsoft.com/devcontainers/rust:1"
        assert sorted(p.name for p in out.iterdir()) == [
            "Dockerfile",
            "devcontainer.json",
            "docker-compose.yml",
        ]


# ---------------------------------------------------------------------------
# Validity across combinations
# ---------------------------------------------------------------------------

_COMBINATIONS = [
    (services, caps)
    for services in _SERVICE_SETS
    for size in (0, 1, len(_CAPABILITIES))
    for caps in itertools.combinations(_CAPABILITIES, size)
]


@pytest.mark.integration
class TestGeneratedFilesParse:
    @pytest.mark.parametrize(
        "services,capabilities",
        _COMBINATIONS,
        ids=[f"{'+'.join(s) or 'none'}-{'+'.join(c) or 'bare'}" for s, c in _COMBINATIONS],
    )
    def test_yaml_and_json_valid(self, tmp_path: Path, services, capabilities):
        out = _generate(tmp_path, _summary(services, capabilities))

        compose = yaml.safe_load((out / "docker-compose.yml").read_text(encoding="utf-8"))
        assert "app" in compose["services"]
        json.loads((out / "devcontainer.json").read_text(encoding="utf-8"))

        for path in out.rglob("*"):
            if path.suffix in (".yml", ".yaml"):
                yaml.safe_load(path.read_text(encoding="utf-8"))
            elif path.suffix == ".json":
                json.loads(path.read_text(encoding="utf-8"))
            elif path.suffix == ".sh":
                assert os.access(path, os.X_OK), f"{path} is not executable"
                assert path.read_text(encoding="utf-8").startswith("#!")

    def test_compose_references_resolve(self, tmp_path: Path, full_summary):
        out = _generate(tmp_path, full_summary)
        compose = yaml.safe_load((out / "docker-compose.yml").read_text(encoding="utf-8"))
        services = compose["services"]
        declared_volumes = set(compose.get("volumes") or {})

        for name, block in services.items():
            for dep in block.get("depends_on", []):
                assert dep in services, f"{name} depends on undeclared {dep}"
            for volume in block.get("volumes", []):
                source = volume.split(":", 1)[0]
                if not source.startswith((".", "/")):
                    assert source in declared_volumes, f"{name} mounts undeclared {source}"
            build = block.get("build")
            if build and build["context"] == ".":
                assert (out / build["dockerfile"]).is_file()

    def test_idempotent(self, tmp_path: Path, full_summary):
        first = _generate(tmp_path / "a", full_summary)
        second = _generate(tmp_path / "b", full_summary)
        first_files = sorted(p.relative_to(first) for p in first.rglob("*") if p.is_file())
        second_files = sorted(p.relative_to(second) for p in second.rglob("*") if p.is_file())
        assert first_files == second_files
        for rel in first_files:
            assert (first / rel).read_bytes() == (second / rel).read_bytes()


@pytest.mark.integration
class TestCommandLine:
    def test_yaml_summary_end_to_end(self, tmp_project_dir: Path):
        (tmp_project_dir / "dockstart.yml").write_text(
            "language: python\n"
            "services: [postgres]\n"
            "queue_libraries: [rq]\n"
            "metrics_libraries: [prometheus_client]\n",
            encoding="utf-8",
        )
        main([str(tmp_project_dir), "--project-name", "api"])
        out = tmp_project_dir / ".devcontainer"
        compose = yaml.safe_load((out / "docker-compose.yml").read_text(encoding="utf-8"))
        assert {"app", "postgres", "redis", "worker", "db-backup", "prometheus", "grafana"} <= set(
            compose["services"]
        )
        prometheus = yaml.safe_load((out / "prometheus" / "prometheus.yml").read_text(encoding="utf-8"))
        assert "api-worker" in [job["job_name"] for job in prometheus["scrape_configs"]]
