"""Tests for the EnvironmentGenerator orchestrator.

Covers:
- Artifact ordering and uniqueness
- Directory creation
- File permission bits
- Render failures leave the filesystem untouched
- Write failures surface as FilesystemError
"""

from __future__ import annotations

import stat
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from dockstart.models import FeatureSummary
from dockstart.scaffolder import (
    EnvironmentGenerator,
    FilesystemError,
    TemplateRenderError,
    build_topology,
    generate,
)
from dockstart.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestRender:
    def test_core_artifacts_first(self, minimal_summary):
        artifacts = EnvironmentGenerator().render(build_topology(minimal_summary, "myapp"))
        assert [a.path for a in artifacts] == ["Dockerfile", "docker-compose.yml", "devcontainer.json"]

    def test_full_paths_unique(self, full_topology):
        paths = [a.path for a in EnvironmentGenerator().render(full_topology)]
        assert len(paths) == len(set(paths))
        assert paths[:3] == ["Dockerfile", "docker-compose.yml", "devcontainer.json"]
        assert "fluent-bit.conf" in paths
        assert "Dockerfile.backup" in paths
        assert "Dockerfile.processor" in paths
        assert "prometheus/prometheus.yml" in paths

    def test_directories_deduplicated(self, full_topology):
        dirs = EnvironmentGenerator().directories(full_topology)
        assert dirs.count("scripts") == 1
        assert "backups" in dirs
        assert "files/failed" in dirs
        assert "grafana/provisioning/dashboards" in dirs

    def test_shared_renderer(self):
        renderer = TemplateRenderer()
        gen = EnvironmentGenerator(renderer)
        assert gen.compose_gen.renderer is renderer
        assert gen.metrics_gen.renderer is renderer


class TestWrite:
    def test_writes_minimal_environment(self, tmp_project_dir, minimal_summary):
        topology = build_topology(minimal_summary, "myapp")
        written = EnvironmentGenerator().generate(topology, tmp_project_dir)
        out = tmp_project_dir / ".devcontainer"
        assert written == [out / "Dockerfile", out / "docker-compose.yml", out / "devcontainer.json"]
        for path in written:
            assert path.is_file()
            assert _mode(path) == 0o644

    def test_permissions(self, tmp_project_dir, full_topology):
        EnvironmentGenerator().generate(full_topology, tmp_project_dir)
        out = tmp_project_dir / ".devcontainer"
        assert _mode(out / "entrypoint.sh") == 0o755
        assert _mode(out / "scripts" / "backup.sh") == 0o755
        assert _mode(out / "scripts" / "process-files.sh") == 0o755
        assert _mode(out / "Dockerfile.backup") == 0o644
        assert _mode(out / "crontab") == 0o644
        assert _mode(out / "prometheus" / "prometheus.yml") == 0o644

    def test_creates_empty_directories(self, tmp_project_dir, full_topology):
        EnvironmentGenerator().generate(full_topology, tmp_project_dir)
        out = tmp_project_dir / ".devcontainer"
        for name in ("pending", "processing", "processed", "failed"):
            assert (out / "files" / name).is_dir()
        assert (out / "backups" / ".gitkeep").is_file()

    def test_overwrites_existing(self, tmp_project_dir, minimal_summary):
        out = tmp_project_dir / ".devcontainer"
        out.mkdir()
        (out / "Dockerfile").write_text("stale", encoding="utf-8")
        generate(build_topology(minimal_summary, "myapp"), tmp_project_dir)
        assert (out / "Dockerfile").read_text(encoding="utf-8") != "stale"

    def test_write_prerendered(self, tmp_path, minimal_summary):
        topology = build_topology(minimal_summary, "myapp")
        gen = EnvironmentGenerator()
        artifacts = gen.render(topology)
        written = gen.write(topology, tmp_path / "out", artifacts)
        assert len(written) == len(artifacts)


class TestFailures:
    def test_render_error_writes_nothing(self, tmp_project_dir, postgres_summary):
        renderer = TemplateRenderer()
        gen = EnvironmentGenerator(renderer)
        topology = build_topology(postgres_summary, "myapp")
        with patch.object(
            gen.backup_gen,
            "render",
            side_effect=TemplateRenderError("crontab", "backup/crontab.j2", "boom"),
        ):
            with pytest.raises(TemplateRenderError):
                gen.generate(topology, tmp_project_dir)
        assert not (tmp_project_dir / ".devcontainer").exists()

    def test_unwritable_output(self, tmp_path, minimal_summary):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        gen = EnvironmentGenerator()
        with pytest.raises(FilesystemError) as exc_info:
            gen.write(build_topology(minimal_summary, "myapp"), blocker / ".devcontainer")
        assert exc_info.value.path == blocker / ".devcontainer"

    def test_write_error_names_file(self, tmp_path, minimal_summary):
        gen = EnvironmentGenerator()
        with patch(
            "dockstart.scaffolder.generator.write_file",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            with pytest.raises(FilesystemError, match="Permission denied") as exc_info:
                gen.write(build_topology(minimal_summary, "myapp"), tmp_path / "out")
        assert exc_info.value.path == tmp_path / "out" / "Dockerfile"

    def test_mock_renderer_failure_propagates(self, tmp_path):
        renderer = MagicMock(spec=TemplateRenderer)
        renderer.render_artifact.side_effect = TemplateRenderError("Dockerfile", "Dockerfile.j2", "x")
        gen = EnvironmentGenerator(renderer)
        with pytest.raises(TemplateRenderError):
            gen.render(build_topology(FeatureSummary(), "myapp"))
