"""Tests for the Jinja2 TemplateRenderer.

Covers:
- Bundled templates present
- Custom filters (slugify, quote_yaml) and no HTML escaping
- Strict undefined handling
- render_artifact error wrapping
- Template directory override
"""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from dockstart.scaffolder.errors import GenerationError, TemplateRenderError
from dockstart.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit


def _inline(tmp_path: Path, source: str) -> TemplateRenderer:
    (tmp_path / "inline.j2").write_text(source, encoding="utf-8")
    return TemplateRenderer(tmp_path)


class TestBundledTemplates:
    @pytest.mark.parametrize(
        "name",
        [
            "Dockerfile.j2",
            "docker-compose.yml.j2",
            "devcontainer.json.j2",
            "fluent-bit.conf.j2",
            "backup/backup-postgres.sh.j2",
            "backup/restore-sqlite.sh.j2",
            "processor/Dockerfile.processor.j2",
            "metrics/prometheus.yml.j2",
        ],
    )
    def test_present(self, renderer, name):
        assert (renderer.template_dir / name).is_file()


class TestFilters:
    def test_registered(self, renderer):
        assert {"slugify", "quote_yaml"} <= set(renderer.env.filters)

    def test_slugify(self, renderer):
        assert renderer.env.filters["slugify"]("My App!") == "my-app"

    def test_quote_yaml(self, renderer):
        assert renderer.env.filters["quote_yaml"]("it's") == "'it''s'"

    def test_quote_yaml_in_template_not_escaped(self, tmp_path: Path):
        custom = _inline(tmp_path, "{{ value | quote_yaml }} {{ other }}")
        rendered = custom.render("inline.j2", {"value": "it's", "other": "<a&b>"})
        assert rendered == "'it''s' <a&b>"

    def test_string_templates_not_escaped(self, renderer):
        assert renderer.env.from_string("{{ v }}").render(v="a'b") == "a'b"


class TestStrictUndefined:
    def test_undefined_raises(self, tmp_path: Path):
        with pytest.raises(UndefinedError):
            _inline(tmp_path, "{{ missing }}").render("inline.j2", {})

    def test_render_artifact_wraps_undefined(self, tmp_path: Path):
        (tmp_path / "broken.j2").write_text("{{ missing.value }}", encoding="utf-8")
        custom = TemplateRenderer(tmp_path)
        with pytest.raises(TemplateRenderError) as exc_info:
            custom.render_artifact("broken.j2", "out.txt", {})
        assert exc_info.value.artifact == "out.txt"
        assert exc_info.value.template == "broken.j2"
        assert "out.txt" in str(exc_info.value)

    def test_render_artifact_wraps_missing_template(self, renderer):
        with pytest.raises(TemplateRenderError, match="template not found"):
            renderer.render_artifact("does-not-exist.j2", "x", {})

    def test_errors_share_base_class(self, renderer):
        with pytest.raises(GenerationError):
            renderer.render_artifact("does-not-exist.j2", "x", {})


class TestRenderArtifact:
    def test_artifact_fields(self, tmp_path: Path):
        (tmp_path / "hello.sh.j2").write_text("echo {{ name }}\n", encoding="utf-8")
        custom = TemplateRenderer(tmp_path)
        artifact = custom.render_artifact(
            "hello.sh.j2", "scripts/hello.sh", {"name": "world"}, executable=True
        )
        assert artifact.path == "scripts/hello.sh"
        assert artifact.content == "echo world\n"
        assert artifact.executable
        assert artifact.template == "hello.sh.j2"

    def test_keeps_trailing_newline(self, tmp_path: Path):
        (tmp_path / "t.j2").write_text("line\n", encoding="utf-8")
        assert TemplateRenderer(tmp_path).render("t.j2", {}) == "line\n"

    def test_default_directory(self):
        renderer = TemplateRenderer()
        assert renderer.template_dir.name == "templates"
        assert (renderer.template_dir / "docker-compose.yml.j2").is_file()
