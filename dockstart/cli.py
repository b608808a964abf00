"""Command-line entry point for dockstart.

Reads a feature summary (JSON or YAML), builds the topology, and writes the
``.devcontainer/`` directory into the project.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import yaml
from pydantic import ValidationError

from .config import GeneratorConfig
from .models import FeatureSummary, Topology
from .scaffolder import EnvironmentGenerator, GenerationError, TemplateRenderer, build_topology
from .utils import (
    console,
    print_error,
    print_file_preview,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
)

# Summary files looked up in the project root when --summary is omitted.
SUMMARY_FILENAMES: tuple[str, ...] = ("dockstart.yml", "dockstart.yaml", "dockstart.json")


def find_summary(project_root: Path) -> Path | None:
    """Return the first default summary file present in *project_root*."""
    for name in SUMMARY_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def detection_rows(topology: Topology) -> dict[str, str]:
    """Key/value rows describing what the topology contains."""
    summary = topology.summary
    rows = {
        "Language": f"{summary.language or 'unknown'} {summary.version}".strip(),
        "Services": ", ".join(topology.services) or "none",
    }
    if topology.log.enabled:
        rows["Logging"] = f"{', '.join(topology.log.logging_libraries)} ({topology.log.log_format or 'unknown'})"
    if topology.worker.enabled:
        rows["Worker"] = ", ".join(topology.worker.queue_libraries)
    if topology.backup.enabled:
        rows["Backups"] = f"{', '.join(topology.backup.database_types)} @ {topology.backup.schedule}"
    if topology.file_processor.enabled:
        rows["Uploads"] = topology.file_processor.upload_path
    if topology.metrics.enabled:
        rows["Metrics"] = f":{topology.metrics.metrics_port}{topology.metrics.metrics_path}"
    if topology.tracing.enabled:
        rows["Tracing"] = topology.tracing.protocol
    return rows


def _fail(message: str) -> NoReturn:
    print_error(f"Error: {message}")
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``dockstart`` / ``python -m dockstart``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="dockstart",
        description="Generate a devcontainer environment from a project feature summary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  dockstart ./my-app --summary summary.json\n"
            "  dockstart ./my-app --dry-run\n"
            "  dockstart . --summary dockstart.yml --force --project-name api\n"
        ),
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--summary", "-s",
        default=None,
        help="Feature summary file (JSON or YAML). Defaults to dockstart.yml/.json in the project",
    )
    parser.add_argument(
        "--project-name",
        default=None,
        help="Override the project name (defaults to the directory name)",
    )
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Use templates from this directory instead of the bundled ones",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be generated without writing files",
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite an existing .devcontainer setup",
    )

    args = parser.parse_args(argv)

    project_root = Path(args.path)
    if not project_root.is_dir():
        _fail(f"Project directory not found: {project_root}")

    config = GeneratorConfig.from_env(project_root)
    if args.project_name:
        config.project_name = args.project_name
    if args.template_dir:
        config.template_dir = Path(args.template_dir)
    config.force = config.force or args.force
    config.dry_run = config.dry_run or args.dry_run

    summary_path = Path(args.summary) if args.summary else find_summary(project_root)
    if summary_path is None:
        _fail(
            f"No feature summary given and none of {', '.join(SUMMARY_FILENAMES)} "
            f"found in {project_root}"
        )
    if not summary_path.is_file():
        _fail(f"Summary file not found: {summary_path}")

    project_name = config.resolved_project_name
    console.print(f"Analyzing [bold]{project_name}[/bold] from {summary_path}...")

    try:
        summary = FeatureSummary.from_file(summary_path)
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as exc:
        _fail(f"Could not read feature summary: {exc}")

    topology = build_topology(summary, project_name)
    print_summary_table(detection_rows(topology), title="Detected")

    marker = config.output_path / "devcontainer.json"
    if marker.exists() and not config.force and not config.dry_run:
        _fail(f"{marker} already exists (use --force to overwrite)")

    generator = EnvironmentGenerator(TemplateRenderer(config.template_dir))
    try:
        artifacts = generator.render(topology)
        if config.dry_run:
            print_header("Dry run")
            for artifact in artifacts:
                mode = "0755" if artifact.executable else "0644"
                console.print(f"  [dim]{mode}[/dim] {config.output_dir_name}/{artifact.path}")
            console.print()
            for artifact in artifacts:
                if artifact.path == "devcontainer.json":
                    print_file_preview(artifact.path, artifact.content, "json")
                elif artifact.path == "docker-compose.yml":
                    print_file_preview(artifact.path, artifact.content, "yaml")
            print_warning("Dry run: no files were written.")
            return

        written = generator.write(topology, config.output_path, artifacts)
    except GenerationError as exc:
        _fail(str(exc))

    for path in written:
        console.print(f"  [green]Created[/green] {path.relative_to(project_root).as_posix()}")
    console.print()
    print_success("Done!")
    console.print("Open the project in VS Code and run 'Dev Containers: Reopen in Container'.")


if __name__ == "__main__":
    main()
