"""Shared utility functions for dockstart.

Provides structured-data loading (JSON / YAML), file-system helpers with
explicit permission bits, and Rich-based console reporting.  Every user-facing
message in the package goes through the module-level ``console``.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.syntax import Syntax
from rich.table import Table

console = Console()

# Permission bits for generated files.
FILE_MODE = 0o644
EXECUTABLE_MODE = 0o755


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary directory name to a safe project name.

    * Lowercases the input.
    * Replaces spaces and characters other than alphanumerics, hyphens and
      underscores with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("My App") -> "my-app"
        sanitize_name("  api (v2)  ") -> "api-v2"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


# ---------------------------------------------------------------------------
# Structured data I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the top-level value is not an object.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    return data


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    An empty document is treated as an empty mapping.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the top-level value is not a mapping.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a YAML mapping at the top level")
    return data


def load_structured(path: str | Path) -> dict[str, Any]:
    """Load a JSON or YAML file, choosing the parser by file extension."""
    suffix = Path(path).suffix.lower()
    if suffix in (".yml", ".yaml"):
        return load_yaml(path)
    return load_json(path)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The ``Path`` object for the directory.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def write_file(path: str | Path, content: str, *, executable: bool = False) -> Path:
    """Write *content* to *path* and set its permission bits.

    Parent directories must already exist.  Existing files are overwritten.
    The mode is applied explicitly so the result does not depend on the
    process umask.
    """
    file_path = Path(path)
    file_path.write_text(content, encoding="utf-8")
    os.chmod(file_path, EXECUTABLE_MODE if executable else FILE_MODE)
    return file_path


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule with *title*."""
    console.print()
    console.print(Rule(f"[bold bright_cyan] {title} [/bold bright_cyan]", style="bright_cyan"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_file_preview(name: str, content: str, lexer: str = "text") -> None:
    """Print rendered file content inside a titled panel."""
    console.print(
        Panel(
            Syntax(content, lexer, theme="ansi_dark", word_wrap=True),
            title=f"[bold]{name}[/bold]",
            border_style="dim",
        )
    )


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
