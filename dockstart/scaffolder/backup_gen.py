"""Database backup sidecar generation.

Produces the backup image (``Dockerfile.backup``), its schedule and
entrypoint, the top-level ``scripts/backup.sh`` runner, and one backup and
one restore script per database.  Per-database scripts come from a fixed
template table keyed by database type.
"""

from __future__ import annotations

from typing import Any

from ..models import BACKUP_MOUNT, BACKUPS_DIR, Artifact, DatabaseBackupConfig, Topology
from .templates import TemplateRenderer


# Database type -> (backup template, restore template)
_DATABASE_TEMPLATES: dict[str, tuple[str, str]] = {
    "postgres": ("backup/backup-postgres.sh.j2", "backup/restore-postgres.sh.j2"),
    "mysql": ("backup/backup-mysql.sh.j2", "backup/restore-mysql.sh.j2"),
    "redis": ("backup/backup-redis.sh.j2", "backup/restore-redis.sh.j2"),
    "sqlite": ("backup/backup-sqlite.sh.j2", "backup/restore-sqlite.sh.j2"),
}

SUPPORTED_DATABASES: tuple[str, ...] = tuple(_DATABASE_TEMPLATES)


class BackupGenerator:
    """Generates every file of the backup sidecar."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> list[Artifact]:
        """Render the backup sidecar, or nothing when it is disabled."""
        backup = topology.backup
        if not backup.enabled:
            return []

        context: dict[str, Any] = {"config": backup, "backup_mount": BACKUP_MOUNT}
        artifacts = [
            self.renderer.render_artifact("backup/Dockerfile.backup.j2", "Dockerfile.backup", context),
            self.renderer.render_artifact("backup/crontab.j2", "crontab", context),
            self.renderer.render_artifact(
                "backup/entrypoint.sh.j2", "entrypoint.sh", context, executable=True
            ),
            self.renderer.render_artifact(
                "backup/backup.sh.j2", "scripts/backup.sh", context, executable=True
            ),
        ]
        for db in backup.databases:
            artifacts.extend(self.render_database(db))
        artifacts.append(Artifact(path=f"{BACKUPS_DIR}/.gitkeep", content=""))
        return artifacts

    def render_database(self, db: DatabaseBackupConfig) -> list[Artifact]:
        """Render the backup and restore scripts for one database.

        Unsupported database types produce no scripts.
        """
        templates = _DATABASE_TEMPLATES.get(db.database_type)
        if templates is None:
            return []
        backup_template, restore_template = templates
        context: dict[str, Any] = {"db": db, "backup_mount": BACKUP_MOUNT}
        return [
            self.renderer.render_artifact(
                backup_template,
                f"scripts/backup-{db.database_type}.sh",
                context,
                executable=True,
            ),
            self.renderer.render_artifact(
                restore_template,
                f"scripts/restore-{db.database_type}.sh",
                context,
                executable=True,
            ),
        ]

    @staticmethod
    def directories(topology: Topology) -> list[str]:
        """Directories the backup sidecar needs under the output directory."""
        if not topology.backup.enabled:
            return []
        return ["scripts", BACKUPS_DIR]
