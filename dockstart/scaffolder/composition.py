"""Composition engine: FeatureSummary -> Topology.

The sidecar builders run in a fixed order because later stages read what
earlier ones added.  The worker may add ``redis`` to the service list, and
both Backup and Metrics look at the list after that happens.  The order is
the ``STAGES`` tuple below; do not re-derive it elsewhere.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..models import (
    BACKUP_DATABASES,
    BackupSidecarConfig,
    FeatureSummary,
    FileProcessorConfig,
    LogSidecarConfig,
    MetricsSidecarConfig,
    Topology,
    TracingSidecarConfig,
    WorkerSidecarConfig,
)
from ..utils import sanitize_name
from .sidecars import (
    build_backup,
    build_file_processor,
    build_log,
    build_metrics,
    build_tracing,
    build_worker,
)


@dataclass
class _Draft:
    """Mutable state threaded through the stages of one composition."""

    summary: FeatureSummary
    project_name: str
    services: list[str] = field(default_factory=list)
    has_postgres: bool = False
    has_mysql: bool = False
    has_redis: bool = False
    log: LogSidecarConfig = field(default_factory=LogSidecarConfig)
    worker: WorkerSidecarConfig = field(default_factory=WorkerSidecarConfig)
    backup: BackupSidecarConfig = field(default_factory=BackupSidecarConfig)
    file_processor: FileProcessorConfig = field(default_factory=FileProcessorConfig)
    metrics: MetricsSidecarConfig = field(default_factory=MetricsSidecarConfig)
    tracing: TracingSidecarConfig = field(default_factory=TracingSidecarConfig)

    def add_service(self, service: str) -> None:
        if service not in self.services:
            self.services.append(service)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def _copy_services(draft: _Draft) -> None:
    for service in draft.summary.services:
        draft.add_service(service)


def _compose_log(draft: _Draft) -> None:
    draft.log = build_log(draft.summary, draft.project_name)


def _compose_worker(draft: _Draft) -> None:
    draft.worker = build_worker(draft.summary, draft.project_name)
    if draft.worker.enabled and draft.worker.requires_redis:
        draft.add_service("redis")


def _compose_backup(draft: _Draft) -> None:
    present = {db: db in draft.services for db in BACKUP_DATABASES}
    draft.has_postgres = present["postgres"]
    draft.has_mysql = present["mysql"]
    draft.has_redis = present["redis"]
    # SQLite is not a compose service, so it is never detected here.
    draft.backup = build_backup(
        draft.project_name,
        has_postgres=draft.has_postgres,
        has_mysql=draft.has_mysql,
        has_redis=draft.has_redis,
        has_sqlite=False,
    )


def _compose_file_processor(draft: _Draft) -> None:
    draft.file_processor = build_file_processor(draft.summary)


def _compose_metrics(draft: _Draft) -> None:
    draft.metrics = build_metrics(
        draft.summary,
        draft.project_name,
        has_worker=draft.worker.enabled,
        has_postgres=draft.has_postgres,
        has_redis=draft.has_redis,
    )


def _compose_tracing(draft: _Draft) -> None:
    draft.tracing = build_tracing(draft.summary, draft.project_name)


STAGES: tuple[Callable[[_Draft], None], ...] = (
    _copy_services,
    _compose_log,
    _compose_worker,
    _compose_backup,
    _compose_file_processor,
    _compose_metrics,
    _compose_tracing,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_topology(summary: FeatureSummary, project_name: str) -> Topology:
    """Resolve *summary* into the environment topology for *project_name*.

    Deterministic and side-effect free: the same summary and name always
    produce an equal ``Topology``.  The name is sanitised first because it
    is interpolated into compose service names, tags and env values.
    """
    project_name = sanitize_name(project_name) or "app"
    draft = _Draft(summary=summary, project_name=project_name)
    for stage in STAGES:
        stage(draft)

    return Topology(
        project_name=project_name,
        summary=summary,
        services=tuple(draft.services),
        log=draft.log,
        worker=draft.worker,
        backup=draft.backup,
        file_processor=draft.file_processor,
        metrics=draft.metrics,
        tracing=draft.tracing,
    )
