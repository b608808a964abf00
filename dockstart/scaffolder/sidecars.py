"""Sidecar configuration builders.

One pure function per sidecar.  Each derives its config from the
``FeatureSummary`` (plus, for Backup and Metrics, facts the composition
engine resolved earlier).  A builder never fails: when its capability is
not detected it returns the config's zero value with ``enabled=False``.
"""

from __future__ import annotations

from ..models import (
    DEFAULT_TRACING_PROTOCOL,
    DEFAULT_UPLOAD_PATH,
    REDIS_QUEUE_LIBRARIES,
    BackupSidecarConfig,
    DatabaseBackupConfig,
    FeatureSummary,
    FileProcessorConfig,
    LogSidecarConfig,
    MetricsSidecarConfig,
    TracingSidecarConfig,
    WorkerSidecarConfig,
)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

WORKER_CONCURRENCY = 2

BACKUP_SCHEDULE = "0 3 * * *"
BACKUP_RETENTION_DAYS = 7

PROCESSOR_POLL_INTERVAL = 5
PROCESSOR_MAX_FILE_SIZE = 50 * 1024 * 1024
PROCESSOR_THUMBNAIL_SIZE = "200x200"
PROCESSOR_MEMORY_LIMIT = "512M"
PROCESSOR_CPU_LIMIT = "0.5"

METRICS_SCRAPE_INTERVAL = "30s"
METRICS_APP_SCRAPE_INTERVAL = "15s"
PROMETHEUS_PORT = 9090
GRAFANA_PORT = 3001
METRICS_RETENTION_DAYS = 7

JAEGER_UI_PORT = 16686
OTLP_GRPC_PORT = 4317
OTLP_HTTP_PORT = 4318
JAEGER_AGENT_PORT = 6831
TRACING_MAX_TRACES = 10000
TRACING_SAMPLING_RATE = 1.0

TRACING_PROTOCOLS = ("otlp", "jaeger", "zipkin")


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_log(summary: FeatureSummary, project_name: str) -> LogSidecarConfig:
    """Fluent Bit log collector, enabled when a logging library is detected."""
    if not summary.has_structured_logging():
        return LogSidecarConfig()
    return LogSidecarConfig(
        enabled=True,
        name=project_name,
        log_format=summary.log_format,
        enable_file_output=False,
        logging_libraries=summary.logging_libraries,
    )


def requires_redis(queue_libraries: tuple[str, ...] | list[str]) -> bool:
    """Whether any of *queue_libraries* uses Redis as its broker."""
    return any(lib in REDIS_QUEUE_LIBRARIES for lib in queue_libraries)


def build_worker(summary: FeatureSummary, project_name: str) -> WorkerSidecarConfig:
    """Background worker, enabled when a queue library is detected."""
    if not summary.needs_worker():
        return WorkerSidecarConfig()
    return WorkerSidecarConfig(
        enabled=True,
        name=project_name,
        command=summary.worker_command,
        queue_libraries=summary.queue_libraries,
        concurrency=WORKER_CONCURRENCY,
        requires_redis=requires_redis(summary.queue_libraries),
    )


def build_backup(
    project_name: str,
    *,
    has_postgres: bool,
    has_mysql: bool,
    has_redis: bool,
    has_sqlite: bool = False,
) -> BackupSidecarConfig:
    """Scheduled backups, enabled when any supported database is present.

    Presence flags come from the service list after implicit additions, not
    from the raw summary.
    """
    if not (has_postgres or has_mysql or has_redis or has_sqlite):
        return BackupSidecarConfig()

    present = [
        db_type
        for db_type, flag in (
            ("postgres", has_postgres),
            ("mysql", has_mysql),
            ("redis", has_redis),
            ("sqlite", has_sqlite),
        )
        if flag
    ]
    databases = tuple(
        DatabaseBackupConfig.for_database(
            db_type,
            project_name,
            schedule=BACKUP_SCHEDULE,
            retention_days=BACKUP_RETENTION_DAYS,
        )
        for db_type in present
    )
    return BackupSidecarConfig(
        enabled=True,
        project_name=project_name,
        has_postgres=has_postgres,
        has_mysql=has_mysql,
        has_redis=has_redis,
        has_sqlite=has_sqlite,
        schedule=BACKUP_SCHEDULE,
        retention_days=BACKUP_RETENTION_DAYS,
        needs_docker_socket=any(db.needs_docker_socket for db in databases),
        databases=databases,
    )


def container_upload_path(path: str) -> str:
    """Absolute container mount point for a detected upload directory.

    Detectors report paths relative to the project (``uploads``,
    ``./uploads/``); compose only accepts absolute container targets.
    """
    path = path.strip()
    while path.startswith("./"):
        path = path[2:]
    path = path.rstrip("/")
    if path in ("", "."):
        return DEFAULT_UPLOAD_PATH
    if not path.startswith("/"):
        path = "/" + path
    return path


def build_file_processor(summary: FeatureSummary) -> FileProcessorConfig:
    """Upload processor, enabled when a file-upload library is detected."""
    if not summary.needs_file_processor():
        return FileProcessorConfig()
    return FileProcessorConfig(
        enabled=True,
        upload_path=container_upload_path(summary.upload_path),
        use_inotify=False,
        process_images=True,
        process_documents=False,
        process_video=False,
        poll_interval=PROCESSOR_POLL_INTERVAL,
        max_file_size=PROCESSOR_MAX_FILE_SIZE,
        thumbnail_size=PROCESSOR_THUMBNAIL_SIZE,
        memory_limit=PROCESSOR_MEMORY_LIMIT,
        cpu_limit=PROCESSOR_CPU_LIMIT,
        file_upload_libraries=summary.file_upload_libraries,
    )


def build_metrics(
    summary: FeatureSummary,
    project_name: str,
    *,
    has_worker: bool,
    has_postgres: bool,
    has_redis: bool,
) -> MetricsSidecarConfig:
    """Prometheus + Grafana, enabled when a metrics library is detected."""
    if not summary.needs_metrics():
        return MetricsSidecarConfig()
    port = summary.resolved_metrics_port()
    return MetricsSidecarConfig(
        enabled=True,
        name=project_name,
        metrics_port=port,
        metrics_path=summary.resolved_metrics_path(),
        scrape_interval=METRICS_SCRAPE_INTERVAL,
        app_scrape_interval=METRICS_APP_SCRAPE_INTERVAL,
        has_worker=has_worker,
        worker_metrics_port=port if has_worker else 0,
        has_postgres=has_postgres,
        has_redis=has_redis,
        prometheus_port=PROMETHEUS_PORT,
        grafana_port=GRAFANA_PORT,
        retention_days=METRICS_RETENTION_DAYS,
        metrics_libraries=summary.metrics_libraries,
    )


def resolve_tracing_protocol(detected: str) -> str:
    """Keep a recognised protocol, otherwise fall back to OTLP."""
    protocol = detected.strip().lower()
    if protocol in TRACING_PROTOCOLS:
        return protocol
    return DEFAULT_TRACING_PROTOCOL


def build_tracing(summary: FeatureSummary, project_name: str) -> TracingSidecarConfig:
    """Jaeger collector, enabled when a tracing library is detected."""
    if not summary.needs_tracing():
        return TracingSidecarConfig()
    return TracingSidecarConfig(
        enabled=True,
        service_name=project_name,
        protocol=resolve_tracing_protocol(summary.tracing_protocol),
        jaeger_ui_port=JAEGER_UI_PORT,
        otlp_grpc_port=OTLP_GRPC_PORT,
        otlp_http_port=OTLP_HTTP_PORT,
        jaeger_agent_port=JAEGER_AGENT_PORT,
        max_traces=TRACING_MAX_TRACES,
        sampling_rate=TRACING_SAMPLING_RATE,
        tracing_libraries=summary.tracing_libraries,
    )
