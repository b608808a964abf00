"""Pydantic models and static lookup tables shared across dockstart.

Holds the input contract (``FeatureSummary``), the six sidecar
configurations, the aggregate ``Topology`` produced by the composition
engine, and the module-level tables every renderer reads its literals from
(service images, volume names, per-language defaults, backup tooling).
Keeping the literals here means each artifact refers to exactly the same
service, volume, and path names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import load_structured


# ---------------------------------------------------------------------------
# Shared service / volume names
# ---------------------------------------------------------------------------

APP_SERVICE = "app"
LOG_SERVICE = "fluent-bit"
WORKER_SERVICE = "worker"
BACKUP_SERVICE = "db-backup"
PROCESSOR_SERVICE = "file-processor"
PROMETHEUS_SERVICE = "prometheus"
GRAFANA_SERVICE = "grafana"
POSTGRES_EXPORTER_SERVICE = "postgres-exporter"
REDIS_EXPORTER_SERVICE = "redis-exporter"
JAEGER_SERVICE = "jaeger"

UPLOADS_VOLUME = "uploads"
FLUENT_BIT_VOLUME = "fluent-bit-logs"
PROMETHEUS_VOLUME = "prometheus-data"
GRAFANA_VOLUME = "grafana-data"
BACKUPS_DIR = "backups"
BACKUP_MOUNT = "/backup"

FLUENTD_PORT = 24224
POSTGRES_EXPORTER_PORT = 9187
REDIS_EXPORTER_PORT = 9121

DEFAULT_UPLOAD_PATH = "/uploads"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_METRICS_PORT = 3000
DEFAULT_TRACING_PROTOCOL = "otlp"

# Queue libraries whose broker is Redis; a worker using one of these pulls
# redis into the service list.
REDIS_QUEUE_LIBRARIES: frozenset[str] = frozenset(
    {"bull", "bullmq", "bee-queue", "kue", "rq", "arq", "asynq", "sidekiq"}
)

BACKUP_DATABASES: tuple[str, ...] = ("postgres", "mysql", "redis")


# ---------------------------------------------------------------------------
# Static lookup tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceDefaults:
    """Image, port, storage, and credential conventions for a known service."""

    image: str
    port: int
    volume: str
    data_path: str
    url_env: str
    url_scheme: str
    user: str = ""
    password: str = ""
    environment: tuple[tuple[str, str], ...] = ()

    def url(self, service: str, database: str) -> str:
        """Connection URL the application uses to reach *service*."""
        if self.user:
            return (
                f"{self.url_scheme}://{self.user}:{self.password}"
                f"@{service}:{self.port}/{database}"
            )
        return f"{self.url_scheme}://{service}:{self.port}"


SERVICE_DEFAULTS: dict[str, ServiceDefaults] = {
    "postgres": ServiceDefaults(
        image="postgres:16-alpine",
        port=5432,
        volume="postgres-data",
        data_path="/var/lib/postgresql/data",
        url_env="DATABASE_URL",
        url_scheme="postgres",
        user="postgres",
        password="postgres",
        environment=(
            ("POSTGRES_USER", "postgres"),
            ("POSTGRES_PASSWORD", "postgres"),
        ),
    ),
    "mysql": ServiceDefaults(
        image="mysql:8.0",
        port=3306,
        volume="mysql-data",
        data_path="/var/lib/mysql",
        url_env="MYSQL_URL",
        url_scheme="mysql",
        user="root",
        password="mysql",
        environment=(("MYSQL_ROOT_PASSWORD", "mysql"),),
    ),
    "redis": ServiceDefaults(
        image="redis:7-alpine",
        port=6379,
        volume="redis-data",
        data_path="/data",
        url_env="REDIS_URL",
        url_scheme="redis",
    ),
}

# Environment key that names the database inside each service container.
SERVICE_DATABASE_ENV: dict[str, str] = {
    "postgres": "POSTGRES_DB",
    "mysql": "MYSQL_DATABASE",
}


@dataclass(frozen=True)
class LanguageDefaults:
    """Per-language devcontainer and Dockerfile conventions."""

    devcontainer_image: str
    base_image: str
    remote_user: str
    app_port: int | None
    extensions: tuple[str, ...] = ()
    post_create_command: str = ""
    post_install: tuple[str, ...] = ()
    env: tuple[tuple[str, str], ...] = ()


LANGUAGE_DEFAULTS: dict[str, LanguageDefaults] = {
    "node": LanguageDefaults(
        devcontainer_image="mcr.microsoft.com/devcontainers/javascript-node:{version}",
        base_image="node:{version}",
        remote_user="node",
        app_port=3000,
        extensions=("dbaeumer.vscode-eslint",),
        post_create_command="npm install",
        env=(("NODE_ENV", "development"),),
    ),
    "go": LanguageDefaults(
        devcontainer_image="mcr.microsoft.com/devcontainers/go:{version}",
        base_image="golang:{version}",
        remote_user="vscode",
        app_port=8080,
        extensions=("golang.go",),
        post_create_command="go mod download",
    ),
    "python": LanguageDefaults(
        devcontainer_image="mcr.microsoft.com/devcontainers/python:{version}",
        base_image="python:{version}",
        remote_user="vscode",
        app_port=8000,
        extensions=("ms-python.python", "ms-python.vscode-pylance"),
        post_create_command="pip install -r requirements.txt",
        post_install=("pip install --upgrade pip",),
        env=(("PYTHONUNBUFFERED", "1"),),
    ),
    "rust": LanguageDefaults(
        devcontainer_image="mcr.microsoft.com/devcontainers/rust:{version}",
        base_image="rust:{version}",
        remote_user="vscode",
        app_port=8080,
        extensions=("rust-lang.rust-analyzer",),
        post_create_command="cargo build",
        post_install=("rustup component add rustfmt clippy",),
    ),
}

GENERIC_LANGUAGE = LanguageDefaults(
    devcontainer_image="mcr.microsoft.com/devcontainers/base:ubuntu",
    base_image="ubuntu:22.04",
    remote_user="vscode",
    app_port=None,
)

# Used when the summary names a language but no version.
DEFAULT_VERSIONS: dict[str, str] = {
    "node": "20",
    "go": "1.22",
    "python": "3.12",
    "rust": "1",
}


def language_defaults(language: str) -> LanguageDefaults:
    """Return the defaults for *language*, or the generic Ubuntu profile."""
    return LANGUAGE_DEFAULTS.get(language, GENERIC_LANGUAGE)


@dataclass(frozen=True)
class BackupTooling:
    """How one database type is dumped and restored."""

    label: str
    client_package: str
    backup_tool: str
    restore_tool: str


BACKUP_TOOLING: dict[str, BackupTooling] = {
    "postgres": BackupTooling(
        label="PostgreSQL",
        client_package="postgresql16-client",
        backup_tool="pg_dump",
        restore_tool="psql",
    ),
    "mysql": BackupTooling(
        label="MySQL/MariaDB",
        client_package="mysql-client",
        backup_tool="mysqldump --single-transaction",
        restore_tool="mysql",
    ),
    "redis": BackupTooling(
        label="Redis",
        client_package="redis",
        backup_tool="redis-cli BGSAVE",
        restore_tool="docker cp",
    ),
    "sqlite": BackupTooling(
        label="SQLite",
        client_package="sqlite",
        backup_tool="sqlite3 VACUUM INTO",
        restore_tool="docker cp",
    ),
}

BACKUP_EXTENSIONS: dict[str, str] = {
    "postgres": "sql.gz",
    "mysql": "sql.gz",
    "mariadb": "sql.gz",
    "redis": "rdb.gz",
    "sqlite": "db.gz",
}


# ---------------------------------------------------------------------------
# Input contract
# ---------------------------------------------------------------------------


class FeatureSummary(BaseModel):
    """What the upstream detector found in a project.

    Every field tolerates being absent or ``null``; the zero value is used
    instead and the sidecar builders apply their own defaults on top.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    language: str = Field(default="", description="Primary language: node, go, python, rust")
    version: str = Field(default="", description="Language/runtime version")
    services: tuple[str, ...] = Field(default=(), description="Declared backing services")
    confidence: float = Field(default=0.0, description="Detector confidence (0.0-1.0)")

    logging_libraries: tuple[str, ...] = Field(default=())
    log_format: str = Field(default="", description="json, text, or unknown")

    queue_libraries: tuple[str, ...] = Field(default=())
    worker_command: str = Field(default="", description="Command that starts the worker process")

    file_upload_libraries: tuple[str, ...] = Field(default=())
    upload_path: str = Field(default="")

    metrics_libraries: tuple[str, ...] = Field(default=())
    metrics_port: int = Field(default=0, ge=0)
    metrics_path: str = Field(default="")

    tracing_libraries: tuple[str, ...] = Field(default=())
    tracing_protocol: str = Field(default="", description="otlp, jaeger, zipkin, or unknown")

    @field_validator(
        "services",
        "logging_libraries",
        "queue_libraries",
        "file_upload_libraries",
        "metrics_libraries",
        "tracing_libraries",
        mode="before",
    )
    @classmethod
    def _none_to_empty_list(cls, value):
        return () if value is None else value

    @field_validator(
        "language",
        "version",
        "log_format",
        "worker_command",
        "upload_path",
        "metrics_path",
        "tracing_protocol",
        mode="before",
    )
    @classmethod
    def _none_to_empty_string(cls, value):
        return "" if value is None else value

    @field_validator("metrics_port", "confidence", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return 0 if value is None else value

    @classmethod
    def from_file(cls, path: str | Path) -> "FeatureSummary":
        """Load a summary from a JSON or YAML file."""
        return cls.model_validate(load_structured(path))

    # -- Capability predicates ---------------------------------------------

    def has_service(self, service: str) -> bool:
        return service in self.services

    def has_structured_logging(self) -> bool:
        return len(self.logging_libraries) > 0

    def needs_worker(self) -> bool:
        return len(self.queue_libraries) > 0

    def needs_file_processor(self) -> bool:
        return len(self.file_upload_libraries) > 0

    def needs_metrics(self) -> bool:
        return len(self.metrics_libraries) > 0

    def needs_tracing(self) -> bool:
        return len(self.tracing_libraries) > 0

    # -- Resolved values ---------------------------------------------------

    def resolved_metrics_port(self) -> int:
        """The detected metrics port, or the language's default app port."""
        if self.metrics_port:
            return self.metrics_port
        app_port = language_defaults(self.language).app_port
        return app_port if app_port is not None else DEFAULT_METRICS_PORT

    def resolved_metrics_path(self) -> str:
        """The detected metrics path, or ``/metrics``."""
        return self.metrics_path or DEFAULT_METRICS_PATH

    def resolved_version(self) -> str:
        """The detected version, or a current default for the language."""
        return self.version or DEFAULT_VERSIONS.get(self.language, "latest")


# ---------------------------------------------------------------------------
# Sidecar configurations
# ---------------------------------------------------------------------------


class _SidecarConfig(BaseModel):
    """Base for sidecar configs: frozen, with an ``enabled`` flag."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False


class LogSidecarConfig(_SidecarConfig):
    """Fluent Bit log aggregation sidecar."""

    name: str = ""
    log_format: str = ""
    enable_file_output: bool = False
    logging_libraries: tuple[str, ...] = ()

    @property
    def parses_json(self) -> bool:
        return self.log_format == "json"


class WorkerSidecarConfig(_SidecarConfig):
    """Background job worker running the application image."""

    name: str = ""
    command: str = ""
    queue_libraries: tuple[str, ...] = ()
    concurrency: int = 0
    requires_redis: bool = False


class DatabaseBackupConfig(BaseModel):
    """Backup settings for a single database container."""

    model_config = ConfigDict(frozen=True)

    database_type: str
    container_name: str = ""
    database_host: str = ""
    database_name: str = ""
    database_user: str = ""
    database_password: str = ""
    database_path: str = ""
    app_container: str = APP_SERVICE
    schedule: str = "0 3 * * *"
    retention_days: int = 7
    compression_level: int = Field(default=6, ge=1, le=9)
    stop_container: bool = False

    @property
    def extension(self) -> str:
        """Backup file extension for this database type."""
        return BACKUP_EXTENSIONS.get(self.database_type, "backup.gz")

    @property
    def needs_docker_socket(self) -> bool:
        """Redis snapshots and stop-and-copy SQLite backups drive the Docker API."""
        if self.database_type == "redis":
            return True
        return self.database_type == "sqlite" and self.stop_container

    @property
    def tooling(self) -> BackupTooling | None:
        return BACKUP_TOOLING.get(self.database_type)

    @classmethod
    def for_database(
        cls,
        database_type: str,
        project_name: str,
        *,
        schedule: str = "0 3 * * *",
        retention_days: int = 7,
    ) -> "DatabaseBackupConfig":
        """Build the backup config for *database_type* using service defaults."""
        defaults = SERVICE_DEFAULTS.get(database_type)
        kwargs: dict[str, object] = {
            "database_type": database_type,
            "container_name": database_type,
            "schedule": schedule,
            "retention_days": retention_days,
            "stop_container": database_type == "sqlite",
        }
        if database_type in ("postgres", "mysql") and defaults is not None:
            kwargs.update(
                database_host=database_type,
                database_name=f"{project_name}_dev",
                database_user=defaults.user,
                database_password=defaults.password,
            )
        elif database_type == "redis" and defaults is not None:
            kwargs.update(database_host=database_type, database_path=defaults.data_path)
        elif database_type == "sqlite":
            kwargs.update(container_name=APP_SERVICE, database_path=f"/workspace/{project_name}.db")
        return cls(**kwargs)


class BackupSidecarConfig(_SidecarConfig):
    """Scheduled database backup sidecar."""

    project_name: str = ""
    has_postgres: bool = False
    has_mysql: bool = False
    has_redis: bool = False
    has_sqlite: bool = False
    schedule: str = ""
    retention_days: int = 0
    needs_docker_socket: bool = False
    databases: tuple[DatabaseBackupConfig, ...] = ()

    @property
    def database_types(self) -> list[str]:
        return [db.database_type for db in self.databases]

    @property
    def client_packages(self) -> list[str]:
        """Alpine packages providing a client for each backed-up database."""
        return [db.tooling.client_package for db in self.databases if db.tooling is not None]


class FileProcessorConfig(_SidecarConfig):
    """Upload processing sidecar watching a shared volume."""

    upload_path: str = ""
    use_inotify: bool = False
    process_images: bool = False
    process_documents: bool = False
    process_video: bool = False
    poll_interval: int = 0
    max_file_size: int = 0
    thumbnail_size: str = ""
    memory_limit: str = ""
    cpu_limit: str = ""
    file_upload_libraries: tuple[str, ...] = ()

    def _sub(self, name: str) -> str:
        return f"{self.upload_path.rstrip('/')}/{name}"

    @property
    def pending_path(self) -> str:
        return self._sub("pending")

    @property
    def processing_path(self) -> str:
        return self._sub("processing")

    @property
    def processed_path(self) -> str:
        return self._sub("processed")

    @property
    def failed_path(self) -> str:
        return self._sub("failed")


class MetricsSidecarConfig(_SidecarConfig):
    """Prometheus + Grafana metrics stack."""

    name: str = ""
    metrics_port: int = 0
    metrics_path: str = ""
    scrape_interval: str = ""
    app_scrape_interval: str = ""
    has_worker: bool = False
    worker_metrics_port: int = 0
    has_postgres: bool = False
    has_redis: bool = False
    prometheus_port: int = 0
    grafana_port: int = 0
    retention_days: int = 0
    metrics_libraries: tuple[str, ...] = ()


class TracingSidecarConfig(_SidecarConfig):
    """Jaeger all-in-one tracing collector."""

    service_name: str = ""
    protocol: str = ""
    jaeger_ui_port: int = 0
    otlp_grpc_port: int = 0
    otlp_http_port: int = 0
    jaeger_agent_port: int = 0
    max_traces: int = 0
    sampling_rate: float = 0.0
    tracing_libraries: tuple[str, ...] = ()

    @property
    def sampler(self) -> str:
        """OpenTelemetry sampler name matching ``sampling_rate``."""
        if self.sampling_rate >= 1.0:
            return "always_on"
        return "parentbased_traceidratio"


# ---------------------------------------------------------------------------
# Topology
# ---------------------------------------------------------------------------


class Topology(BaseModel):
    """The resolved environment for one generation run.

    Produced once by ``build_topology`` and passed unchanged to every
    renderer.  ``services`` holds each backing service name at most once.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    summary: FeatureSummary = Field(default_factory=FeatureSummary)
    services: tuple[str, ...] = ()
    log: LogSidecarConfig = Field(default_factory=LogSidecarConfig)
    worker: WorkerSidecarConfig = Field(default_factory=WorkerSidecarConfig)
    backup: BackupSidecarConfig = Field(default_factory=BackupSidecarConfig)
    file_processor: FileProcessorConfig = Field(default_factory=FileProcessorConfig)
    metrics: MetricsSidecarConfig = Field(default_factory=MetricsSidecarConfig)
    tracing: TracingSidecarConfig = Field(default_factory=TracingSidecarConfig)

    @property
    def database_name(self) -> str:
        return f"{self.project_name}_dev"

    @property
    def language(self) -> LanguageDefaults:
        return language_defaults(self.summary.language)

    def has_service(self, service: str) -> bool:
        return service in self.services

    def enabled_sidecars(self) -> list[str]:
        """Names of the enabled sidecars in composition order."""
        sidecars = {
            "log": self.log,
            "worker": self.worker,
            "backup": self.backup,
            "file_processor": self.file_processor,
            "metrics": self.metrics,
            "tracing": self.tracing,
        }
        return [name for name, cfg in sidecars.items() if cfg.enabled]

    @property
    def uses_compose(self) -> bool:
        """Whether the devcontainer is driven by docker-compose."""
        return bool(self.services) or bool(self.enabled_sidecars())

    @property
    def named_volumes(self) -> list[str]:
        """Top-level compose volumes, in declaration order."""
        volumes = [
            SERVICE_DEFAULTS[s].volume for s in self.services if s in SERVICE_DEFAULTS
        ]
        if self.log.enabled:
            volumes.append(FLUENT_BIT_VOLUME)
        if self.file_processor.enabled:
            volumes.append(UPLOADS_VOLUME)
        if self.metrics.enabled:
            volumes.extend([PROMETHEUS_VOLUME, GRAFANA_VOLUME])
        return volumes


# ---------------------------------------------------------------------------
# Rendered output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Artifact:
    """One rendered file, addressed relative to the output directory."""

    path: str
    content: str
    executable: bool = False
    template: str = field(default="", compare=False)
