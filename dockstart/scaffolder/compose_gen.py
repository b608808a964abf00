"""Docker Compose generation.

Renders ``docker-compose.yml.j2`` from the ``Topology``.  The cross-service
wiring (which environment variables, mounts, and ``depends_on`` entries the
app and worker get from each enabled sidecar) is resolved here in Python so
the template only lays out YAML.
"""

from __future__ import annotations

from typing import Any

from ..models import (
    APP_SERVICE,
    BACKUP_MOUNT,
    BACKUP_SERVICE,
    BACKUPS_DIR,
    FLUENT_BIT_VOLUME,
    FLUENTD_PORT,
    GRAFANA_SERVICE,
    GRAFANA_VOLUME,
    JAEGER_SERVICE,
    LOG_SERVICE,
    POSTGRES_EXPORTER_PORT,
    POSTGRES_EXPORTER_SERVICE,
    PROCESSOR_SERVICE,
    PROMETHEUS_SERVICE,
    PROMETHEUS_VOLUME,
    REDIS_EXPORTER_PORT,
    REDIS_EXPORTER_SERVICE,
    SERVICE_DATABASE_ENV,
    SERVICE_DEFAULTS,
    UPLOADS_VOLUME,
    WORKER_SERVICE,
    Artifact,
    Topology,
)
from .templates import TemplateRenderer

ZIPKIN_PORT = 9411


class ComposeGenerator:
    """Generates ``docker-compose.yml`` for the devcontainer."""

    TEMPLATE = "docker-compose.yml.j2"
    OUTPUT = "docker-compose.yml"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def render(self, topology: Topology) -> Artifact:
        """Render the compose file for *topology*."""
        return self.renderer.render_artifact(
            self.TEMPLATE, self.OUTPUT, self.build_context(topology)
        )

    # -- Context building --------------------------------------------------

    def build_context(self, topology: Topology) -> dict[str, Any]:
        """Build the template context for *topology*."""
        return {
            "project_name": topology.project_name,
            "database_name": topology.database_name,
            "services": self._service_blocks(topology),
            "app": self._app_block(topology),
            "worker": self._worker_block(topology) if topology.worker.enabled else None,
            "log": topology.log,
            "backup": self._backup_block(topology) if topology.backup.enabled else None,
            "file_processor": topology.file_processor,
            "metrics": topology.metrics,
            "tracing": topology.tracing,
            "volumes": topology.named_volumes,
            "postgres_exporter_dsn": (
                SERVICE_DEFAULTS["postgres"].url("postgres", topology.database_name)
                .replace("postgres://", "postgresql://", 1)
                + "?sslmode=disable"
            ),
            "redis_url": SERVICE_DEFAULTS["redis"].url("redis", topology.database_name),
            "names": {
                "app": APP_SERVICE,
                "log": LOG_SERVICE,
                "worker": WORKER_SERVICE,
                "backup": BACKUP_SERVICE,
                "processor": PROCESSOR_SERVICE,
                "prometheus": PROMETHEUS_SERVICE,
                "grafana": GRAFANA_SERVICE,
                "postgres_exporter": POSTGRES_EXPORTER_SERVICE,
                "redis_exporter": REDIS_EXPORTER_SERVICE,
                "jaeger": JAEGER_SERVICE,
            },
            "volume_names": {
                "uploads": UPLOADS_VOLUME,
                "fluent_bit": FLUENT_BIT_VOLUME,
                "prometheus": PROMETHEUS_VOLUME,
                "grafana": GRAFANA_VOLUME,
            },
            "ports": {
                "fluentd": FLUENTD_PORT,
                "postgres_exporter": POSTGRES_EXPORTER_PORT,
                "redis_exporter": REDIS_EXPORTER_PORT,
                "zipkin": ZIPKIN_PORT,
            },
        }

    def _service_blocks(self, topology: Topology) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = []
        for name in topology.services:
            defaults = SERVICE_DEFAULTS.get(name)
            if defaults is None:
                blocks.append({"name": name, "image": f"{name}:latest", "known": False})
                continue
            environment = [f"{key}={value}" for key, value in defaults.environment]
            if name in SERVICE_DATABASE_ENV:
                environment.append(f"{SERVICE_DATABASE_ENV[name]}={topology.database_name}")
            blocks.append(
                {
                    "name": name,
                    "image": defaults.image,
                    "port": defaults.port,
                    "volume": defaults.volume,
                    "data_path": defaults.data_path,
                    "environment": environment,
                    "known": True,
                }
            )
        return blocks

    def _connection_env(self, topology: Topology) -> list[str]:
        env: list[str] = []
        for name in topology.services:
            defaults = SERVICE_DEFAULTS.get(name)
            if defaults is not None:
                env.append(f"{defaults.url_env}={defaults.url(name, topology.database_name)}")
        return env

    def _sidecar_env(self, topology: Topology, service_name: str) -> list[str]:
        """Environment entries shared by the app and worker containers."""
        env: list[str] = []
        if topology.log.enabled:
            env.append("LOG_LEVEL=debug")
        if topology.file_processor.enabled:
            processor = topology.file_processor
            env.extend(
                [
                    f"UPLOAD_PATH={processor.pending_path}",
                    f"PROCESSED_PATH={processor.processed_path}",
                    f"FAILED_PATH={processor.failed_path}",
                ]
            )
        if topology.tracing.enabled:
            env.extend(self._tracing_env(topology, service_name))
        return env

    def _tracing_env(self, topology: Topology, service_name: str) -> list[str]:
        tracing = topology.tracing
        env = [
            f"OTEL_EXPORTER_OTLP_ENDPOINT=http://{JAEGER_SERVICE}:{tracing.otlp_http_port}",
            "OTEL_EXPORTER_OTLP_PROTOCOL=http/protobuf",
            f"OTEL_SERVICE_NAME={service_name}",
            f"OTEL_TRACES_SAMPLER={tracing.sampler}",
        ]
        if tracing.sampling_rate < 1.0:
            env.append(f"OTEL_TRACES_SAMPLER_ARG={tracing.sampling_rate}")
        if tracing.protocol == "jaeger":
            env.extend(
                [
                    f"JAEGER_AGENT_HOST={JAEGER_SERVICE}",
                    f"JAEGER_AGENT_PORT={tracing.jaeger_agent_port}",
                ]
            )
        elif tracing.protocol == "zipkin":
            env.append(
                f"OTEL_EXPORTER_ZIPKIN_ENDPOINT=http://{JAEGER_SERVICE}:{ZIPKIN_PORT}/api/v2/spans"
            )
        return env

    def _app_block(self, topology: Topology) -> dict[str, Any]:
        depends_on = list(topology.services)
        if topology.log.enabled:
            depends_on.append(LOG_SERVICE)
        if topology.tracing.enabled:
            depends_on.append(JAEGER_SERVICE)

        volumes = ["..:/workspace:cached"]
        if topology.file_processor.enabled:
            volumes.append(f"{UPLOADS_VOLUME}:{topology.file_processor.upload_path}")

        labels: list[str] = []
        if topology.metrics.enabled:
            labels = [
                "prometheus.scrape=true",
                f"prometheus.port={topology.metrics.metrics_port}",
                f"prometheus.path={topology.metrics.metrics_path}",
            ]

        environment = [f"{key}={value}" for key, value in topology.language.env]
        environment += self._connection_env(topology)
        environment += self._sidecar_env(topology, topology.project_name)

        return {
            "depends_on": depends_on,
            "volumes": volumes,
            "environment": environment,
            "labels": labels,
            "logging_tag": f"app.{topology.project_name}",
        }

    def _worker_block(self, topology: Topology) -> dict[str, Any]:
        worker = topology.worker
        depends_on = [APP_SERVICE, *topology.services]
        if topology.log.enabled:
            depends_on.append(LOG_SERVICE)

        volumes = ["..:/workspace:cached"]
        if topology.file_processor.enabled:
            volumes.append(f"{UPLOADS_VOLUME}:{topology.file_processor.upload_path}")

        environment = [f"WORKER_CONCURRENCY={worker.concurrency}"]
        environment += [f"{key}={value}" for key, value in topology.language.env]
        environment += self._connection_env(topology)
        environment += self._sidecar_env(topology, f"{topology.project_name}-worker")

        return {
            "command": worker.command,
            "depends_on": depends_on,
            "volumes": volumes,
            "environment": environment,
            "logging_tag": f"worker.{topology.project_name}",
        }

    def _backup_block(self, topology: Topology) -> dict[str, Any]:
        backup = topology.backup
        environment: list[str] = []
        sql_databases = [db for db in backup.databases if db.database_type in ("postgres", "mysql")]
        if sql_databases:
            primary = sql_databases[0]
            environment += [
                f"DB_HOST={primary.database_host}",
                f"DB_USER={primary.database_user}",
                f"DB_PASSWORD={primary.database_password}",
                f"DB_NAME={primary.database_name}",
            ]
            for extra in sql_databases[1:]:
                prefix = extra.database_type.upper()
                environment += [
                    f"{prefix}_HOST={extra.database_host}",
                    f"{prefix}_USER={extra.database_user}",
                    f"{prefix}_PASSWORD={extra.database_password}",
                    f"{prefix}_DB={extra.database_name}",
                ]
        if backup.has_redis:
            environment += [
                "REDIS_HOST=redis",
                f"REDIS_PORT={SERVICE_DEFAULTS['redis'].port}",
            ]
        environment.append(f"RETENTION_DAYS={backup.retention_days}")

        volumes = [f"./{BACKUPS_DIR}:{BACKUP_MOUNT}"]
        if backup.needs_docker_socket:
            volumes.append("/var/run/docker.sock:/var/run/docker.sock:ro")

        return {
            "environment": environment,
            "volumes": volumes,
            "depends_on": [t for t in backup.database_types if topology.has_service(t)],
        }
