"""Prometheus pull exporter using prometheus_client."""
from typing import Any, Dict, Optional
import logging
import threading
import time

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server
from prometheus_client.core import GaugeMetricFamily

from docker_mem_exporter.collector import LABEL_NAMES, METRIC_HELP, SnapshotAssembler
from docker_mem_exporter.config import ExporterConfig
from docker_mem_exporter.errors import ExporterError
from docker_mem_exporter.series import Snapshot

logger = logging.getLogger(__name__)

SELF_METRICS_PREFIX = "docker_mem_exporter_"


class DockerMemoryCollector:
    """Custom collector that takes a fresh snapshot on every scrape."""

    def __init__(
        self,
        assembler: SnapshotAssembler,
        scrape_timeout: Optional[float] = None,
        self_metrics: Optional["SelfMetrics"] = None
    ):
        self.assembler = assembler
        self.scrape_timeout = scrape_timeout
        self.self_metrics = self_metrics

        self._lock = threading.Lock()
        self._last_scrape: Dict[str, Any] = {}

    def describe(self):
        for name, help_text in METRIC_HELP.items():
            yield GaugeMetricFamily(name, help_text, labels=LABEL_NAMES)

    def collect(self):
        try:
            snapshot = self.assembler.snapshot(timeout=self.scrape_timeout)
        except ExporterError as e:
            logger.error(f"Scrape failed: {e}")
            self._record_failure(e)
            raise

        self._record_success(snapshot)

        families = {
            name: GaugeMetricFamily(name, help_text, labels=LABEL_NAMES)
            for name, help_text in METRIC_HELP.items()
        }
        for point in snapshot.points:
            families[point.name].add_metric(list(point.label_values), point.value)

        yield from families.values()

    def last_scrape(self) -> Dict[str, Any]:
        """Summary of the most recent scrape, for the status endpoint."""
        with self._lock:
            return dict(self._last_scrape)

    def _record_success(self, snapshot: Snapshot):
        if self.self_metrics:
            self.self_metrics.record_snapshot(snapshot)

        with self._lock:
            self._last_scrape = {
                "timestamp": time.time(),
                "success": True,
                "duration_seconds": round(snapshot.duration_s, 4),
                "containers_seen": snapshot.containers_seen,
                "containers_exported": snapshot.containers_seen - len(snapshot.failures),
                "skipped": [
                    {"name": f.display_name, "reason": f.reason, "message": f.message}
                    for f in snapshot.failures
                ],
            }

    def _record_failure(self, error: ExporterError):
        if self.self_metrics:
            self.self_metrics.record_scrape_error(type(error).__name__)

        with self._lock:
            self._last_scrape = {
                "timestamp": time.time(),
                "success": False,
                "error": str(error),
                "reason": type(error).__name__,
            }


class PrometheusExporter:
    """Owns the registry and the HTTP server serving /metrics."""

    def __init__(self, config: ExporterConfig, collector: DockerMemoryCollector,
                 registry: Optional[CollectorRegistry] = None):
        self.config = config
        self.collector = collector
        # Use a custom registry to avoid exporting default Python/process metrics
        self.registry = registry if registry is not None else CollectorRegistry()
        self.registry.register(collector)
        logger.info(f"Registered container memory collector with labels {LABEL_NAMES}")

    def start(self):
        """Start Prometheus HTTP server."""
        try:
            start_http_server(
                self.config.port,
                addr=self.config.bind_address,
                registry=self.registry
            )
            logger.info(
                f"Prometheus exporter listening on "
                f"{self.config.bind_address}:{self.config.port}/metrics"
            )
        except Exception as e:
            logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise


class SelfMetrics:
    """Self-monitoring metrics for the exporter."""

    def __init__(self, registry=None, prefix=SELF_METRICS_PREFIX):
        if registry is None:
            registry = CollectorRegistry()

        self.scrape_duration_seconds = Histogram(
            f"{prefix}scrape_duration_seconds",
            "Duration of container memory snapshots in seconds",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry
        )

        self.scrape_errors_total = Counter(
            f"{prefix}scrape_errors_total",
            "Total number of scrapes aborted by an error",
            ["reason"],
            registry=registry
        )

        self.container_failures_total = Counter(
            f"{prefix}container_failures_total",
            "Total number of containers skipped from a snapshot",
            ["reason"],
            registry=registry
        )

        self.negative_usage_total = Counter(
            f"{prefix}negative_usage_total",
            "Total number of containers whose cache exceeded their usage",
            registry=registry
        )

        self.containers_seen = Gauge(
            f"{prefix}containers_seen",
            "Number of running containers listed in the last snapshot",
            registry=registry
        )

    def record_snapshot(self, snapshot: Snapshot):
        """Record a successful snapshot."""
        self.scrape_duration_seconds.observe(snapshot.duration_s)
        self.containers_seen.set(snapshot.containers_seen)
        for failure in snapshot.failures:
            self.container_failures_total.labels(reason=failure.reason).inc()
        if snapshot.negative_usage:
            self.negative_usage_total.inc(snapshot.negative_usage)

    def record_scrape_error(self, reason: str):
        """Record an aborted scrape."""
        self.scrape_errors_total.labels(reason=reason).inc()
