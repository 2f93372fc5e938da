"""
Shared metrics configuration for the Varnish Cache purge service.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for the service.

    Each collector owns its registry so several service instances (tests,
    the CLI and the server) can coexist in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_purge_metrics()

    def _setup_purge_metrics(self):
        """Set up purge-specific metrics."""
        self._metrics["purge_requests_total"] = Counter(
            "purge_requests_total",
            "Total purge attempts by outcome",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["purge_duration_seconds"] = Histogram(
            "purge_duration_seconds",
            "PURGE round trip duration in seconds",
            registry=self.registry
        )

        self._metrics["purges_skipped_total"] = Counter(
            "purges_skipped_total",
            "Content changes that did not lead to a purge",
            ["reason"],
            registry=self.registry
        )

        self._metrics["scheduled_purge_runs_total"] = Counter(
            "scheduled_purge_runs_total",
            "Scheduled purge ticks",
            ["status"],
            registry=self.registry
        )

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_purge(self, outcome: str, duration: Optional[float] = None):
        """Record a purge attempt and, when it hit the network, its duration."""
        self._metrics["purge_requests_total"].labels(outcome=outcome).inc()
        if duration is not None:
            self._metrics["purge_duration_seconds"].observe(duration)

    def record_skipped_purge(self, reason: str):
        """Record a content change that was filtered out."""
        self._metrics["purges_skipped_total"].labels(reason=reason).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def sample(self, metric_name: str, **labels) -> float:
        """Read the current value of a counter sample (0.0 when absent)."""
        value = self.registry.get_sample_value(metric_name, labels or None)
        return value or 0.0


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
