"""
Shared metrics configuration for 254Carbon Access Layer.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its own ``CollectorRegistry`` unless one is passed in,
    so several service instances can live in one process (tests, workers).
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
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

        if self.service_name == "sso":
            self._setup_sso_metrics()

    def _setup_sso_metrics(self):
        """Set up single sign-on metrics."""
        self._metrics["sso_handoffs_total"] = Counter(
            "sso_handoffs_total",
            "Total SSO hand-off attempts",
            ["path", "outcome"],
            registry=self.registry
        )

        self._metrics["sso_login_keys_issued_total"] = Counter(
            "sso_login_keys_issued_total",
            "Total external login keys issued",
            registry=self.registry
        )

        self._metrics["sso_active_login_keys"] = Gauge(
            "sso_active_login_keys",
            "Number of login keys currently held in the registry",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

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

    def record_handoff(self, path: str, outcome: str):
        """Record the outcome of one SSO hand-off chain step."""
        self._metrics["sso_handoffs_total"].labels(path=path, outcome=outcome).inc()

    def record_login_key_issued(self, active_keys: int):
        """Record a freshly issued login key and the registry size after it."""
        with self._lock:
            self._metrics["sso_login_keys_issued_total"].inc()
            self._metrics["sso_active_login_keys"].set(active_keys)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
