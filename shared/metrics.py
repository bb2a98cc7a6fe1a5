"""
Shared metrics configuration for the enterprise auth service.
"""

from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry so that several application instances
    (tests create many) never collide on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()
        self._setup_exchange_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""
        Info("service", "Service information", registry=self.registry).info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status_code"])
        self._histogram("http_request_duration_seconds", "HTTP request duration in seconds", ["method", "endpoint"])
        self._counter("health_check_total", "Total health check requests", ["status"])
        self._counter("errors_total", "Total errors by error code", ["error_type", "service"])
        self._counter("business_events_total", "Total business events", ["event_type", "service"])

    def _setup_exchange_metrics(self):
        """Gateway exchange and directory metrics."""
        self._histogram(
            "gateway_request_duration_seconds",
            "Verification gateway round trip in seconds",
            ["outcome"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )
        self._gauge("directory_entries", "Entries in the loaded directory snapshot", ["name"])

    def _counter(self, name: str, documentation: str, labels):
        self._metrics[name] = Counter(name, documentation, labels, registry=self.registry)

    def _histogram(self, name: str, documentation: str, labels, **kwargs):
        self._metrics[name] = Histogram(name, documentation, labels, registry=self.registry, **kwargs)

    def _gauge(self, name: str, documentation: str, labels):
        self._metrics[name] = Gauge(name, documentation, labels, registry=self.registry)

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
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record an error response by its error code."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_business_event(self, event_type: str, service: Optional[str] = None):
        """Record business event metrics."""
        service_name = service or self.service_name
        self._metrics["business_events_total"].labels(event_type=event_type, service=service_name).inc()

    def observe_gateway_request(self, outcome: str, duration: float):
        """Record one gateway round trip; outcome is ``ok`` or ``error``."""
        self._metrics["gateway_request_duration_seconds"].labels(outcome=outcome).observe(duration)

    def set_directory_size(self, name: str, entries: int):
        self._metrics["directory_entries"].labels(name=name).set(entries)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
