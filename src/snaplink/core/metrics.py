"""
Prometheus metrics collection.

In-memory counters on a per-app registry, scraped from /metrics.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """
    Centralized metrics collection for SnapLink.

    Each collector owns its registry so several apps (or tests) can
    coexist in one process.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        # Service info
        self.service_info = Info(
            "snaplink_service",
            "SnapLink service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": "0.1.0",
            "service": "snaplink",
        })

        # Request metrics
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry,
        )

        # Store metrics
        self.links_created_total = Counter(
            "snaplink_links_created_total",
            "Total short URLs created",
            ["custom"],
            registry=self.registry,
        )

        self.link_lookups_total = Counter(
            "snaplink_link_lookups_total",
            "Total shortcode lookups",
            ["outcome"],
            registry=self.registry,
        )

        self.link_clicks_total = Counter(
            "snaplink_link_clicks_total",
            "Total clicks recorded",
            registry=self.registry,
        )

        self.shortcode_collisions_total = Counter(
            "snaplink_shortcode_collisions_total",
            "Generated shortcodes that collided with an existing key",
            registry=self.registry,
        )

        # Telemetry client metrics
        self.token_fetches_total = Counter(
            "snaplink_token_fetches_total",
            "Token fetches against the auth endpoint",
            ["outcome"],
            registry=self.registry,
        )

        self.log_shipments_total = Counter(
            "snaplink_log_shipments_total",
            "Log events handed to the collector",
            ["outcome"],
            registry=self.registry,
        )

        self.collector_request_duration = Histogram(
            "snaplink_collector_request_duration_seconds",
            "Collector request duration in seconds",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

    def record_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration_seconds: float
    ) -> None:
        """Record HTTP request metrics."""
        self.requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self.request_duration.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration_seconds)

    def record_link_created(self, custom: bool) -> None:
        self.links_created_total.labels(custom=str(custom).lower()).inc()

    def record_lookup(self, outcome: str) -> None:
        """Record a lookup outcome: found, not_found, expired."""
        self.link_lookups_total.labels(outcome=outcome).inc()

    def record_click(self) -> None:
        self.link_clicks_total.inc()

    def record_collision(self) -> None:
        self.shortcode_collisions_total.inc()

    def record_token_fetch(self, outcome: str) -> None:
        """Record a token fetch outcome: success, failure."""
        self.token_fetches_total.labels(outcome=outcome).inc()

    def record_shipment(self, outcome: str, duration_seconds: Optional[float] = None) -> None:
        """Record a shipment outcome: sent, failed, dropped."""
        self.log_shipments_total.labels(outcome=outcome).inc()
        if duration_seconds is not None:
            self.collector_request_duration.observe(duration_seconds)
