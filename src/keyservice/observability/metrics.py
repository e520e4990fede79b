"""Prometheus metrics for the key service.

Provides ``KeyServiceMetrics``, a small facade over the counters and
histograms the HTTP and RPC surfaces expose for scraping.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class KeyServiceMetrics:
    """Prometheus metrics for credential operations.

    Metrics exposed:

    * ``keyservice_operations_total``: counter labelled by operation,
      principal type and resulting status
    * ``keyservice_request_duration_seconds``: histogram per surface and
      method

    Args:
        registry: Registry to register with. A private registry is created
            when omitted, so several instances can coexist in one process.
        prefix: Metric name prefix.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        prefix: str = "keyservice",
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.operations_total = Counter(
            f"{prefix}_operations_total",
            "Credential operations by outcome",
            ["operation", "principal_type", "status"],
            registry=self.registry,
        )
        self.request_duration_seconds = Histogram(
            f"{prefix}_request_duration_seconds",
            "Request handling time in seconds",
            ["surface", "method"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=self.registry,
        )

    def record_operation(self, operation: str, principal_type: str, status: str) -> None:
        """Count one completed operation."""
        self.operations_total.labels(
            operation=operation,
            principal_type=principal_type,
            status=status,
        ).inc()

    def observe_request(self, surface: str, method: str, seconds: float) -> None:
        """Record how long a request took."""
        self.request_duration_seconds.labels(surface=surface, method=method).observe(seconds)

    def render(self) -> tuple[bytes, str]:
        """Return the exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
