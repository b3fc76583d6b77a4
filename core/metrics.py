# core/metrics.py
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)


class AppMetrics:
    """Process-scoped metrics registry shared by the API tap and /metrics."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, namespace: str = "app", registry: CollectorRegistry = None):
        self.registry = registry or CollectorRegistry(auto_describe=True)

        self.requests = Counter(
            f"{namespace}_requests_total",
            "Total number of API requests",
            registry=self.registry,
        )

        self.errors = Counter(
            f"{namespace}_errors_total",
            "Total errors",
            ["type"],
            registry=self.registry,
        )

        # Default runtime metrics (CPU, memory, fds, GC)
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)

    def render(self) -> bytes:
        return generate_latest(self.registry)


def create_metrics(namespace: str = "app") -> AppMetrics:
    return AppMetrics(namespace=namespace)
