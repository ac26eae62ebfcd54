"""
Prometheus metrics for observability.

Exposes metrics on /metrics endpoint for Prometheus scraping when a
metrics port is configured (mostly useful in continuous mode).

Metrics Categories:
- Probes: outcomes and round-trip duration
- Pings: delivery to Cronitor by state
- Monitor definition: upsert outcomes
- Scheduler: iterations and iteration errors
"""

import time
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)

from ai_vitals.infrastructure.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Probe Metrics
# =============================================================================

PROBES_TOTAL = Counter(
    "ai_vitals_probes_total",
    "Probe attempts by kind and classified outcome",
    ["monitor", "kind", "outcome"],
)

PROBE_DURATION = Histogram(
    "ai_vitals_probe_duration_seconds",
    "Probe round-trip duration",
    ["monitor", "kind"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

LAST_EXIT_CODE = Gauge(
    "ai_vitals_last_exit_code",
    "Exit code of the most recent probe attempt",
    ["monitor"],
)

# =============================================================================
# Notification Metrics
# =============================================================================

PINGS_TOTAL = Counter(
    "ai_vitals_pings_total",
    "Cronitor pings by state and delivery outcome",
    ["monitor", "state", "delivered"],
)

MONITOR_UPDATES_TOTAL = Counter(
    "ai_vitals_monitor_updates_total",
    "Monitor definition upserts by outcome",
    ["monitor", "outcome"],
)

# =============================================================================
# Scheduler Metrics
# =============================================================================

ITERATION_COUNT = Counter(
    "ai_vitals_iterations_total",
    "Total scheduler iterations",
)

ITERATION_ERRORS = Counter(
    "ai_vitals_iteration_errors_total",
    "Scheduler iterations that raised unexpectedly",
)

UPTIME_SECONDS = Gauge(
    "ai_vitals_uptime_seconds",
    "Process uptime in seconds",
)

APP_INFO = Info(
    "ai_vitals",
    "Monitor information",
)


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics.

    Usage:
        collector = MetricsCollector()
        collector.start_server(port=9090)

        collector.record_probe("my-model", "chat", "success", 0.42)
        collector.record_ping("my-model", "run", delivered=True)
    """

    def __init__(self):
        self._start_time = time.time()

    def start_server(self, port: int = 9090) -> bool:
        """Start the Prometheus metrics HTTP server."""
        try:
            start_http_server(port)
            logger.info("Metrics server started", port=port)
            return True
        except OSError as e:
            logger.error("Failed to start metrics server", port=port, error=str(e))
            return False

    def record_probe(
        self,
        monitor: str,
        kind: str,
        outcome: str,
        duration_seconds: float,
    ) -> None:
        """Record a classified probe attempt."""
        PROBES_TOTAL.labels(monitor=monitor, kind=kind, outcome=outcome).inc()
        PROBE_DURATION.labels(monitor=monitor, kind=kind).observe(duration_seconds)

    def record_exit_code(self, monitor: str, exit_code: int) -> None:
        LAST_EXIT_CODE.labels(monitor=monitor).set(exit_code)

    def record_ping(self, monitor: str, state: str, delivered: bool) -> None:
        """Record a ping delivery attempt."""
        PINGS_TOTAL.labels(
            monitor=monitor, state=state, delivered=str(delivered).lower()
        ).inc()

    def record_monitor_update(self, monitor: str, outcome: str) -> None:
        MONITOR_UPDATES_TOTAL.labels(monitor=monitor, outcome=outcome).inc()

    def increment_iteration(self) -> None:
        """Increment iteration counter."""
        ITERATION_COUNT.inc()
        UPTIME_SECONDS.set(time.time() - self._start_time)

    def record_iteration_error(self) -> None:
        ITERATION_ERRORS.inc()

    def set_info(self, version: str, environment: str, kind: str) -> None:
        """Set info labels."""
        APP_INFO.info({
            "version": version,
            "environment": environment,
            "kind": kind,
        })


# Pre-instantiated collector
metrics = MetricsCollector()
