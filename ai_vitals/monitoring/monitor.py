"""
Monitor orchestrator.

Drives one probe attempt through its ping lifecycle:

    ping(run) -> probe() -> classify -> ping(complete|fail) -> exit code

The Run ping always precedes exactly one terminal ping, and both carry
the same series id. Notification failures never influence the exit code.
"""

import time
from dataclasses import dataclass

from ai_vitals.exporters import CronitorExporter, Exporter, PingState
from ai_vitals.infrastructure.config import MonitorSettings
from ai_vitals.infrastructure.logging import LogContext, get_logger
from ai_vitals.infrastructure.metrics import metrics
from ai_vitals.probes import (
    HttpError,
    NetworkError,
    Probe,
    ProbeResult,
    Success,
    Timeout,
    build_probe,
)

logger = get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class Verdict:
    """Terminal ping and process exit code for a probe result."""
    state: PingState
    status_code: int
    message: str | None
    exit_code: int


def classify(result: ProbeResult) -> Verdict:
    """Map a probe result onto its terminal ping and exit code."""
    if isinstance(result, Success):
        return Verdict(PingState.COMPLETE, 0, None, EXIT_SUCCESS)
    if isinstance(result, HttpError):
        return Verdict(PingState.FAIL, result.status_code, None, EXIT_FAILURE)
    if isinstance(result, Timeout):
        return Verdict(PingState.FAIL, EXIT_TIMEOUT, "Request timeout", EXIT_TIMEOUT)
    if isinstance(result, NetworkError):
        return Verdict(
            PingState.FAIL, 1, f"Network error: {result.description}", EXIT_FAILURE
        )
    raise TypeError(f"Unknown probe result: {result!r}")


class Monitor:
    """
    Composes one probe and one exporter.

    Usage:
        monitor = Monitor(settings)
        exit_code = await monitor.run_once()
        await monitor.close()
    """

    def __init__(
        self,
        settings: MonitorSettings,
        probe: Probe | None = None,
        exporter: Exporter | None = None,
    ):
        self.settings = settings
        self.probe = probe or build_probe(settings)
        self.exporter = exporter or CronitorExporter(settings)

    async def close(self) -> None:
        await self.probe.close()
        await self.exporter.close()

    async def run_once(self, series_id: str | None = None) -> int:
        """Run a single probe attempt and return its exit code."""
        series = series_id or self.exporter.series_id

        with LogContext(monitor=self.settings.monitor_name, series=series):
            logger.info("Sending start ping to Cronitor")
            await self.exporter.ping(PingState.RUN, 0, None, series_id=series)

            started = time.monotonic()
            try:
                result = await self.probe.probe()
            except Exception as e:
                logger.exception("Probe raised unexpectedly")
                result = NetworkError(str(e) or type(e).__name__)
            duration = time.monotonic() - started

            verdict = classify(result)
            metrics.record_probe(
                self.settings.monitor_name,
                self.probe.kind.value,
                result.outcome,
                duration,
            )
            metrics.record_exit_code(self.settings.monitor_name, verdict.exit_code)

            logger.info(
                "Sending terminal ping to Cronitor",
                state=verdict.state.value,
                status_code=verdict.status_code,
            )
            await self.exporter.ping(
                verdict.state, verdict.status_code, verdict.message, series_id=series
            )

            _log_verdict(result, self.probe.target, duration)
            return verdict.exit_code


def _log_verdict(result: ProbeResult, target: str, duration: float) -> None:
    duration_ms = round(duration * 1000)
    if isinstance(result, Success):
        logger.info("SUCCESS: endpoint responded successfully", target=target, duration_ms=duration_ms)
    elif isinstance(result, HttpError):
        logger.error("FAILURE: endpoint failed", target=target, status_code=result.status_code)
    elif isinstance(result, Timeout):
        logger.error("TIMEOUT: request timed out", target=target, duration_ms=duration_ms)
    else:
        logger.error("FAILURE: network error", target=target, error=result.description)
