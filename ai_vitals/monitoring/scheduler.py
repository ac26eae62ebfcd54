"""
Continuous-mode scheduler.

Repeats monitor attempts on a fixed interval measured from the start of
one attempt to the start of the next. Attempts never overlap; an attempt
that overruns the interval is followed immediately by the next one.

A shutdown request interrupts the wait between attempts, never the
attempt itself, so the terminal ping of an in-flight attempt is always
sent before the loop exits.
"""

import asyncio
from typing import Callable

from ai_vitals.exporters import new_series_id
from ai_vitals.infrastructure.graceful_shutdown import GracefulShutdown
from ai_vitals.infrastructure.logging import get_logger
from ai_vitals.infrastructure.metrics import metrics
from ai_vitals.monitoring.monitor import EXIT_SUCCESS, Monitor

logger = get_logger(__name__)


class IntervalScheduler:
    """
    Runs ``monitor.run_once`` forever (or for ``max_iterations``).

    Each attempt gets its own series id; the first reuses the id the
    exporter was constructed with.
    """

    def __init__(
        self,
        monitor: Monitor,
        interval_seconds: float,
        shutdown: GracefulShutdown,
        max_iterations: int | None = None,
        series_factory: Callable[[], str] = new_series_id,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.monitor = monitor
        self.interval = interval_seconds
        self.shutdown = shutdown
        self.max_iterations = max_iterations
        self.series_factory = series_factory

        self.iterations = 0
        self.failed_iterations = 0
        self.last_exit_code: int | None = None

    def _next_series(self) -> str:
        if self.iterations == 0:
            return self.monitor.exporter.series_id
        return self.series_factory()

    async def run(self) -> int:
        """
        Run until shutdown is requested or the iteration limit is reached.

        Returns:
            EXIT_SUCCESS on a clean stop
        """
        loop = asyncio.get_running_loop()
        logger.info("Continuous mode started", interval_seconds=self.interval)

        while not self.shutdown.is_shutting_down:
            started = loop.time()
            series = self._next_series()
            self.iterations += 1
            metrics.increment_iteration()

            try:
                self.last_exit_code = await self.monitor.run_once(series_id=series)
                logger.info(
                    "Iteration finished",
                    iteration=self.iterations,
                    exit_code=self.last_exit_code,
                )
            except Exception:
                self.failed_iterations += 1
                metrics.record_iteration_error()
                logger.exception("Iteration failed", iteration=self.iterations)

            if self.max_iterations is not None and self.iterations >= self.max_iterations:
                logger.info("Iteration limit reached", iterations=self.iterations)
                break

            remaining = self.interval - (loop.time() - started)
            if remaining <= 0:
                logger.warning(
                    "Attempt overran interval, starting next immediately",
                    overrun_seconds=round(-remaining, 3),
                )
            if await self.shutdown.wait(remaining):
                break

        logger.info(
            "Continuous mode stopped",
            iterations=self.iterations,
            failed_iterations=self.failed_iterations,
            reason=self.shutdown.reason or "iteration_limit",
        )
        return EXIT_SUCCESS
