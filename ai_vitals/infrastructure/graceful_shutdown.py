"""
Shutdown coordination for continuous mode.

SIGTERM and SIGINT only flip the shutdown event. The scheduler checks it
between probe attempts, so an attempt that is already running always
finishes and sends its terminal ping. Afterwards the registered closers
(HTTP sessions, subprocess probes) run in priority order.

Usage:
    shutdown = GracefulShutdown()
    shutdown.install_signal_handlers()
    shutdown.register_cleanup("monitor", monitor.close)

    while not await shutdown.wait(interval):
        await monitor.run_once()
    await shutdown.run_cleanup()
"""

import asyncio
import signal
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from ai_vitals.infrastructure.logging import get_logger

logger = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownPhase(Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    CLEANUP = "cleanup"
    COMPLETE = "complete"


@dataclass
class CleanupTask:
    name: str
    handler: Callable[[], Awaitable[None]]
    priority: int  # lower runs first
    timeout_seconds: float


class GracefulShutdown:
    """Shutdown event, interruptible wait and ordered cleanup."""

    def __init__(self):
        self._phase = ShutdownPhase.RUNNING
        self._reason = ""
        self._requested_at: float | None = None
        self._event = asyncio.Event()
        self._tasks: list[CleanupTask] = []
        self._installed = False

    @property
    def phase(self) -> ShutdownPhase:
        return self._phase

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def is_shutting_down(self) -> bool:
        return self._phase is not ShutdownPhase.RUNNING

    def register_cleanup(
        self,
        name: str,
        handler: Callable[[], Awaitable[None]],
        priority: int = 50,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._tasks.append(CleanupTask(name, handler, priority, timeout_seconds))
        logger.debug("Cleanup registered", task=name, priority=priority)

    def install_signal_handlers(self) -> None:
        """Route SIGTERM/SIGINT to ``request_shutdown`` on the running loop."""
        if self._installed:
            return

        loop = asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except NotImplementedError:
                # Loops without add_signal_handler (Windows proactor)
                signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(
                    self._on_signal, signal.Signals(signum)
                ))

        self._installed = True
        logger.debug("Signal handlers installed", signals=[s.name for s in HANDLED_SIGNALS])

    def _on_signal(self, sig: signal.Signals) -> None:
        self.request_shutdown(f"signal_{sig.name}")

    def request_shutdown(self, reason: str = "requested") -> None:
        """Stop scheduling new attempts. The first reason wins."""
        if self.is_shutting_down:
            logger.info("Shutdown already requested", reason=self._reason, ignored=reason)
            return

        self._phase = ShutdownPhase.STOPPING
        self._reason = reason
        self._requested_at = time.monotonic()
        self._event.set()
        logger.warning("Shutdown requested, finishing current attempt", reason=reason)

    async def wait(self, timeout: float) -> bool:
        """
        Sleep for up to ``timeout`` seconds, waking early on shutdown.

        Returns:
            True if shutdown was requested
        """
        if timeout > 0 and not self._event.is_set():
            try:
                await asyncio.wait_for(self._event.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
        return self._event.is_set()

    async def run_cleanup(self) -> None:
        """Run registered closers once, lowest priority first."""
        if self._phase is ShutdownPhase.COMPLETE:
            return
        self._phase = ShutdownPhase.CLEANUP

        for task in sorted(self._tasks, key=lambda t: t.priority):
            try:
                await asyncio.wait_for(task.handler(), timeout=task.timeout_seconds)
                logger.debug("Cleanup finished", task=task.name)
            except asyncio.TimeoutError:
                logger.error("Cleanup timed out", task=task.name, timeout_seconds=task.timeout_seconds)
            except Exception as e:
                logger.error("Cleanup failed", task=task.name, error=str(e))

        self._phase = ShutdownPhase.COMPLETE
        if self._requested_at is not None:
            logger.info(
                "Shutdown complete",
                reason=self._reason,
                elapsed_seconds=round(time.monotonic() - self._requested_at, 2),
            )

    def get_status(self) -> dict[str, Any]:
        return {
            "phase": self._phase.value,
            "is_shutting_down": self.is_shutting_down,
            "reason": self._reason,
            "cleanup_tasks_registered": len(self._tasks),
        }
