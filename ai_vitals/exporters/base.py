"""
Exporter abstraction.

An exporter pushes probe lifecycle pings to a monitoring backend. Delivery
is best effort: ``ping`` always returns a PingReceipt and never raises.
"""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class PingState(Enum):
    """Lifecycle point of a probe attempt."""
    RUN = "run"
    COMPLETE = "complete"
    FAIL = "fail"


@dataclass(frozen=True)
class PingReceipt:
    """Outcome of a ping delivery attempt."""
    delivered: bool
    status: int | None = None
    error: str | None = None


def new_series_id() -> str:
    """Identifier correlating the Run and terminal pings of one attempt."""
    return f"{int(time.time())}-{os.getpid()}"


class Exporter(ABC):
    """Base class for ping exporters."""

    def __init__(self, series_id: str | None = None):
        self.series_id = series_id or new_series_id()

    @abstractmethod
    async def ping(
        self,
        state: PingState,
        status_code: int = 0,
        message: str | None = None,
        series_id: str | None = None,
    ) -> PingReceipt:
        """Send one lifecycle ping. ``series_id`` defaults to the exporter's own."""

    async def close(self) -> None:
        """Release any resources held by the exporter."""
