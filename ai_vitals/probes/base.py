"""
Probe abstraction.

A probe performs one health check against its target and classifies the
outcome into exactly one ProbeResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from ai_vitals.infrastructure.config import ConfigurationError, MonitorSettings, ProbeKind


@dataclass(frozen=True)
class Success:
    """Target answered with a 2xx status (or the runner exited 0)."""

    outcome = "success"


@dataclass(frozen=True)
class HttpError:
    """Target answered with a non-success status."""

    status_code: int
    outcome = "http_error"


@dataclass(frozen=True)
class Timeout:
    """The request did not complete within the configured timeout."""

    outcome = "timeout"


@dataclass(frozen=True)
class NetworkError:
    """The transport failed before any response was received."""

    description: str
    outcome = "network_error"


ProbeResult = Union[Success, HttpError, Timeout, NetworkError]


class Probe(ABC):
    """
    Base class for all probes.

    Subclasses declare the probe kinds they handle; constructing a probe for
    any other kind is a configuration error.
    """

    kinds: frozenset[ProbeKind] = frozenset()

    def __init__(self, settings: MonitorSettings):
        if settings.endpoint_type not in self.kinds:
            raise ConfigurationError(
                f"{type(self).__name__} cannot handle probe kind "
                f"'{settings.endpoint_type.value}'"
            )
        if settings.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {settings.timeout_seconds}"
            )
        self.settings = settings

    @property
    def kind(self) -> ProbeKind:
        return self.settings.endpoint_type

    @property
    def target(self) -> str:
        """Human readable description of what is being probed."""
        return self.settings.server_url

    @abstractmethod
    async def probe(self) -> ProbeResult:
        """Perform one health check and classify it."""

    async def close(self) -> None:
        """Release any resources held by the probe."""
