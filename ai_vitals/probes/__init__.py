"""
Probe Module.

Provides:
- base: ProbeResult variants and the Probe interface
- endpoint: chat completion / embedding request probe
- collection: external collection runner probe
"""

from ai_vitals.infrastructure.config import MonitorSettings, ProbeKind
from ai_vitals.probes.base import (
    HttpError,
    NetworkError,
    Probe,
    ProbeResult,
    Success,
    Timeout,
)
from ai_vitals.probes.collection import CollectionProbe, RUNNER_FAILURE_CODE
from ai_vitals.probes.endpoint import EndpointProbe


def build_probe(settings: MonitorSettings) -> Probe:
    """Create the probe matching the configured kind."""
    if settings.endpoint_type == ProbeKind.COLLECTION:
        return CollectionProbe(settings)
    return EndpointProbe(settings)


__all__ = [
    "Probe",
    "ProbeResult",
    "Success",
    "HttpError",
    "Timeout",
    "NetworkError",
    "EndpointProbe",
    "CollectionProbe",
    "RUNNER_FAILURE_CODE",
    "build_probe",
]
