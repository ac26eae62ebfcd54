"""
Exporter Module.

Provides:
- base: PingState, PingReceipt and the Exporter interface
- cronitor: Cronitor telemetry pings and monitor upserts
- monitor_definition: alerting settings -> Cronitor monitor document
"""

from ai_vitals.exporters.base import (
    Exporter,
    PingReceipt,
    PingState,
    new_series_id,
)
from ai_vitals.exporters.cronitor import CronitorExporter
from ai_vitals.exporters.monitor_definition import (
    build_monitor_definition,
    build_monitor_update_payload,
)

__all__ = [
    "Exporter",
    "PingReceipt",
    "PingState",
    "new_series_id",
    "CronitorExporter",
    "build_monitor_definition",
    "build_monitor_update_payload",
]
