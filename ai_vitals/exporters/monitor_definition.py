"""
Cronitor monitor definition derived from local alerting settings.

Pure functions: the same settings always produce the same document.
"""

from typing import Any

from ai_vitals.infrastructure.config import MonitorSettings


def duration_assertion(timeout_seconds: float) -> str:
    return f"metric.duration < {timeout_seconds * 2:g}s"


def build_monitor_definition(settings: MonitorSettings) -> dict[str, Any]:
    """
    Map alerting tunables onto a Cronitor job monitor.

    ``schedule_tolerance`` is only meaningful against a schedule, so it is
    emitted only when both the missing-ping count and the schedule are set.
    """
    monitor: dict[str, Any] = {
        "type": "job",
        "key": settings.monitor_name,
    }

    if settings.consecutive_failures_for_alert is not None:
        monitor["failure_tolerance"] = settings.consecutive_failures_for_alert

    if settings.schedule is not None:
        monitor["schedule"] = settings.schedule

        if settings.consecutive_missing_for_alert is not None:
            monitor["schedule_tolerance"] = settings.consecutive_missing_for_alert

    if settings.realert_interval_hours is not None:
        monitor["realert_interval"] = f"every {settings.realert_interval_hours} hours"

    if settings.monitor_group is not None:
        monitor["group"] = settings.monitor_group

    assertions = [duration_assertion(settings.timeout_seconds)]
    if settings.min_success_freq is not None:
        assertions.append(f"job.completes < {settings.min_success_freq} minute")
    monitor["assertions"] = assertions

    return monitor


def build_monitor_update_payload(settings: MonitorSettings) -> dict[str, Any]:
    """Body for ``PUT /api/monitors``."""
    return {"monitors": [build_monitor_definition(settings)]}
