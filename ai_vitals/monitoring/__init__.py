"""
Monitoring Module.

Provides:
- monitor: single-attempt orchestration and result classification
- scheduler: fixed-interval continuous mode
"""

from ai_vitals.monitoring.monitor import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    EXIT_TIMEOUT,
    Monitor,
    Verdict,
    classify,
)
from ai_vitals.monitoring.scheduler import IntervalScheduler

__all__ = [
    "Monitor",
    "Verdict",
    "classify",
    "IntervalScheduler",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
    "EXIT_TIMEOUT",
]
