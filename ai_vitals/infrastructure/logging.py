"""
Structured logging for ai-vitals.

Every log line of a probe attempt carries the monitor name and series id
through ``LogContext``. Output is a console renderer when attached to a
terminal or in text mode, and one JSON object per line in json mode.

Credentials never reach the output: keys that look like secrets are
redacted and userinfo is stripped from URLs.
"""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = ("api_key", "authorization", "password", "secret", "token")

_URL_USERINFO = re.compile(r"(?P<scheme>https?://)[^/@\s]+@")

_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.internal", "asyncio")


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _is_sensitive(k) else _scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(item) for item in value]
    if isinstance(value, str) and "@" in value:
        return _URL_USERINFO.sub(r"\g<scheme>" + REDACTED + "@", value)
    return value


def censor_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact secret-looking keys and URL credentials, recursively."""
    return _scrub(event_dict)


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" or "text"
    """
    level = logging.getLevelName(log_level.upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        censor_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


class LogContext:
    """
    Bind fields to every log line emitted inside the block.

    Usage:
        with LogContext(monitor="llm-chat", series="1700000000-42"):
            logger.info("Sending start ping to Cronitor")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}
