"""
OpenAI-compatible endpoint probe.

Sends a minimal chat completion or embedding request and classifies the
result by transport outcome and HTTP status.
"""

import asyncio
from typing import Any

import aiohttp

from ai_vitals.infrastructure.config import ConfigurationError, MonitorSettings, ProbeKind
from ai_vitals.infrastructure.logging import get_logger
from ai_vitals.probes.base import (
    HttpError,
    NetworkError,
    Probe,
    ProbeResult,
    Success,
    Timeout,
)

logger = get_logger(__name__)

# Scheduler hint for servers that support request priorities
# (larger value = handled later), so probes yield to real traffic.
PROBE_PRIORITY = 100
PROBE_INPUT = "test"


class EndpointProbe(Probe):
    """
    Probes an LLM serving endpoint.

    Usage:
        probe = EndpointProbe(settings)
        result = await probe.probe()
        await probe.close()
    """

    kinds = frozenset({ProbeKind.CHAT, ProbeKind.EMBEDDING})

    def __init__(self, settings: MonitorSettings):
        super().__init__(settings)
        try:
            self.timeout = aiohttp.ClientTimeout(total=settings.timeout_seconds)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Cannot build HTTP transport: {e}") from e
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def build_endpoint_url(self) -> str:
        base = self.settings.server_url.rstrip("/")
        if self.settings.endpoint_type == ProbeKind.EMBEDDING:
            return f"{base}/v1/embeddings"
        return f"{base}/v1/chat/completions"

    def build_payload(self) -> dict[str, Any]:
        if self.settings.endpoint_type == ProbeKind.EMBEDDING:
            return {
                "model": self.settings.model_name,
                "input": PROBE_INPUT,
                "priority": PROBE_PRIORITY,
            }
        return {
            "model": self.settings.model_name,
            "messages": [{"role": "user", "content": PROBE_INPUT}],
            "max_tokens": 1,
            "priority": PROBE_PRIORITY,
        }

    async def probe(self) -> ProbeResult:
        endpoint = self.build_endpoint_url()
        payload = self.build_payload()

        logger.info("Querying endpoint", url=endpoint, model=self.settings.model_name)

        try:
            session = await self._get_session()
            async with session.post(endpoint, json=payload) as resp:
                status = resp.status
                body = await _read_body(resp)
        except asyncio.TimeoutError:
            logger.warning("Request timed out", url=endpoint, timeout_seconds=self.settings.timeout_seconds)
            return Timeout()
        except (aiohttp.ClientError, OSError) as e:
            description = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.warning("Request failed before a response", url=endpoint, error=description)
            return NetworkError(description)

        logger.info("Response received", status=status, body=body)

        if 200 <= status < 300:
            return Success()
        return HttpError(status)


async def _read_body(resp: aiohttp.ClientResponse) -> str:
    """Read the whole body; a failed read degrades to an empty string."""
    try:
        return await resp.text()
    except (aiohttp.ClientError, UnicodeDecodeError, asyncio.TimeoutError):
        return ""
