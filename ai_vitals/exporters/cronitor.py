"""
Cronitor telemetry exporter.

Sends lifecycle pings to the Cronitor telemetry API and, on the Run ping,
upserts the monitor definition when an API key is configured.

Ping URL:
    {base}/{monitor}?state=..&series=..&status_code=..&env=..&host=..[&message=..]
"""

import asyncio
import socket
from urllib.parse import quote

import aiohttp
from yarl import URL

from ai_vitals.exporters.base import Exporter, PingReceipt, PingState
from ai_vitals.exporters.monitor_definition import build_monitor_update_payload
from ai_vitals.infrastructure.config import ConfigurationError, MonitorSettings
from ai_vitals.infrastructure.logging import get_logger
from ai_vitals.infrastructure.metrics import metrics

logger = get_logger(__name__)


def _local_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


class CronitorExporter(Exporter):
    """
    Reports probe lifecycle to Cronitor.

    Usage:
        exporter = CronitorExporter(settings)
        await exporter.ping(PingState.RUN)
        await exporter.ping(PingState.FAIL, 124, "Request timeout")
        await exporter.close()
    """

    def __init__(self, settings: MonitorSettings, series_id: str | None = None):
        super().__init__(series_id)
        self.settings = settings
        self.host = _local_hostname()
        try:
            self.timeout = aiohttp.ClientTimeout(total=settings.timeout_seconds)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Cannot build HTTP transport: {e}") from e
        self._session: aiohttp.ClientSession | None = None

        logger.info("Starting job", series=self.series_id, monitor=settings.monitor_name)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def build_ping_url(
        self,
        state: PingState,
        status_code: int = 0,
        message: str | None = None,
        series_id: str | None = None,
    ) -> str:
        base = self.settings.cronitor_base_url.rstrip("/")
        url = (
            f"{base}/{quote(self.settings.monitor_name, safe='')}"
            f"?state={state.value}"
            f"&series={quote(series_id or self.series_id, safe='')}"
            f"&status_code={status_code}"
            f"&env={quote(self.settings.app_env, safe='')}"
            f"&host={quote(self.host, safe='')}"
        )
        if message is not None:
            url += f"&message={quote(message, safe='')}"
        return url

    async def ping(
        self,
        state: PingState,
        status_code: int = 0,
        message: str | None = None,
        series_id: str | None = None,
    ) -> PingReceipt:
        url = self.build_ping_url(state, status_code, message, series_id)
        receipt = await self._send_ping(url)
        metrics.record_ping(self.settings.monitor_name, state.value, receipt.delivered)

        if state == PingState.RUN:
            await self.update_monitor()

        return receipt

    async def _send_ping(self, url: str) -> PingReceipt:
        try:
            session = await self._get_session()
            # Already percent-encoded; stop yarl from normalizing it again
            async with session.get(URL(url, encoded=True)) as resp:
                if 200 <= resp.status < 300:
                    logger.info("Cronitor ping OK", status=resp.status)
                    return PingReceipt(delivered=True, status=resp.status)

                body = await _read_body(resp)
                logger.error("Cronitor ping non-2xx", status=resp.status, body=body)
                return PingReceipt(delivered=False, status=resp.status, error=body)
        except asyncio.TimeoutError:
            logger.error("Failed to send ping to Cronitor", error="timeout")
            return PingReceipt(delivered=False, error="timeout")
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logger.error("Failed to send ping to Cronitor", error=str(e))
            return PingReceipt(delivered=False, error=str(e))

    async def update_monitor(self) -> PingReceipt | None:
        """
        Upsert the monitor definition derived from local settings.

        Returns None when no API key is configured. Failures are logged only.
        """
        api_key = self.settings.cronitor_api_key
        if not api_key:
            logger.info("No api key, skipping monitor enrichment")
            return None

        monitor = self.settings.monitor_name
        payload = build_monitor_update_payload(self.settings)

        try:
            session = await self._get_session()
            async with session.put(
                self.settings.cronitor_api_url,
                json=payload,
                auth=aiohttp.BasicAuth(api_key, ""),
            ) as resp:
                if 200 <= resp.status < 300:
                    logger.info("Monitor enriched", status=resp.status)
                    metrics.record_monitor_update(monitor, "ok")
                    return PingReceipt(delivered=True, status=resp.status)

                body = await _read_body(resp)
                logger.error("Monitor enrichment failed", status=resp.status, body=body)
                metrics.record_monitor_update(monitor, "rejected")
                return PingReceipt(delivered=False, status=resp.status, error=body)
        except asyncio.TimeoutError:
            logger.error("Failed to enrich Cronitor monitor", error="timeout")
            metrics.record_monitor_update(monitor, "error")
            return PingReceipt(delivered=False, error="timeout")
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logger.error("Failed to enrich Cronitor monitor", error=str(e))
            metrics.record_monitor_update(monitor, "error")
            return PingReceipt(delivered=False, error=str(e))


async def _read_body(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except (aiohttp.ClientError, UnicodeDecodeError, asyncio.TimeoutError):
        return ""
