"""Shared fixtures: settings factory and a local fake backend."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from ai_vitals.infrastructure.config import MonitorSettings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep the developer's environment out of MonitorSettings."""
    for name in MonitorSettings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def make_settings():
    """Build settings with sensible test defaults."""

    def _make(**overrides: Any) -> MonitorSettings:
        values: dict[str, Any] = {
            "cronitor_base_url": "https://cronitor.link",
            "monitor_name": "test-monitor",
            "server_url": "https://api.openai.com",
            "endpoint_type": "chat",
            "model_name": "gpt-4",
            "app_env": "test",
            "timeout_seconds": 10,
            "schedule": "*/5 * * * *",
            "consecutive_failures_for_alert": 1,
            "consecutive_missing_for_alert": 1,
            "min_success_freq": 60,
        }
        values.update(overrides)
        return MonitorSettings(**values)

    return _make


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: dict[str, str]
    body: Any = None
    authorization: str | None = None


@dataclass
class FakeBackend:
    """
    One local server playing both roles: the OpenAI-style endpoint and
    the Cronitor telemetry/monitor APIs.
    """

    llm_status: int = 200
    llm_delay: float = 0.0
    ping_status: int = 200
    update_status: int = 200
    base_url: str = ""
    requests: list[RecordedRequest] = field(default_factory=list)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v1/chat/completions", self._llm)
        app.router.add_post("/v1/embeddings", self._llm)
        app.router.add_put("/api/monitors", self._update)
        app.router.add_get("/{monitor}", self._ping)
        return app

    async def _record(self, request: web.Request, with_body: bool) -> None:
        body = await request.json() if with_body and request.can_read_body else None
        self.requests.append(RecordedRequest(
            method=request.method,
            path=request.path,
            query=dict(request.query),
            body=body,
            authorization=request.headers.get("Authorization"),
        ))

    async def _llm(self, request: web.Request) -> web.Response:
        await self._record(request, with_body=True)
        if self.llm_delay:
            await asyncio.sleep(self.llm_delay)
        if self.llm_status >= 400:
            return web.json_response({"error": {"message": "Server error"}}, status=self.llm_status)
        return web.json_response(
            {"choices": [{"message": {"role": "assistant", "content": "OK"}}]},
            status=self.llm_status,
        )

    async def _ping(self, request: web.Request) -> web.Response:
        await self._record(request, with_body=False)
        return web.Response(text="ok" if self.ping_status < 400 else "bad ping", status=self.ping_status)

    async def _update(self, request: web.Request) -> web.Response:
        await self._record(request, with_body=True)
        return web.json_response({}, status=self.update_status)

    @property
    def pings(self) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def updates(self) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == "PUT"]

    @property
    def probes(self) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == "POST"]


@pytest_asyncio.fixture
async def backend():
    fake = FakeBackend()
    server = TestServer(fake.build_app(), host="127.0.0.1")
    await server.start_server()
    fake.base_url = f"http://127.0.0.1:{server.port}"
    yield fake
    await server.close()
