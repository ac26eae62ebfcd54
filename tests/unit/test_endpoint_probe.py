"""Tests for the OpenAI-compatible endpoint probe."""

import pytest

from ai_vitals.infrastructure.config import ConfigurationError
from ai_vitals.probes import (
    EndpointProbe,
    HttpError,
    NetworkError,
    Success,
    Timeout,
    build_probe,
)


class TestRequestBuilding:
    """URL and payload selection by probe kind."""

    def test_chat_endpoint_url(self, make_settings):
        probe = EndpointProbe(make_settings(endpoint_type="chat", server_url="https://api.openai.com"))
        assert probe.build_endpoint_url() == "https://api.openai.com/v1/chat/completions"

    def test_embedding_endpoint_url(self, make_settings):
        probe = EndpointProbe(make_settings(endpoint_type="embedding", server_url="https://api.example.com"))
        assert probe.build_endpoint_url() == "https://api.example.com/v1/embeddings"

    def test_trailing_slash_is_ignored(self, make_settings):
        probe = EndpointProbe(make_settings(server_url="https://api.example.com/"))
        assert probe.build_endpoint_url() == "https://api.example.com/v1/chat/completions"

    def test_chat_payload(self, make_settings):
        probe = EndpointProbe(make_settings(endpoint_type="chat", model_name="a-piece-of-cheese"))

        assert probe.build_payload() == {
            "model": "a-piece-of-cheese",
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
            "priority": 100,
        }

    def test_embedding_payload(self, make_settings):
        probe = EndpointProbe(make_settings(endpoint_type="embedding", model_name="text-embedding-ada-002"))

        assert probe.build_payload() == {
            "model": "text-embedding-ada-002",
            "input": "test",
            "priority": 100,
        }


class TestConstruction:
    def test_rejects_collection_kind(self, make_settings):
        settings = make_settings(endpoint_type="collection", collection_path="c.json")
        with pytest.raises(ConfigurationError):
            EndpointProbe(settings)

    def test_rejects_invalid_timeout(self, make_settings):
        settings = make_settings().model_copy(update={"timeout_seconds": 0})
        with pytest.raises(ConfigurationError):
            EndpointProbe(settings)

    def test_factory_picks_endpoint_probe(self, make_settings):
        assert isinstance(build_probe(make_settings(endpoint_type="embedding")), EndpointProbe)


class TestProbe:
    """Classification against a local server."""

    @pytest.mark.asyncio
    async def test_successful_response(self, backend, make_settings):
        probe = EndpointProbe(make_settings(server_url=backend.base_url, model_name="gpt-4"))
        try:
            result = await probe.probe()
        finally:
            await probe.close()

        assert result == Success()
        assert backend.probes[0].path == "/v1/chat/completions"
        assert backend.probes[0].body == {
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
            "priority": 100,
        }

    @pytest.mark.asyncio
    async def test_http_error_response(self, backend, make_settings):
        backend.llm_status = 420
        probe = EndpointProbe(make_settings(
            server_url=backend.base_url,
            endpoint_type="embedding",
            model_name="text-embedding-ada-002",
        ))
        try:
            result = await probe.probe()
        finally:
            await probe.close()

        assert result == HttpError(420)
        assert backend.probes[0].path == "/v1/embeddings"

    @pytest.mark.asyncio
    async def test_timeout(self, backend, make_settings):
        backend.llm_delay = 1.0
        probe = EndpointProbe(make_settings(server_url=backend.base_url, timeout_seconds=0.2))
        try:
            result = await probe.probe()
        finally:
            await probe.close()

        assert result == Timeout()

    @pytest.mark.asyncio
    async def test_network_error(self, make_settings, unused_tcp_port):
        probe = EndpointProbe(make_settings(server_url=f"http://127.0.0.1:{unused_tcp_port}"))
        try:
            result = await probe.probe()
        finally:
            await probe.close()

        assert isinstance(result, NetworkError)
        assert result.description.startswith("ClientConnectorError: ")

    @pytest.mark.asyncio
    async def test_invalid_url_names_the_failure(self, make_settings):
        probe = EndpointProbe(make_settings(server_url="http://localhost:99999"))
        try:
            result = await probe.probe()
        finally:
            await probe.close()

        assert isinstance(result, NetworkError)
        cause, _, detail = result.description.partition(": ")
        assert cause.endswith("Error")
        assert "99999" in detail
