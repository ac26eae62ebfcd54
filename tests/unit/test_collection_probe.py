"""Tests for the collection runner probe."""

import asyncio
import os
import stat

import pytest

from ai_vitals.infrastructure.config import ConfigurationError
from ai_vitals.probes import (
    CollectionProbe,
    HttpError,
    RUNNER_FAILURE_CODE,
    Success,
    build_probe,
)


def _runner(tmp_path, body: str) -> str:
    """Write an executable shell script standing in for newman."""
    path = tmp_path / "fake-newman"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def collection_settings(make_settings):
    def _make(**overrides):
        values = {
            "endpoint_type": "collection",
            "collection_path": "checks.postman_collection.json",
            "server_url": "",
            "model_name": "",
            "timeout_seconds": 2.5,
        }
        values.update(overrides)
        return make_settings(**values)

    return _make


class TestCommand:
    def test_minimal_command(self, collection_settings):
        probe = CollectionProbe(collection_settings())

        assert probe.build_command() == [
            "newman",
            "run",
            "checks.postman_collection.json",
            "--timeout-request",
            "2500",
        ]

    def test_optional_arguments(self, collection_settings):
        probe = CollectionProbe(collection_settings(
            environment_path="prod.postman_environment.json",
            delay_request_ms=250,
            collection_runner="/usr/local/bin/newman",
        ))

        assert probe.build_command() == [
            "/usr/local/bin/newman",
            "run",
            "checks.postman_collection.json",
            "--timeout-request",
            "2500",
            "-e",
            "prod.postman_environment.json",
            "--delay-request",
            "250",
        ]

    def test_target_is_collection_path(self, collection_settings):
        assert CollectionProbe(collection_settings()).target == "checks.postman_collection.json"


class TestConstruction:
    def test_rejects_endpoint_kinds(self, make_settings):
        with pytest.raises(ConfigurationError):
            CollectionProbe(make_settings(endpoint_type="chat"))

    def test_factory_picks_collection_probe(self, collection_settings):
        assert isinstance(build_probe(collection_settings()), CollectionProbe)


class TestProbe:
    @pytest.mark.asyncio
    async def test_exit_zero_is_success(self, tmp_path, collection_settings):
        runner = _runner(tmp_path, 'echo "all requests passed"\nexit 0')
        probe = CollectionProbe(collection_settings(collection_runner=runner))

        assert await probe.probe() == Success()

    @pytest.mark.asyncio
    async def test_arguments_reach_the_runner(self, tmp_path, collection_settings):
        args_file = tmp_path / "args.txt"
        runner = _runner(tmp_path, f'echo "$@" > {args_file}\nexit 0')
        probe = CollectionProbe(collection_settings(collection_runner=runner, delay_request_ms=5))

        await probe.probe()

        assert args_file.read_text().split() == [
            "run", "checks.postman_collection.json",
            "--timeout-request", "2500",
            "--delay-request", "5",
        ]

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_sentinel_http_error(self, tmp_path, collection_settings):
        runner = _runner(tmp_path, 'echo "ESOCKETTIMEDOUT" >&2\nexit 3')
        probe = CollectionProbe(collection_settings(collection_runner=runner))

        assert await probe.probe() == HttpError(RUNNER_FAILURE_CODE)

    @pytest.mark.asyncio
    async def test_missing_runner_is_sentinel_http_error(self, tmp_path, collection_settings):
        probe = CollectionProbe(collection_settings(collection_runner=str(tmp_path / "missing")))

        assert await probe.probe() == HttpError(1)

    @pytest.mark.asyncio
    async def test_runner_past_deadline_is_killed(self, tmp_path, collection_settings):
        pid_file = tmp_path / "runner.pid"
        runner = _runner(tmp_path, f"echo $$ > {pid_file}\nexec sleep 30")
        probe = CollectionProbe(collection_settings(
            collection_runner=runner,
            collection_deadline_seconds=0.3,
        ))

        result = await asyncio.wait_for(probe.probe(), timeout=5)

        assert result == HttpError(RUNNER_FAILURE_CODE)
        with pytest.raises(ProcessLookupError):
            os.kill(int(pid_file.read_text()), 0)

    @pytest.mark.asyncio
    async def test_cancelled_run_kills_runner(self, tmp_path, collection_settings):
        pid_file = tmp_path / "runner.pid"
        runner = _runner(tmp_path, f"echo $$ > {pid_file}\nexec sleep 30")
        probe = CollectionProbe(collection_settings(collection_runner=runner))

        task = asyncio.create_task(probe.probe())
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        with pytest.raises(ProcessLookupError):
            os.kill(int(pid_file.read_text()), 0)
