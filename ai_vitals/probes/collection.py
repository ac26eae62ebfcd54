"""
Collection runner probe.

Runs an external request-collection runner (newman by default) against a
declarative test collection and interprets its exit status. Timeouts and
network failures are not distinguished from other failures: every
unsuccessful run is reported as HttpError(RUNNER_FAILURE_CODE) and the
details live only in the captured output.

The runner never outlives its probe: it is killed when the whole run
exceeds collection_deadline_seconds or when the probe is cancelled.
"""

import asyncio

from ai_vitals.infrastructure.config import MonitorSettings, ProbeKind
from ai_vitals.infrastructure.logging import get_logger
from ai_vitals.probes.base import HttpError, Probe, ProbeResult, Success

logger = get_logger(__name__)

RUNNER_FAILURE_CODE = 1


class CollectionProbe(Probe):
    """Probes by running a request collection through an external runner."""

    kinds = frozenset({ProbeKind.COLLECTION})

    def __init__(self, settings: MonitorSettings):
        super().__init__(settings)
        self.timeout_ms = int(settings.timeout_seconds * 1000)

    @property
    def target(self) -> str:
        return self.settings.collection_path or ""

    def build_command(self) -> list[str]:
        command = [
            self.settings.collection_runner,
            "run",
            self.settings.collection_path or "",
            "--timeout-request",
            str(self.timeout_ms),
        ]
        if self.settings.environment_path:
            command += ["-e", self.settings.environment_path]
        if self.settings.delay_request_ms is not None:
            command += ["--delay-request", str(self.settings.delay_request_ms)]
        return command

    async def probe(self) -> ProbeResult:
        command = self.build_command()
        logger.info("Running collection", command=" ".join(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            logger.error("Collection runner could not be started", error=str(e))
            return HttpError(RUNNER_FAILURE_CODE)

        try:
            output, _ = await asyncio.wait_for(
                process.communicate(), timeout=self.settings.collection_deadline_seconds
            )
        except asyncio.TimeoutError:
            await _kill(process)
            logger.error(
                "Collection runner exceeded deadline, killed",
                pid=process.pid,
                deadline_seconds=self.settings.collection_deadline_seconds,
            )
            return HttpError(RUNNER_FAILURE_CODE)
        except asyncio.CancelledError:
            await _kill(process)
            logger.warning("Collection run cancelled, runner killed", pid=process.pid)
            raise
        except OSError as e:
            await _kill(process)
            logger.error("Collection runner failed", error=str(e))
            return HttpError(RUNNER_FAILURE_CODE)

        text = output.decode("utf-8", "replace") if output else ""
        logger.info("Collection runner output", exit_code=process.returncode, output=text)

        if process.returncode == 0:
            return Success()
        return HttpError(RUNNER_FAILURE_CODE)


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the runner if still alive and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()
