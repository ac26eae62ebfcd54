"""
ai-vitals - Main Entry Point

Probe an LLM endpoint (or run a request collection) and report status
to Cronitor.

Usage:
    ai-vitals --monitor-name my-model --server-url https://llm --model-name gpt-4
    python -m ai_vitals.main --config config/monitor.yaml --interval-seconds 300

Every flag can also be set through the environment variable of the same
name in upper case (e.g. SERVER_URL, CRONITOR_API_KEY).
"""

# Load .env FIRST so the settings model sees it
from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import sys
from typing import Any

from ai_vitals import __version__
from ai_vitals.infrastructure.config import ConfigurationError, ProbeKind, load_config
from ai_vitals.infrastructure.graceful_shutdown import GracefulShutdown
from ai_vitals.infrastructure.logging import configure_logging, get_logger
from ai_vitals.infrastructure.metrics import metrics
from ai_vitals.monitoring import EXIT_FAILURE, IntervalScheduler, Monitor

SETTING_FLAGS: list[tuple[str, type, str]] = [
    ("cronitor_base_url", str, "Base URL for Cronitor pings, e.g. https://cronitor.link"),
    ("cronitor_api_key", str, "Cronitor API key; enables monitor enrichment"),
    ("cronitor_api_url", str, "Cronitor monitor API endpoint"),
    ("monitor_name", str, "Monitor name / key in Cronitor"),
    ("server_url", str, "Base URL of the server to probe"),
    ("model_name", str, "Name of the model to query"),
    ("app_env", str, "Environment descriptor (default: production)"),
    ("timeout_seconds", float, "Request timeout in seconds (default: 10)"),
    ("min_success_freq", int, "Require a successful ping every N minutes"),
    ("schedule", str, "Cron schedule shown in Cronitor"),
    ("consecutive_failures_for_alert", int, "Failed pings needed to alert"),
    ("consecutive_missing_for_alert", int, "Missing pings needed to alert (requires --schedule)"),
    ("realert_interval_hours", int, "Hours between repeated alerts"),
    ("monitor_group", str, "Cronitor group for the monitor"),
    ("collection_path", str, "Collection file for the collection probe"),
    ("environment_path", str, "Environment file for the collection probe"),
    ("delay_request_ms", int, "Delay between collection requests in ms"),
    ("collection_runner", str, "Collection runner executable (default: newman)"),
    ("collection_deadline_seconds", float, "Kill the collection runner after N seconds (default: 600)"),
    ("interval_seconds", float, "Run continuously every N seconds (0 = once)"),
    ("log_level", str, "Log level"),
    ("log_format", str, "Log format: json or text"),
    ("metrics_port", int, "Expose Prometheus metrics on this port"),
]


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Probe an LLM endpoint and report status to Cronitor."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--endpoint-type",
        choices=[k.value for k in ProbeKind],
        default=None,
        help="Probe kind: chat, embedding or collection",
    )
    for name, kind, help_text in SETTING_FLAGS:
        parser.add_argument(
            "--" + name.replace("_", "-"),
            dest=name,
            type=kind,
            default=None,
            help=help_text,
        )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single attempt even if an interval is configured",
    )
    parser.add_argument(
        "--iterations",
        type=positive_int,
        default=None,
        help="In continuous mode, stop after N iterations (default: run forever)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {name: getattr(args, name) for name, _, _ in SETTING_FLAGS}
    overrides["endpoint_type"] = args.endpoint_type
    if args.once:
        overrides["interval_seconds"] = 0
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return overrides


async def run_continuous(monitor: Monitor, args: argparse.Namespace) -> int:
    """Run the scheduler until a signal arrives."""
    logger = get_logger(__name__)
    settings = monitor.settings

    shutdown = GracefulShutdown()
    shutdown.install_signal_handlers()
    shutdown.register_cleanup("monitor", monitor.close)

    if settings.metrics_port:
        metrics.start_server(port=settings.metrics_port)

    scheduler = IntervalScheduler(
        monitor,
        interval_seconds=settings.interval_seconds,
        shutdown=shutdown,
        max_iterations=args.iterations,
    )
    try:
        return await scheduler.run()
    except Exception as e:
        logger.exception("Continuous loop crashed", error=str(e))
        return EXIT_FAILURE
    finally:
        await shutdown.run_cleanup()


async def async_main(args: argparse.Namespace) -> int:
    """Async entry point."""
    try:
        settings = load_config(args.config, settings_overrides(args))
    except ConfigurationError as e:
        configure_logging()
        get_logger(__name__).error("Invalid configuration", error=str(e))
        return EXIT_FAILURE

    configure_logging(log_level=settings.log_level, log_format=settings.log_format)
    logger = get_logger(__name__)
    logger.info(
        "ai-vitals starting",
        version=__version__,
        monitor=settings.monitor_name,
        kind=settings.endpoint_type.value,
        environment=settings.app_env,
        interval_seconds=settings.interval_seconds,
    )

    try:
        monitor = Monitor(settings)
    except ConfigurationError as e:
        logger.error("Failed to create monitor", error=str(e))
        return EXIT_FAILURE

    metrics.set_info(
        version=__version__,
        environment=settings.app_env,
        kind=settings.endpoint_type.value,
    )

    if settings.continuous:
        return await run_continuous(monitor, args)

    try:
        return await monitor.run_once()
    finally:
        await monitor.close()


def main() -> None:
    """Synchronous entry point."""
    args = parse_args()
    try:
        exit_code = asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        exit_code = EXIT_FAILURE
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
