#!/usr/bin/env python3
"""
run_exporter.py - CLI entrypoint for the exporter.

Usage:
    RPC=http://localhost:8545 PORT=9015 ethaddr_treasury=0x... python run_exporter.py
    python run_exporter.py --env-file .env --no-json-logs --log-file exporter.log
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import click

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from chains.providers import RPCProvider
from config import ExporterConfig, address_listing, load_config
from core.exceptions import ConfigError, ConnectError
from core.logging import get_logger, set_global_context, setup_logging
from discovery.registry import AddressRegistry
from monitoring.render import MetricsRenderer
from monitoring.scheduler import RefreshScheduler
from monitoring.server import MetricsServer
from monitoring.store import ObservationStore
from monitoring.sweep import BoundedSweepEngine

__version__ = "0.1.0"

logger = get_logger("exporter")


async def serve(
    config: ExporterConfig,
    registry: AddressRegistry,
    shutdown: Optional[asyncio.Event] = None,
) -> None:
    """
    Connect, start the refresh loop and the HTTP server, run until shutdown.

    Args:
        config: Startup configuration
        registry: Watch targets
        shutdown: Event ending the run; when omitted, SIGINT/SIGTERM set it

    Raises:
        ConnectError: If the initial dial of the RPC endpoint fails
    """
    provider = RPCProvider(
        config.rpc_url,
        timeout_seconds=config.fetch_timeout_seconds,
        max_connections=config.concurrency,
    )
    server: Optional[MetricsServer] = None

    try:
        chain_id = await provider.connect()

        store = ObservationStore(registry.snapshot())
        engine = BoundedSweepEngine(
            provider,
            store,
            concurrency=config.concurrency,
            fetch_timeout_seconds=config.fetch_timeout_seconds,
        )
        scheduler = RefreshScheduler(engine, registry, store, config.sleep_seconds)
        server = MetricsServer(MetricsRenderer(store, config.metric_prefix), config.port)

        if shutdown is None:
            shutdown = asyncio.Event()
            loop = asyncio.get_running_loop()
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(signum, shutdown.set)

        await server.start()
        logger.info(
            f"ETHexporter has started on port {config.port} using RPC endpoint: {provider.rpc_url}",
            extra={
                "context": {
                    "chain_id": chain_id,
                    "addresses": len(registry),
                    "sleep_seconds": config.sleep_seconds,
                }
            },
        )

        refresh_task = scheduler.start()
        shutdown_task = asyncio.create_task(shutdown.wait())
        await asyncio.wait({refresh_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
        shutdown_task.cancel()

        if refresh_task.done():
            # Only an engine malfunction ends the loop on its own
            refresh_task.result()

        logger.info("Shutdown requested")
        await scheduler.stop()

    finally:
        if server is not None:
            await server.stop()
        logger.info(
            "RPC endpoint stats",
            extra={"context": provider.get_stats_summary()},
        )
        await provider.close()


@click.command()
@click.option(
    "--env-file",
    "-e",
    default=None,
    type=click.Path(dir_okay=False),
    help="Load environment variables from this .env file first",
)
@click.option(
    "--log-level",
    "-l",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level (default: LOG_LEVEL or INFO)",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Use JSON log format (default: LOG_JSON or on)",
)
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Also write JSON logs to this file",
)
def main(
    env_file: Optional[str],
    log_level: Optional[str],
    json_logs: Optional[bool],
    log_file: Optional[str],
) -> None:
    """
    Ethereum address exporter.

    Samples balance, nonce and code of the configured addresses on a fixed
    interval and serves the latest readings on /metrics.
    """
    try:
        config = load_config(env_file=env_file)
    except ConfigError as e:
        setup_logging(
            level=log_level or "INFO",
            json_output=json_logs is not False,
            log_file=log_file,
        )
        logger.error(str(e), extra={"context": {"error_code": e.code.value}})
        sys.exit(1)

    setup_logging(
        level=log_level or config.log_level,
        json_output=config.json_logs if json_logs is None else json_logs,
        log_file=log_file,
    )
    set_global_context(service="eth-exporter", version=__version__)

    try:
        registry = AddressRegistry.load(address_listing(config), config.address_prefix)
        asyncio.run(serve(config, registry))
    except (ConfigError, ConnectError) as e:
        logger.error(str(e), extra={"context": {"error_code": e.code.value, **e.details}})
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Exporter interrupted")


if __name__ == "__main__":
    main()
