#!/usr/bin/env python3
"""
modelprobe - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the probing loop

All business logic is in the modules.
"""

import logging
import logging.config as log_config
import signal
import sys
import threading
from typing import Optional

import click
import httpx
from dotenv import load_dotenv

from modelprobe.config import AppConfig, FileConfigProvider
from modelprobe.errors import ConfigError, StoreReadError
from modelprobe.logging_config import get_logging_config
from modelprobe.modules.capability import CapabilityStore
from modelprobe.modules.prober import ModelProber
from modelprobe.modules.reconciler import Reconciler
from modelprobe.modules.scheduler import PassDriver
from modelprobe.modules.selector import ChannelSelector
from modelprobe.modules.storage import StorageModule

logger = logging.getLogger("modelprobe.main")


def build_driver(config: AppConfig, engine, client: httpx.Client) -> PassDriver:
    """Wire the modules together for one process."""
    store = CapabilityStore(engine)
    return PassDriver(
        selector=ChannelSelector(store, config.probe),
        store=store,
        prober=ModelProber(client, config.probe),
        reconciler=Reconciler(store),
    )


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _stop(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current pass")
        stop_event.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)


@click.command()
@click.option(
    "--config", "config_path",
    default="config.json",
    show_default=True,
    envvar="MODELPROBE_CONFIG",
    help="Path to the JSON or YAML configuration file.",
)
@click.option("--once", is_flag=True, help="Run a single pass and exit.")
@click.option("--log-level", "log_level", default=None, help="Override the configured log level.")
def main(config_path: str, once: bool, log_level: Optional[str]):
    """Probe every configured channel and keep its ability rows current."""
    load_dotenv()

    try:
        config = FileConfigProvider(config_path).load()
        storage = StorageModule(config.database.db_type, config.database.db_dsn)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    log_config.dictConfig(get_logging_config(log_level or config.log_level))
    logger.info(f"Loaded configuration from {config.source}")

    try:
        storage.ping()
    except StoreReadError as e:
        logger.critical(f"Database connection failed: {e}")
        sys.exit(1)

    engine = storage.connect()
    try:
        with httpx.Client() as client:
            driver = build_driver(config, engine, client)
            if once:
                report = driver.run_pass()
                sys.exit(1 if report.aborted else 0)

            stop_event = threading.Event()
            _install_signal_handlers(stop_event)
            driver.run_forever(config.schedule.poll_interval, stop_event)
    finally:
        storage.disconnect()


if __name__ == "__main__":
    main()
