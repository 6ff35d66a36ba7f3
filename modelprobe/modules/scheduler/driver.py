"""
Pass Driver for modelprobe.

One pass: select channels, then for each channel resolve its ChannelConfig,
probe it and reconcile the result. Channels are processed one at a time in
selector order.

Failure scope:
- Selector failure aborts the pass; the loop waits for the next tick
- Any probe or reconcile failure, expected or not, skips that channel only
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import List, Optional

from modelprobe.errors import ModelProbeError, StoreReadError
from modelprobe.modules.capability import CapabilityStore, Channel
from modelprobe.modules.prober import ModelProber
from modelprobe.modules.reconciler import Reconciler
from modelprobe.modules.selector import ChannelSelector

logger = logging.getLogger("modelprobe.scheduler")


@dataclass
class ChannelResult:
    """Outcome of one channel within a pass."""

    channel_id: int
    name: str
    models: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PassReport:
    """Outcome of one pass."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    channels: List[ChannelResult] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> List[ChannelResult]:
        return [c for c in self.channels if not c.ok]

    def summary(self) -> str:
        if self.aborted:
            return f"pass aborted: {self.error}"
        verified = sum(len(c.models) for c in self.channels if c.ok)
        return (
            f"pass finished: {len(self.channels)} channels, "
            f"{len(self.failed)} failed, {verified} verified models"
        )


class PassDriver:
    """Runs probing passes, once or on a fixed interval."""

    def __init__(
        self,
        selector: ChannelSelector,
        store: CapabilityStore,
        prober: ModelProber,
        reconciler: Reconciler,
    ):
        self.selector = selector
        self.store = store
        self.prober = prober
        self.reconciler = reconciler

    def process_channel(self, channel: Channel) -> ChannelResult:
        """
        Probe and reconcile one channel.

        Channel-level errors are logged and recorded, never raised.
        """
        logger.info(f"Testing models of channel {channel.label()}")
        result = ChannelResult(channel_id=channel.id, name=channel.name)

        # read before the reconciler deletes the rows it samples
        config = self.store.default_config_for(channel.id)
        logger.info(
            f"Channel {channel.label()} uses priority={config.priority}, weight={config.weight}"
        )

        try:
            models = self.prober.probe_channel(channel)
        except ModelProbeError as e:
            logger.error(f"Probing channel {channel.label()} failed: {e}")
            result.error = str(e)
            return result
        except Exception as e:
            logger.exception(f"Unexpected error probing channel {channel.label()}: {e}")
            result.error = f"{type(e).__name__}: {e}"
            return result

        try:
            result.models = self.reconciler.reconcile(channel, models, config)
        except ModelProbeError as e:
            logger.error(f"Updating models of channel {channel.label()} failed: {e}")
            result.error = str(e)
            return result
        except Exception as e:
            logger.exception(f"Unexpected error updating models of channel {channel.label()}: {e}")
            result.error = f"{type(e).__name__}: {e}"
            return result

        logger.info(f"Channel {channel.label()} available models: {result.models}")
        return result

    def run_pass(self) -> PassReport:
        """Run one full sweep over the eligible channels."""
        report = PassReport(started_at=datetime.now(UTC))
        logger.info("Starting probing pass")

        try:
            channels = self.selector.select_channels()
        except StoreReadError as e:
            logger.error(f"Failed to load channels: {e}")
            report.aborted = True
            report.error = str(e)
            report.finished_at = datetime.now(UTC)
            return report

        for channel in channels:
            report.channels.append(self.process_channel(channel))

        report.finished_at = datetime.now(UTC)
        logger.info(report.summary())
        return report

    def run_forever(self, interval: timedelta, stop_event: Optional[threading.Event] = None) -> None:
        """
        Run passes until ``stop_event`` is set.

        Passes start ``interval`` apart; a pass that overruns the interval
        is followed immediately by the next one.
        """
        stop_event = stop_event or threading.Event()
        period = interval.total_seconds()
        logger.info(f"Probing every {period:g}s")

        while not stop_event.is_set():
            started = time.monotonic()
            try:
                self.run_pass()
            except Exception as e:
                logger.exception(f"Unexpected error in probing pass: {e}")

            remaining = period - (time.monotonic() - started)
            stop_event.wait(max(0.0, remaining))

        logger.info("Probing loop stopped")
