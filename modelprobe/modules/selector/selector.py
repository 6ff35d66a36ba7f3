"""
Channel selection for one probing pass.

Reads the channel catalog and keeps only the channels the prober knows how
to reach, applying the configured exclusion list.
"""

import logging
from dataclasses import replace
from enum import IntEnum
from typing import List

from modelprobe.config import ProbeConfig
from modelprobe.modules.capability import CapabilityStore, Channel

logger = logging.getLogger("modelprobe.selector")

SILICONFLOW_BASE_URL = "https://api.siliconflow.cn"


class ChannelType(IntEnum):
    """Channel types the prober handles."""

    OPENAI = 1
    SILICONFLOW = 40
    SILICONFLOW_COMPAT = 999

    @property
    def has_fixed_endpoint(self) -> bool:
        return self in (ChannelType.SILICONFLOW, ChannelType.SILICONFLOW_COMPAT)


SUPPORTED_TYPES = tuple(int(t) for t in ChannelType)


class ChannelSelector:
    """Produces the ordered channel sequence for a pass."""

    def __init__(self, store: CapabilityStore, config: ProbeConfig):
        """
        Initialize selector.

        Args:
            store: Capability store gateway
            config: Probing policy (exclusion list)
        """
        self.store = store
        self.config = config

    def select_channels(self) -> List[Channel]:
        """
        Load the eligible channels.

        Returns:
            Channels in store order; may be empty

        Raises:
            StoreReadError: If the catalog cannot be read
        """
        selected: List[Channel] = []

        for channel in self.store.list_channels(SUPPORTED_TYPES):
            if channel.id in self.config.exclude_channel_ids:
                logger.info(f"Channel {channel.label()} is in the exclusion list, skipping")
                continue

            if ChannelType(channel.type).has_fixed_endpoint:
                # stored base_url is ignored for these types
                selected.append(replace(channel, base_url=SILICONFLOW_BASE_URL))
                continue

            if not channel.base_url:
                logger.info(f"Channel {channel.label()} has an empty base_url, skipping")
                continue

            selected.append(channel)

        if not selected:
            logger.warning("No eligible channels found")
            return selected

        logger.info(f"Selected {len(selected)} channels")
        for channel in selected:
            logger.info(f"- {channel.name} (ID:{channel.id}, Type:{channel.type})")
        return selected
