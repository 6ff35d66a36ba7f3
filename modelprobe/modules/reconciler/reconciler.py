"""Writes a channel's verified models back to the routing store."""

import logging
from typing import List, Sequence

from modelprobe.modules.capability import (
    DEFAULT_GROUP,
    Ability,
    CapabilityStore,
    Channel,
    ChannelConfig,
)

logger = logging.getLogger("modelprobe.reconciler")


class Reconciler:
    """
    Replaces a channel's ability rows with its verified model set.

    The models column update, the delete and the inserts share one
    transaction, so a failure leaves the channel exactly as it was.
    """

    def __init__(self, store: CapabilityStore):
        self.store = store

    def reconcile(self, channel: Channel, verified_models: Sequence[str], config: ChannelConfig) -> List[str]:
        """
        Persist the verified models of one channel.

        Args:
            channel: Channel being reconciled
            verified_models: Models that passed their health check
            config: Priority/weight for the new ability rows

        Returns:
            The models written, de-duplicated in input order

        Raises:
            StoreWriteError: Any step failed; nothing was committed
        """
        models = list(dict.fromkeys(verified_models))

        with self.store.transaction() as conn:
            self.store.update_channel_models(channel.id, ",".join(models), conn=conn)
            deleted = self.store.delete_abilities(channel.id, conn=conn)
            for model in models:
                self.store.insert_ability(
                    Ability(
                        model=model,
                        channel_id=channel.id,
                        group=DEFAULT_GROUP,
                        enabled=True,
                        priority=config.priority,
                        weight=config.weight,
                    ),
                    conn=conn,
                )

        logger.info(
            f"Replaced {deleted} abilities of channel {channel.label()} with {len(models)} "
            f"(priority={config.priority}, weight={config.weight})"
        )
        return models
