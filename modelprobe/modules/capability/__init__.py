"""
Capability Module - Black Box Interface

Purpose: Read the channel catalog and maintain per-channel ability rows
Interface: list_channels(), find_one_ability(), default_config_for(),
           delete_abilities(), insert_ability(), update_channel_models(),
           transaction()
Hidden: SQL statements, dialect quoting, SQLAlchemy exceptions
"""

from .capability import (
    DEFAULT_GROUP,
    Ability,
    CapabilityStore,
    Channel,
    ChannelConfig,
)

__all__ = ["DEFAULT_GROUP", "Ability", "CapabilityStore", "Channel", "ChannelConfig"]
