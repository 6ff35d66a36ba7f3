"""
Selector Module - Black Box Interface

Purpose: Decide which channels take part in a pass
Interface: ChannelSelector.select_channels()
Hidden: Type filtering, exclusion list, vendor endpoint substitution
"""

from .selector import SILICONFLOW_BASE_URL, SUPPORTED_TYPES, ChannelSelector, ChannelType

__all__ = ["SILICONFLOW_BASE_URL", "SUPPORTED_TYPES", "ChannelSelector", "ChannelType"]
