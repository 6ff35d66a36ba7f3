"""
Scheduler Module - Black Box Interface

Purpose: Orchestrate probing passes
Interface: PassDriver.run_pass(), PassDriver.run_forever()
Hidden: Per-channel failure isolation, interval timing
"""

from .driver import ChannelResult, PassDriver, PassReport

__all__ = ["ChannelResult", "PassDriver", "PassReport"]
