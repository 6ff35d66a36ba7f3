"""
Prober Module - Black Box Interface

Purpose: Find out which models a channel currently serves
Interface: ModelProber.probe_channel(), completions_url()
Hidden: Discovery fallback chain, endpoint construction, health checks
"""

from .prober import PROBE_TIMEOUT, ModelProber, completions_url

__all__ = ["PROBE_TIMEOUT", "ModelProber", "completions_url"]
