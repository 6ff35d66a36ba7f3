"""
Reconciler Module - Black Box Interface

Purpose: Persist a channel's verified models and ability rows
Interface: Reconciler.reconcile()
Hidden: Transaction scope, delete-then-insert replacement
"""

from .reconciler import Reconciler

__all__ = ["Reconciler"]
