"""
Provider-agnostic interfaces.

This module defines the interfaces the engine and runner rely on.
Concrete data sources (exchange clients, replays) implement these contracts.
"""

from .base import BarFeed, HistorySource

__all__ = ["BarFeed", "HistorySource"]
