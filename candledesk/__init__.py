# candledesk/__init__.py
"""
Candledesk - incremental technical indicators for streaming OHLCV bars.

Maintains EMA, Wilder RSI and MACD per symbol. Indicators are seeded from a
batch of historical closes and then advanced one closed bar at a time, with
results matching a full recomputation from history.

Quick start:
    from candledesk import IndicatorEngine, Bar, BarUpdate

    engine = IndicatorEngine()
    engine.seed("BTCUSDT", historical_closes)

    engine.apply(BarUpdate("BTCUSDT", Bar("2025-01-01T00:01:00Z", 1, 2, 0.5, 1.5, 10.0)))
    engine.flush()

    for snap in engine.store.sorted():
        print(snap.as_dict())
"""

from .marketdata import Bar, BarUpdate, MalformedInputError, parse_kline_message
from .series import SeriesBuffer
from .indicator_set import ColdStart, IndicatorConfig, IndicatorSet, Phase, Snapshot
from .store import SnapshotStore
from .subscriptions import SymbolSubscription
from .engine import IndicatorEngine
from .runner import run, run_engine
from .config import settings, load_engine_config

__version__ = "0.1.0"
__all__ = [
    "Bar",
    "BarUpdate",
    "MalformedInputError",
    "parse_kline_message",
    "SeriesBuffer",
    "ColdStart",
    "IndicatorConfig",
    "IndicatorSet",
    "Phase",
    "Snapshot",
    "SnapshotStore",
    "SymbolSubscription",
    "IndicatorEngine",
    "run",
    "run_engine",
    "settings",
    "load_engine_config",
]
