# candledesk/indicators/__init__.py
"""
Incremental technical indicators.

Each indicator is an immutable state seeded from a batch of historical
closes and advanced one close at a time. Seeding with one more close gives
the same state as seeding and then advancing once.

Example:
    from candledesk.indicators import seed_ema, next_ema, seed_rsi, next_rsi

    ema = seed_ema(12, closes)
    rsi = seed_rsi(closes, period=14)

    # On each closed bar
    ema = next_ema(ema, bar.close)
    rsi, rsi_value = next_rsi(rsi, bar.close)
"""

from .base import IndicatorState
from .ema import EMAState, seed_ema, next_ema
from .rsi import RSIState, seed_rsi, next_rsi, compute_rsi
from .macd import MACDState, MACDValues, seed_macd, next_macd

__all__ = [
    "IndicatorState",
    "EMAState",
    "seed_ema",
    "next_ema",
    "RSIState",
    "seed_rsi",
    "next_rsi",
    "compute_rsi",
    "MACDState",
    "MACDValues",
    "seed_macd",
    "next_macd",
]
