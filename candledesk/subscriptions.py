# candledesk/subscriptions.py
"""
Subscription type definitions for bar streams.

A subscription names the symbol and the bar timeframe the engine maintains
indicators for; the history source and bar feed use it to know what to
fetch and stream.
"""

from dataclasses import dataclass

VALID_TIMEFRAMES = ("1m", "15m", "1h", "4h", "1d")


@dataclass(frozen=True)
class SymbolSubscription:
    """
    Subscribe to closed and forming bars of one symbol.

    Args:
        symbol: Instrument symbol, e.g. "BTCUSDT" (normalised to upper case)
        timeframe: Bar interval - one of "1m", "15m", "1h", "4h", "1d"

    Example:
        SymbolSubscription("btcusdt", "15m")
    """

    symbol: str
    timeframe: str = "1m"

    def __post_init__(self) -> None:
        symbol = (self.symbol or "").strip().upper()
        if not symbol:
            raise ValueError("symbol must not be empty")
        object.__setattr__(self, "symbol", symbol)

        if self.timeframe not in VALID_TIMEFRAMES:
            raise ValueError(
                f"Invalid timeframe '{self.timeframe}', expected one of {', '.join(VALID_TIMEFRAMES)}"
            )
