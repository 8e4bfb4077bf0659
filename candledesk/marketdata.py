# candledesk/marketdata.py
"""
Market data records - bars, bar updates and boundary validation.

Everything the indicator engine consumes enters through the types in this
module. Validation happens here, at the boundary, so that a bad price is
rejected with a descriptive error instead of poisoning indicator state
with NaN.
"""

import math
import numbers
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import numpy as np


class MalformedInputError(ValueError):
    """Raised when the market data collaborator violates the input contract."""


def validate_price(value: Any, name: str = "price") -> float:
    """
    Return `value` as a float, or raise MalformedInputError.

    Prices must be real numbers (bools rejected), finite and strictly positive.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedInputError(f"{name} must be a number, got {value!r}")

    price = float(value)
    if not math.isfinite(price):
        raise MalformedInputError(f"{name} must be finite, got {price!r}")
    if price <= 0.0:
        raise MalformedInputError(f"{name} must be > 0, got {price!r}")
    return price


def validate_volume(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedInputError(f"volume must be a number, got {value!r}")

    volume = float(value)
    if not math.isfinite(volume) or volume < 0.0:
        raise MalformedInputError(f"volume must be finite and >= 0, got {volume!r}")
    return volume


def validate_closes(closes: Iterable[Any]) -> np.ndarray:
    """
    Validate a historical close series and return it as a float64 array.

    Raises:
        MalformedInputError: naming the offending index
    """
    values = []
    for i, close in enumerate(closes):
        values.append(validate_price(close, name=f"closes[{i}]"))
    return np.array(values, dtype=np.float64)


@dataclass(frozen=True)
class Bar:
    """
    A single OHLCV bar.

    Attributes:
        timestamp: ISO 8601 timestamp of the bar open
        open: Opening price
        high: Highest price during the interval
        low: Lowest price during the interval
        close: Latest (or closing) price
        volume: Traded volume (0 if unavailable)
        is_final: False while the bar is still forming
    """

    timestamp: str
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    is_final: bool = True

    def __repr__(self) -> str:
        return (
            f"Bar(timestamp={self.timestamp}, "
            f"O={self.open:.5f}, H={self.high:.5f}, "
            f"L={self.low:.5f}, C={self.close:.5f}, "
            f"V={self.volume:.0f}, final={self.is_final})"
        )


def validate_bar(bar: Bar) -> Bar:
    """Check every field of `bar`; return it unchanged when valid."""
    validate_price(bar.open, "open")
    high = validate_price(bar.high, "high")
    low = validate_price(bar.low, "low")
    validate_price(bar.close, "close")
    validate_volume(bar.volume)

    if high < low:
        raise MalformedInputError(f"high ({high}) is below low ({low})")
    if not isinstance(bar.is_final, bool):
        raise MalformedInputError(f"is_final must be a bool, got {bar.is_final!r}")
    return bar


@dataclass(frozen=True)
class BarUpdate:
    """A bar addressed to one symbol."""

    symbol: str
    bar: Bar


def _ms_to_iso(ms: Any) -> str:
    return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc).isoformat()


def _num(k: dict[str, Any], key: str) -> float:
    raw = k.get(key)
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"kline field {key!r} is not numeric: {raw!r}") from e


def parse_kline_message(message: dict[str, Any]) -> Optional[BarUpdate]:
    """
    Decode an exchange kline event into a BarUpdate.

    Accepts either the bare event (``{"e": "kline", "s": ..., "k": {...}}``)
    or a combined-stream envelope carrying it under ``"data"``. Events of any
    other type return None.

    Raises:
        MalformedInputError: if the kline carries non-numeric values
    """
    data = message.get("data", message)
    if not isinstance(data, dict) or data.get("e") != "kline":
        return None

    k = data.get("k")
    if not isinstance(k, dict):
        raise MalformedInputError("kline event has no 'k' payload")

    symbol = data.get("s") or k.get("s")
    if not symbol:
        raise MalformedInputError("kline event has no symbol")

    try:
        timestamp = _ms_to_iso(k.get("t"))
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedInputError(f"kline open time is invalid: {k.get('t')!r}") from e

    bar = Bar(
        timestamp=timestamp,
        open=_num(k, "o"),
        high=_num(k, "h"),
        low=_num(k, "l"),
        close=_num(k, "c"),
        volume=_num(k, "v"),
        is_final=k.get("x", False),
    )
    return BarUpdate(symbol=str(symbol).upper(), bar=validate_bar(bar))
