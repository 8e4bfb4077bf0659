# candledesk/indicators/macd.py
"""
MACD (Moving Average Convergence Divergence) seed and update functions.

MACD is a trend-following momentum indicator that shows the relationship
between two moving averages of prices.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

import numpy as np

from .base import IndicatorState, check_period
from .ema import EMAState, next_ema, seed_ema


@dataclass(frozen=True)
class MACDState(IndicatorState):
    """
    MACD state.

    Components:
        - MACD Line: Fast EMA - Slow EMA
        - Signal Line: EMA of the MACD line (not of price)
        - Histogram: MACD Line - Signal Line

    The fast and slow EMAs are private to this state; they are seeded and
    advanced by the same functions as standalone EMAs and therefore agree
    with them numerically.
    """

    fast: EMAState = field(default_factory=lambda: EMAState(12))
    slow: EMAState = field(default_factory=lambda: EMAState(26))
    signal: EMAState = field(default_factory=lambda: EMAState(9))
    macd: float | None = None

    def __post_init__(self) -> None:
        if self.fast.period >= self.slow.period:
            raise ValueError("fast period must be < slow period")

    @property
    def histogram(self) -> float | None:
        if self.macd is None or self.signal.value is None:
            return None
        return self.macd - self.signal.value

    def ready(self) -> bool:
        return self.macd is not None and self.signal.ready()

    def warmup_periods(self) -> int:
        return self.slow.period + self.signal.period - 1

    def __repr__(self) -> str:
        return (
            f"MACDState(fast={self.fast.period}, slow={self.slow.period}, "
            f"signal={self.signal.period}, ready={self.ready()})"
        )


class MACDValues(NamedTuple):
    macd: float | None
    signal: float | None
    histogram: float | None


def seed_macd(
    closes: Sequence[float] | np.ndarray,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDState:
    """
    Seed MACD from historical closes.

    The signal EMA is seeded over the reconstructed MACD line: both EMAs are
    seeded up to index slow-1 and then stepped together through the remaining
    closes, recording fast - slow at every step.

    Raises:
        ValueError: if a period is not a positive integer or fast >= slow
    """
    for name, period in (("fast", fast), ("slow", slow), ("signal", signal)):
        check_period(period, name)
    if fast >= slow:
        raise ValueError(f"fast period must be < slow period, got fast={fast}, slow={slow}")

    prices = np.asarray(closes, dtype=np.float64)
    warm = max(fast, slow)

    if prices.size < warm:
        return MACDState(
            fast=seed_ema(fast, prices),
            slow=seed_ema(slow, prices),
            signal=EMAState(signal),
        )

    fast_state = seed_ema(fast, prices[:warm])
    slow_state = seed_ema(slow, prices[:warm])
    macd_line = [fast_state.value - slow_state.value]

    for price in prices[warm:]:
        fast_state = next_ema(fast_state, price)
        slow_state = next_ema(slow_state, price)
        macd_line.append(fast_state.value - slow_state.value)

    return MACDState(
        fast=fast_state,
        slow=slow_state,
        signal=seed_ema(signal, macd_line),
        macd=macd_line[-1],
    )


def next_macd(state: MACDState, close: float) -> tuple[MACDState, MACDValues]:
    """
    Advance `state` by one close.

    Order is fixed: fast EMA, slow EMA, MACD difference, then signal EMA.
    """
    fast_state = next_ema(state.fast, close)
    slow_state = next_ema(state.slow, close)

    macd = None
    signal_state = state.signal
    if fast_state.value is not None and slow_state.value is not None:
        macd = fast_state.value - slow_state.value
        signal_state = next_ema(signal_state, macd)

    new_state = MACDState(fast=fast_state, slow=slow_state, signal=signal_state, macd=macd)
    return new_state, MACDValues(macd, signal_state.value, new_state.histogram)
