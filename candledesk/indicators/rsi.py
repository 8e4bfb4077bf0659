"""Relative Strength Index (RSI) seed and update functions (Wilder)."""

from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from .base import IndicatorState, check_period


@dataclass(frozen=True)
class RSIState(IndicatorState):
    """
    Relative Strength Index (RSI) state using Wilder's smoothing.

    RSI = 100 - (100 / (1 + RS))
    RS  = avg_gain / avg_loss

    Seeding:
      - avg_gain/avg_loss start as the SMA of gains/losses over the first
        `period` deltas
      - Wilder smoothing is applied to every delta after that
      - the averages are set once period+1 closes have been observed
    """

    period: int = 14
    avg_gain: float | None = None
    avg_loss: float | None = None
    prev_close: float | None = None

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def value(self) -> float | None:
        if self.avg_gain is None or self.avg_loss is None:
            return None
        return compute_rsi(self.avg_gain, self.avg_loss)

    def ready(self) -> bool:
        return self.avg_gain is not None and self.avg_loss is not None

    def warmup_periods(self) -> int:
        # Need period deltas -> period + 1 closes
        return self.period + 1


def compute_rsi(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0.0:
        return 100.0
    if avg_gain == 0.0:
        return 0.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def _smooth(avg: float, x: float, period: int) -> float:
    return (avg * (period - 1) + x) / period


def seed_rsi(closes: Sequence[float] | np.ndarray, period: int = 14) -> RSIState:
    """
    Seed an RSI from historical closes.

    With fewer than period+1 closes the averages stay unset and only
    `prev_close` is recorded (None for an empty series).
    """
    state = RSIState(period)
    prices = np.asarray(closes, dtype=np.float64)
    if prices.size == 0:
        return state

    prev_close = float(prices[-1])
    if prices.size < period + 1:
        return replace(state, prev_close=prev_close)

    deltas = np.diff(prices)
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)

    avg_gain = float(gains[:period].sum()) / period
    avg_loss = float(losses[:period].sum()) / period

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = _smooth(avg_gain, float(gain), period)
        avg_loss = _smooth(avg_loss, float(loss), period)

    return replace(state, avg_gain=avg_gain, avg_loss=avg_loss, prev_close=prev_close)


def next_rsi(state: RSIState, close: float) -> tuple[RSIState, float | None]:
    """
    Advance `state` by one close and return ``(state, rsi)``.

    The first close seen by a state without `prev_close` only records it and
    yields None. Unset averages are bootstrapped from the single observed
    gain/loss (cold-start approximation).
    """
    close = float(close)
    if state.prev_close is None:
        return replace(state, prev_close=close), None

    delta = close - state.prev_close
    gain = max(delta, 0.0)
    loss = max(-delta, 0.0)

    if state.avg_gain is None or state.avg_loss is None:
        avg_gain, avg_loss = gain, loss
    else:
        avg_gain = _smooth(state.avg_gain, gain, state.period)
        avg_loss = _smooth(state.avg_loss, loss, state.period)

    new_state = replace(state, avg_gain=avg_gain, avg_loss=avg_loss, prev_close=close)
    return new_state, compute_rsi(avg_gain, avg_loss)
