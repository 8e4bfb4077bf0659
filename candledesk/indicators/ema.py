"""Exponential Moving Average (EMA) seed and update functions."""

from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from .base import IndicatorState, check_period


@dataclass(frozen=True)
class EMAState(IndicatorState):
    """
    EMA of close prices for one period.

    `value` stays None until a seed has observed at least `period` closes,
    or until the first `next_ema` call on an unseeded state.
    """

    period: int
    value: float | None = None

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def k(self) -> float:
        return 2.0 / (self.period + 1.0)

    def ready(self) -> bool:
        return self.value is not None

    def warmup_periods(self) -> int:
        return self.period


def seed_ema(period: int, closes: Sequence[float] | np.ndarray) -> EMAState:
    """
    Seed an EMA from historical closes.

    The first `period` closes are averaged (SMA warm-up); the EMA recursion
    then runs over the remaining tail in order. Fewer than `period` closes
    leave the value unset.
    """
    state = EMAState(period)
    prices = np.asarray(closes, dtype=np.float64)
    if prices.size < period:
        return state

    k = state.k
    value = float(prices[:period].sum()) / period
    for price in prices[period:]:
        value = float(price) * k + value * (1.0 - k)

    return replace(state, value=value)


def next_ema(state: EMAState, price: float) -> EMAState:
    """
    Advance `state` by one close.

    An unset state takes `price` as its value (cold-start approximation);
    this differs from the SMA warm-up of `seed_ema`.
    """
    price = float(price)
    if state.value is None:
        return replace(state, value=price)

    k = state.k
    return replace(state, value=price * k + state.value * (1.0 - k))
