# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest

from candledesk.indicator_set import IndicatorConfig
from candledesk.marketdata import Bar


START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_bar(i: int, *, is_final: bool = True) -> Bar:
    """
    Deterministic bar series with monotonically increasing prices.
    """
    base = 100.0 + i
    return Bar(
        timestamp=(START + timedelta(minutes=i)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        open=base,
        high=base + 0.5,
        low=base - 0.5,
        close=base + 0.2,
        volume=1000.0,
        is_final=is_final,
    )


def wave(n: int, start: float = 100.0) -> list[float]:
    """
    Deterministic close series with gains and losses of varying size.
    """
    closes = []
    price = start
    for i in range(n):
        step = ((i * 7) % 11 - 5) * 0.37 + (0.15 if i % 3 == 0 else -0.05)
        price = max(1.0, price + step)
        closes.append(round(price, 6))
    return closes


@pytest.fixture
def bar_factory():
    """
    Returns a function: (i:int, is_final:bool=True) -> Bar
    """
    return make_bar


@pytest.fixture
def make_bars(bar_factory):
    """
    Returns a function: (n:int, start:int=0) -> list[Bar]
    """
    def _make(n: int, start: int = 0) -> list[Bar]:
        return [bar_factory(i) for i in range(start, start + n)]

    return _make


@pytest.fixture
def wave_factory():
    """
    Returns a function: (n:int, start:float=100.0) -> list[float]
    """
    return wave


@pytest.fixture
def closes():
    """300 closes with mixed gains and losses."""
    return wave(300)


@pytest.fixture
def small_config():
    return IndicatorConfig(
        capacity=50,
        ema_periods=(3, 5),
        rsi_period=3,
        macd_fast=3,
        macd_slow=5,
        macd_signal=2,
    )
