# candledesk/series.py
"""
Bounded close-price history for a single symbol.
"""

from collections import deque
from typing import Iterable, Optional

import numpy as np


class SeriesBuffer:
    """
    Maintains a rolling window of closing prices, oldest first.

    Pushing beyond `capacity` evicts the oldest price.

    Example:
        buffer = SeriesBuffer(capacity=600)
        buffer.push(101.5)

        closes = buffer.to_array()  # read-only float64 array
    """

    def __init__(self, capacity: int = 600, prices: Iterable[float] = ()):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._prices: deque[float] = deque(prices, maxlen=capacity)

    def push(self, price: float) -> None:
        self._prices.append(float(price))

    def extend(self, prices: Iterable[float]) -> None:
        self._prices.extend(float(p) for p in prices)

    def clear(self) -> None:
        self._prices.clear()

    def to_array(self) -> np.ndarray:
        """Return a read-only copy of the prices, oldest first."""
        arr = np.array(self._prices, dtype=np.float64)
        arr.flags.writeable = False
        return arr

    @property
    def latest(self) -> Optional[float]:
        return self._prices[-1] if self._prices else None

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        return f"SeriesBuffer(prices={len(self)}/{self.capacity})"
