"""Base class for indicator states."""

import abc
import numbers


class IndicatorState(abc.ABC):
    """
    Abstract base class for immutable indicator states.

    States are produced by a ``seed_*`` function from a batch of closes and
    advanced by the matching ``next_*`` function, one close at a time.
    """

    @abc.abstractmethod
    def ready(self) -> bool:
        """Return True when the state has enough data to produce valid outputs."""
        raise NotImplementedError

    @abc.abstractmethod
    def warmup_periods(self) -> None:
        """Return the number of closes a seed needs before the state is ready."""
        raise NotImplementedError


def check_period(period: int, name: str = "period") -> None:
    if isinstance(period, bool) or not isinstance(period, numbers.Integral):
        raise ValueError(f"{name} must be an int, got {period!r}")
    if period <= 0:
        raise ValueError(f"{name} must be > 0")
