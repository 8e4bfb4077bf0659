"""
Interfaces for the market data collaborators.

The indicator engine never talks to an exchange itself. A HistorySource
supplies the closes used to seed each symbol; a BarFeed delivers live
(or replayed) bars by submitting them to the engine's inbound queue.
"""

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from candledesk.engine import IndicatorEngine


class HistorySource(abc.ABC):
    """Abstract base for historical close providers."""

    @abc.abstractmethod
    async def start(self) -> None:
        """Initialise the source (e.g. open an HTTP session)."""
        raise NotImplementedError

    @abc.abstractmethod
    async def close(self) -> None:
        """Close any underlying resources."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_closes(self, symbol: str, timeframe: str, limit: int) -> list[float]:
        """Return up to `limit` closes of completed bars, oldest first."""
        raise NotImplementedError


class BarFeed(abc.ABC):
    """Abstract base for a real-time (or replay) bar stream."""

    @abc.abstractmethod
    async def connect(self) -> None:
        """Establish the underlying connection (e.g. WebSocket)."""
        raise NotImplementedError

    @abc.abstractmethod
    async def disconnect(self) -> None:
        """Tear down the underlying connection."""
        raise NotImplementedError

    @abc.abstractmethod
    async def run(self, engine: "IndicatorEngine") -> None:
        """Submit bar updates to `engine` in arrival order until done or cancelled."""
        raise NotImplementedError
