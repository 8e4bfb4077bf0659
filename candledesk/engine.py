# candledesk/engine.py
"""
Multi-symbol indicator engine.

Owns one IndicatorSet per subscribed symbol and a SnapshotStore. Bar updates
arrive through a bounded asyncio queue and are applied strictly in arrival
order by a single consumer, so each symbol sees its bars chronologically.
Snapshots are published to the store in batches, at most once per flush
interval.
"""

import asyncio
import logging
from collections import deque
from typing import Iterable, Optional

from candledesk.config import settings
from candledesk.indicator_set import IndicatorConfig, IndicatorSet, Snapshot
from candledesk.marketdata import BarUpdate, MalformedInputError
from candledesk.providers.base import HistorySource
from candledesk.store import SnapshotStore
from candledesk.subscriptions import SymbolSubscription

log = logging.getLogger(__name__)


class IndicatorEngine:
    """
    Coordinates IndicatorSets for many symbols.

    Example:
        engine = IndicatorEngine()
        engine.subscribe(SymbolSubscription("BTCUSDT", "1m"))
        engine.seed("BTCUSDT", closes)

        task = asyncio.create_task(engine.run())
        await engine.submit(BarUpdate("BTCUSDT", bar))
        await engine.drain()

        print(engine.store["BTCUSDT"].as_dict())
    """

    def __init__(
        self,
        config: Optional[IndicatorConfig] = None,
        store: Optional[SnapshotStore] = None,
        *,
        queue_maxsize: Optional[int] = None,
        batch_size: Optional[int] = None,
        flush_interval: Optional[float] = None,
    ):
        self.config = config or IndicatorConfig.from_settings(settings)
        self.store = store if store is not None else SnapshotStore()
        self.batch_size = settings.batch_size if batch_size is None else batch_size
        self.flush_interval = settings.flush_interval if flush_interval is None else flush_interval

        if queue_maxsize is None:
            queue_maxsize = settings.queue_maxsize

        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if queue_maxsize <= 0:
            raise ValueError("queue_maxsize must be > 0")

        self._queue: asyncio.Queue[BarUpdate] = asyncio.Queue(maxsize=queue_maxsize)
        # final bars from submit_threadsafe waiting for queue space, oldest first
        self._backlog: deque[BarUpdate] = deque()
        self._backlog_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sets: dict[str, IndicatorSet] = {}
        self._subscriptions: dict[str, SymbolSubscription] = {}
        self._pending: dict[str, Snapshot] = {}

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------
    @property
    def symbols(self) -> list[str]:
        return sorted(self._sets)

    @property
    def subscriptions(self) -> list[SymbolSubscription]:
        return [self._subscriptions[s] for s in self.symbols]

    def get(self, symbol: str) -> Optional[IndicatorSet]:
        return self._sets.get(symbol.upper())

    def subscribe(self, subscription: SymbolSubscription | str) -> IndicatorSet:
        """
        Create the IndicatorSet for a symbol. Subscribing twice returns the
        existing set.
        """
        if isinstance(subscription, str):
            subscription = SymbolSubscription(subscription, settings.timeframe)

        symbol = subscription.symbol
        existing = self._sets.get(symbol)
        if existing is not None:
            return existing

        indicator_set = IndicatorSet(symbol, self.config)
        self._sets[symbol] = indicator_set
        self._subscriptions[symbol] = subscription
        log.info("Subscribed %s (%s)", symbol, subscription.timeframe)
        return indicator_set

    def unsubscribe(self, symbol: str) -> None:
        symbol = symbol.upper()
        if self._sets.pop(symbol, None) is None:
            log.debug("Unsubscribe for unknown symbol %s ignored", symbol)
            return

        self._subscriptions.pop(symbol, None)
        self._pending.pop(symbol, None)
        self.store.discard(symbol)
        log.info("Unsubscribed %s", symbol)

    def warmup_plan(self) -> dict[str, int]:
        """Closes each subscribed symbol needs for a complete warm-up."""
        return {symbol: s.required_history() for symbol, s in sorted(self._sets.items())}

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------
    def seed(self, symbol: str, closes: Iterable[float]) -> Snapshot:
        """
        Seed a symbol from historical closes and publish its snapshot.

        Unsubscribed symbols are subscribed first.
        """
        indicator_set = self.subscribe(symbol)
        snapshot = indicator_set.seed(closes)
        self._pending.pop(indicator_set.symbol, None)
        self.store.publish(snapshot)

        log.info("Seeded %s with %d closes", indicator_set.symbol, len(indicator_set.buffer))
        return snapshot

    async def warmup_from_source(self, source: HistorySource) -> None:
        """
        Seed every subscription from a HistorySource.

        A failed fetch leaves the symbol seeded with no history; its
        indicators then bootstrap from live bars.
        """
        for subscription in self.subscriptions:
            symbol = subscription.symbol
            required = self._sets[symbol].required_history()

            try:
                closes = await source.get_closes(symbol, subscription.timeframe, self.config.capacity)
            except Exception:
                log.exception(
                    "History fetch failed for %s %s; continuing without history",
                    symbol,
                    subscription.timeframe,
                )
                closes = []

            if len(closes) < required:
                log.warning(
                    "Insufficient history for %s: %d closes, %d needed for every indicator",
                    symbol,
                    len(closes),
                    required,
                )

            try:
                self.seed(symbol, closes)
            except MalformedInputError:
                log.exception("Rejected history for %s; seeding with none", symbol)
                self.seed(symbol, [])

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def apply(self, update: BarUpdate) -> Optional[Snapshot]:
        """
        Apply one bar update synchronously.

        The snapshot is queued for the next flush. Updates for symbols that
        are not subscribed are ignored and return None.

        Raises:
            MalformedInputError: if the bar fails validation
        """
        indicator_set = self._sets.get(update.symbol.upper())
        if indicator_set is None:
            log.debug("Dropping bar for unsubscribed symbol %s", update.symbol)
            return None

        snapshot = indicator_set.update(update.bar)
        self._pending[indicator_set.symbol] = snapshot
        return snapshot

    def apply_batch(self, updates: Iterable[BarUpdate]) -> list[Snapshot]:
        """
        Apply updates in arrival order. Malformed bars are logged and skipped.
        """
        snapshots = []
        for update in updates:
            try:
                snapshot = self.apply(update)
            except MalformedInputError as e:
                log.error("Rejected bar for %s: %s", update.symbol, e)
                continue
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def flush(self) -> int:
        """Publish pending snapshots to the store; return how many were published."""
        if not self._pending:
            return 0
        pending = list(self._pending.values())
        self._pending.clear()
        self.store.publish_many(pending)
        return len(pending)

    async def submit(self, update: BarUpdate) -> None:
        """Queue an update, waiting while the queue is full."""
        await self._queue.put(update)

    async def submit_many(self, updates: Iterable[BarUpdate]) -> None:
        for update in updates:
            await self._queue.put(update)

    def submit_threadsafe(self, update: BarUpdate) -> None:
        """
        Queue an update from a non-event-loop thread (e.g. a transport callback).

        Requires `run()` to be active. When the queue is full, forming bars
        are dropped and logged; final bars are held in arrival order until
        the queue has room.
        """
        if self._loop is None:
            raise RuntimeError("IndicatorEngine is not running")
        self._loop.call_soon_threadsafe(self._put_nowait, update)

    def _put_nowait(self, update: BarUpdate) -> None:
        if not self._backlog:
            try:
                self._queue.put_nowait(update)
                return
            except asyncio.QueueFull:
                pass

        if not update.bar.is_final:
            log.warning("Inbound queue full; dropping forming bar for %s", update.symbol)
            return

        self._backlog.append(update)
        if self._backlog_task is None or self._backlog_task.done():
            self._backlog_task = asyncio.get_running_loop().create_task(self._feed_backlog())

    async def _feed_backlog(self) -> None:
        log.warning("Inbound queue full; holding final bars until it drains")
        while self._backlog:
            await self._queue.put(self._backlog[0])
            self._backlog.popleft()

    async def drain(self) -> None:
        """Wait until every queued update has been applied, then flush."""
        while self._backlog_task is not None and not self._backlog_task.done():
            await self._backlog_task
        await self._queue.join()
        self.flush()

    async def _consume(self) -> None:
        while True:
            batch = [await self._queue.get()]
            while len(batch) < self.batch_size:
                try:
                    batch.append(self._queue.get_nowait())
                except asyncio.QueueEmpty:
                    break

            try:
                snapshots = self.apply_batch(batch)
                log.debug("Applied %d bars (%d snapshots)", len(batch), len(snapshots))
                if self.flush_interval <= 0:
                    self.flush()
            except Exception:
                log.exception("Error applying bar batch")
            finally:
                for _ in batch:
                    self._queue.task_done()

    async def _flush_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.flush()

    async def run(self) -> None:
        """
        Consume the inbound queue until cancelled.

        Cancellation stops the consumer and flusher and performs a final flush.
        """
        self._loop = asyncio.get_running_loop()
        log.info("Indicator engine started for %d symbols", len(self._sets))

        tasks = [asyncio.create_task(self._consume())]
        if self.flush_interval > 0:
            tasks.append(asyncio.create_task(self._flush_periodically()))

        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            log.info("Indicator engine cancelled")
        finally:
            if self._backlog_task is not None:
                tasks.append(self._backlog_task)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.flush()
            self._loop = None

    def __repr__(self) -> str:
        return f"IndicatorEngine(symbols={len(self._sets)}, queued={self._queue.qsize()})"
