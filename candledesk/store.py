# candledesk/store.py
"""
Latest snapshot per symbol, shared with presentation consumers.
"""

import logging
import threading
from collections.abc import Mapping
from typing import Callable, Iterable, Iterator

from candledesk.indicator_set import Snapshot

log = logging.getLogger(__name__)

SnapshotListener = Callable[[list[Snapshot]], None]


class SnapshotStore(Mapping):
    """
    Read-only mapping of symbol -> latest Snapshot.

    Consumers read it like a dict or through `sorted()` for tabular display.
    Only the engine writes, via `publish`/`publish_many`/`discard`.
    Listeners registered with `add_listener` are called with the snapshots
    of every publish call.

    Example:
        store = SnapshotStore()
        store.add_listener(lambda snaps: print([s.symbol for s in snaps]))

        for snap in store.sorted():
            print(snap.as_dict())
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: dict[str, Snapshot] = {}
        self._listeners: list[SnapshotListener] = []

    def __getitem__(self, symbol: str) -> Snapshot:
        with self._lock:
            return self._snapshots[symbol]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._snapshots))

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def sorted(self) -> list[Snapshot]:
        """Return every snapshot ordered by symbol, ascending."""
        with self._lock:
            return [self._snapshots[s] for s in sorted(self._snapshots)]

    def publish(self, snapshot: Snapshot) -> None:
        self.publish_many([snapshot])

    def publish_many(self, snapshots: Iterable[Snapshot]) -> None:
        batch = list(snapshots)
        if not batch:
            return

        with self._lock:
            for snap in batch:
                self._snapshots[snap.symbol] = snap
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(batch)
            except Exception:
                log.exception("Snapshot listener %r failed", listener)

    def discard(self, symbol: str) -> None:
        with self._lock:
            self._snapshots.pop(symbol, None)

    def add_listener(self, listener: SnapshotListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def __repr__(self) -> str:
        return f"SnapshotStore(symbols={len(self)})"
