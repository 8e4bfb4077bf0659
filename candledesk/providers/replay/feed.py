import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from candledesk.marketdata import Bar, BarUpdate
from candledesk.providers.base import BarFeed, HistorySource

if TYPE_CHECKING:
    from candledesk.engine import IndicatorEngine

log = logging.getLogger(__name__)


def _parse_ts(ts: str) -> datetime:
    # Normalise common variants to something datetime.fromisoformat understands.
    # Accepts:
    # - 2025-12-04T19:20:00Z
    # - 2025/12/04T19:20:00Z
    # - 2025-12-04 19:20:00Z
    s = ts.strip()

    # Convert YYYY/MM/DD -> YYYY-MM-DD (only the date part)
    if len(s) >= 10 and s[4] == "/" and s[7] == "/":
        s = f"{s[0:4]}-{s[5:7]}-{s[8:]}"

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    s = s.replace(" ", "T", 1)

    return datetime.fromisoformat(s)


def _parse_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    s = str(value).strip().lower()
    if s == "":
        return default
    if s in {"1", "true", "yes", "y", "t"}:
        return True
    if s in {"0", "false", "no", "n", "f"}:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


class ReplaySource(HistorySource, BarFeed):
    """
    Offline history source and bar feed.

    - get_closes serves the last `limit` closes of the in-memory history
    - run() submits the stream bars to the engine in timestamp order across
      all symbols (ties keep per-symbol order)
    """

    def __init__(
        self,
        history: dict[str, list[Bar]],
        stream: Optional[dict[str, list[Bar]]] = None,
    ):
        self._history = {s.upper(): list(bars) for s, bars in history.items()}
        self._stream = {s.upper(): list(bars) for s, bars in (stream or {}).items()}
        self._started = False
        self._connected = False

    @classmethod
    def from_csv(
        cls,
        path: str | Path,
        *,
        symbol: str,
        history_bars: int,
        delimiter: str = ",",
    ) -> "ReplaySource":
        """
        Load one symbol's bars from CSV and split them into history and stream.

        The first `history_bars` rows seed the symbol; the rest are replayed.

        CSV requirements (column names are case-insensitive):
          - timestamp column (timestamp/time/datetime/date)
          - open/high/low/close columns
          - optional volume and is_final columns
        """
        bars = load_bars_csv(path, delimiter=delimiter)
        if history_bars < 0:
            raise ValueError("history_bars must be >= 0")
        return cls(
            history={symbol: bars[:history_bars]},
            stream={symbol: bars[history_bars:]},
        )

    async def start(self) -> None:
        self._started = True

    async def close(self) -> None:
        self._started = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def get_closes(self, symbol: str, timeframe: str, limit: int) -> list[float]:
        if limit <= 0:
            return []
        bars = [b for b in self._history.get(symbol.upper(), []) if b.is_final]
        return [b.close for b in bars[-limit:]]

    async def run(self, engine: "IndicatorEngine") -> None:
        await self.connect()

        stream: list[tuple[datetime, int, BarUpdate]] = []
        for symbol, bars in self._stream.items():
            for seq, bar in enumerate(bars):
                stream.append((_parse_ts(bar.timestamp), seq, BarUpdate(symbol=symbol, bar=bar)))

        stream.sort(key=lambda x: (x[0], x[1]))
        log.info("Replaying %d bars for %d symbols", len(stream), len(self._stream))

        try:
            for _, _, update in stream:
                await engine.submit(update)
        finally:
            await self.disconnect()


def load_bars_csv(path: str | Path, *, delimiter: str = ",") -> list[Bar]:
    path = Path(path)

    def norm(s: str) -> str:
        return s.strip().lower()

    # canonical -> accepted aliases
    aliases = {
        "timestamp": {"timestamp", "time", "datetime", "date"},
        "open": {"open", "o"},
        "high": {"high", "h"},
        "low": {"low", "l"},
        "close": {"close", "c"},
        "volume": {"volume", "vol", "v"},
        "is_final": {"is_final", "final", "closed", "x"},
    }

    bars: list[Bar] = []

    with path.open("r", newline="") as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            raise ValueError("CSV has no header row")

        header_map = {norm(h): h for h in reader.fieldnames if h is not None}

        def pick(key: str) -> Optional[str]:
            for a in aliases[key]:
                if a in header_map:
                    return header_map[a]
            return None

        keys = {name: pick(name) for name in aliases}
        missing = [
            name
            for name in ("timestamp", "open", "high", "low", "close")
            if keys[name] is None
        ]
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

        def fnum(val: Optional[str], default: float = 0.0) -> float:
            if val is None:
                return default
            s = str(val).strip()
            return default if s == "" else float(s)

        for row in reader:
            ts = (row.get(keys["timestamp"]) or "").strip()
            if not ts:
                continue

            # Normalise to ...Z when no offset is given
            if not (ts.endswith("Z") or "+" in ts[10:] or "-" in ts[10:]):
                ts = ts + "Z"

            bars.append(
                Bar(
                    timestamp=ts,
                    open=fnum(row.get(keys["open"])),
                    high=fnum(row.get(keys["high"])),
                    low=fnum(row.get(keys["low"])),
                    close=fnum(row.get(keys["close"])),
                    volume=fnum(row.get(keys["volume"])) if keys["volume"] else 0.0,
                    is_final=_parse_bool(row.get(keys["is_final"])) if keys["is_final"] else True,
                )
            )

    return bars
