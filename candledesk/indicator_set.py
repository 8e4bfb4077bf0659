# candledesk/indicator_set.py
"""
Per-symbol indicator aggregate.

An IndicatorSet owns the close history of one symbol together with its EMA,
RSI and MACD states. It is seeded once from historical closes and then
advanced on every closed bar; each transition returns an immutable Snapshot.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import numpy as np

from candledesk.config import Settings
from candledesk.indicators import (
    EMAState,
    MACDState,
    RSIState,
    next_ema,
    next_macd,
    next_rsi,
    seed_ema,
    seed_macd,
    seed_rsi,
)
from candledesk.indicators.base import check_period
from candledesk.marketdata import Bar, validate_bar, validate_closes
from candledesk.series import SeriesBuffer

log = logging.getLogger(__name__)


class ColdStart(Enum):
    """
    How unready indicator states are advanced by live bars.

    APPROXIMATE: the next_* functions bootstrap from the first observed
        close(s) immediately.
    RESEED: states are re-seeded from the whole buffer once it holds their
        warm-up count, and stay null until then.
    """

    APPROXIMATE = "approximate"
    RESEED = "reseed"


class Phase(Enum):
    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    LIVE = "live"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class IndicatorConfig:
    """Periods and history capacity shared by every IndicatorSet of an engine."""

    capacity: int = 600
    ema_periods: tuple[int, ...] = (12, 26, 50, 100, 200)
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    cold_start: ColdStart = ColdStart.APPROXIMATE

    def __post_init__(self) -> None:
        check_period(self.capacity, "capacity")
        object.__setattr__(self, "ema_periods", tuple(self.ema_periods))
        if not self.ema_periods:
            raise ValueError("ema_periods must not be empty")
        if len(set(self.ema_periods)) != len(self.ema_periods):
            raise ValueError("ema_periods must be unique")
        for p in self.ema_periods:
            check_period(p, "ema period")
        check_period(self.rsi_period, "rsi_period")
        check_period(self.macd_fast, "macd_fast")
        check_period(self.macd_slow, "macd_slow")
        check_period(self.macd_signal, "macd_signal")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be < macd_slow")
        object.__setattr__(self, "cold_start", ColdStart(self.cold_start))
        if self.cold_start is ColdStart.RESEED and self.capacity < self.required_history():
            raise ValueError(
                f"capacity {self.capacity} cannot hold the {self.required_history()} "
                "closes needed to reseed every indicator"
            )

    def required_history(self) -> int:
        """Closes needed for every indicator to be ready straight after seeding."""
        return max(
            max(self.ema_periods),
            self.rsi_period + 1,
            self.macd_slow + self.macd_signal - 1,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, overrides: Optional[Mapping[str, Any]] = None
    ) -> "IndicatorConfig":
        """
        Build a config from Settings, with optional overrides (e.g. the
        `indicators` section of a YAML config file).
        """
        overrides = overrides or {}
        fast, slow, signal = settings.macd_periods
        macd = overrides.get("macd", {}) or {}
        return cls(
            capacity=int(overrides.get("capacity", settings.history_capacity)),
            ema_periods=tuple(overrides.get("ema_periods", settings.ema_periods)),
            rsi_period=int(overrides.get("rsi_period", settings.rsi_period)),
            macd_fast=int(macd.get("fast", fast)),
            macd_slow=int(macd.get("slow", slow)),
            macd_signal=int(macd.get("signal", signal)),
            cold_start=ColdStart(overrides.get("cold_start", settings.cold_start)),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    Latest OHLCV and indicator values of one symbol.

    Indicator fields are None while there is not enough history; they are
    never NaN. Snapshots compare by value but are not hashable, since `emas`
    is a read-only mapping.
    """

    symbol: str
    open: float | None
    high: float | None
    low: float | None
    close: float | None
    volume: float | None
    rsi: float | None
    emas: Mapping[int, float | None]
    macd: float | None
    macd_signal: float | None
    macd_hist: float | None
    timestamp: str
    rsi_period: int = 14

    __hash__ = None  # type: ignore[assignment]

    def ema(self, period: int) -> float | None:
        return self.emas[period]

    def as_dict(self) -> dict[str, Any]:
        """Flatten to presentation keys (rsi14, ema12, ema26, ...)."""
        out: dict[str, Any] = {
            "symbol": self.symbol,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            f"rsi{self.rsi_period}": self.rsi,
        }
        for period, value in self.emas.items():
            out[f"ema{period}"] = value
        out["macd"] = self.macd
        out["macd_signal"] = self.macd_signal
        out["macd_hist"] = self.macd_hist
        out["timestamp"] = self.timestamp
        return out


@dataclass
class _States:
    emas: dict[int, EMAState]
    rsi: RSIState
    macd: MACDState
    rsi_value: float | None = None
    macd_values: tuple = field(default=(None, None, None))


class IndicatorSet:
    """
    EMA, RSI and MACD state for a single symbol.

    State machine: UNINITIALIZED -> SEEDED -> LIVE. `seed` and `update` are
    serialised by an internal lock, and inputs are validated before any
    state is touched.

    The MACD keeps its own fast/slow EMA states; they are computed by the
    same functions as the standalone EMAs and agree with them.

    Example:
        ind = IndicatorSet("BTCUSDT")
        ind.seed(historical_closes)

        snapshot = ind.update(bar)
        print(snapshot.rsi, snapshot.ema(200), snapshot.macd_hist)
    """

    def __init__(self, symbol: str, config: Optional[IndicatorConfig] = None):
        if not symbol:
            raise ValueError("symbol must not be empty")
        self.symbol = symbol
        self.config = config or IndicatorConfig()
        self._lock = threading.Lock()
        self._phase = Phase.UNINITIALIZED
        self._snapshot: Optional[Snapshot] = None
        self.buffer = SeriesBuffer(self.config.capacity)
        self._states = self._seed_states(np.empty(0, dtype=np.float64))

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def required_history(self) -> int:
        return self.config.required_history()

    def _seed_states(self, closes: np.ndarray) -> _States:
        cfg = self.config
        rsi = seed_rsi(closes, cfg.rsi_period)
        macd = seed_macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)
        return _States(
            emas={p: seed_ema(p, closes) for p in cfg.ema_periods},
            rsi=rsi,
            macd=macd,
            rsi_value=rsi.value,
            macd_values=(macd.macd, macd.signal.value, macd.histogram),
        )

    def seed(self, closes: Iterable[float], timestamp: Optional[str] = None) -> Snapshot:
        """
        Initialise every indicator from historical closes (oldest first).

        Closes beyond the buffer capacity are dropped from the oldest end
        before seeding. Calling seed again discards all previous state.

        Raises:
            MalformedInputError: if any close is not a finite positive number
        """
        prices = validate_closes(closes)

        with self._lock:
            prices = prices[-self.config.capacity:]
            self.buffer.clear()
            self.buffer.extend(prices)
            self._states = self._seed_states(prices)
            self._phase = Phase.SEEDED

            last = float(prices[-1]) if prices.size else None
            snapshot = self._snapshot = self._build_snapshot(
                open_=last,
                high=last,
                low=last,
                close=last,
                volume=0.0 if last is not None else None,
                timestamp=timestamp or _utc_now(),
            )

        if prices.size < self.required_history():
            log.debug(
                "%s seeded with %d closes; %d needed for a full warm-up",
                self.symbol,
                prices.size,
                self.required_history(),
            )
        return snapshot

    def update(self, bar: Bar) -> Snapshot:
        """
        Apply a bar and return the new snapshot.

        A bar that is still forming only refreshes the OHLCV fields. A final
        bar is pushed into the buffer and advances every indicator.

        Raises:
            MalformedInputError: if the bar fails validation
        """
        validate_bar(bar)

        with self._lock:
            if self._phase is Phase.UNINITIALIZED:
                log.debug("%s updated before seeding; bootstrapping lazily", self.symbol)

            if bar.is_final:
                self.buffer.push(bar.close)
                self._advance(bar.close)

            if bar.is_final or self._snapshot is None:
                self._snapshot = self._build_snapshot(
                    open_=bar.open,
                    high=bar.high,
                    low=bar.low,
                    close=bar.close,
                    volume=bar.volume,
                    timestamp=bar.timestamp,
                )
            else:
                # still forming: indicator fields stay as they are
                self._snapshot = replace(
                    self._snapshot,
                    open=bar.open,
                    high=bar.high,
                    low=bar.low,
                    close=bar.close,
                    volume=bar.volume,
                    timestamp=bar.timestamp,
                )

            self._phase = Phase.LIVE
            return self._snapshot

    def _advance(self, close: float) -> None:
        st = self._states
        cfg = self.config

        # RESEED recomputes unready states from the buffer, which already holds `close`
        history = self.buffer.to_array() if cfg.cold_start is ColdStart.RESEED else None

        for period, ema in st.emas.items():
            if history is not None and not ema.ready():
                st.emas[period] = seed_ema(period, history)
            else:
                st.emas[period] = next_ema(ema, close)

        if history is not None and not st.rsi.ready():
            st.rsi = seed_rsi(history, cfg.rsi_period)
            st.rsi_value = st.rsi.value
        else:
            st.rsi, st.rsi_value = next_rsi(st.rsi, close)

        if history is not None and not st.macd.ready():
            st.macd = seed_macd(history, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)
            st.macd_values = (st.macd.macd, st.macd.signal.value, st.macd.histogram)
        else:
            st.macd, values = next_macd(st.macd, close)
            st.macd_values = tuple(values)

    def _build_snapshot(self, *, open_, high, low, close, volume, timestamp) -> Snapshot:
        st = self._states
        macd, signal, hist = st.macd_values
        return Snapshot(
            symbol=self.symbol,
            open=open_,
            high=high,
            low=low,
            close=close,
            volume=volume,
            rsi=st.rsi_value,
            emas=MappingProxyType({p: s.value for p, s in st.emas.items()}),
            macd=macd,
            macd_signal=signal,
            macd_hist=hist,
            timestamp=timestamp,
            rsi_period=self.config.rsi_period,
        )

    def __repr__(self) -> str:
        return (
            f"IndicatorSet(symbol={self.symbol}, phase={self._phase.value}, "
            f"closes={len(self.buffer)}/{self.buffer.capacity})"
        )
