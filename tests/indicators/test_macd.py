import pytest

from candledesk.indicators.ema import EMAState, next_ema, seed_ema
from candledesk.indicators.macd import MACDState, MACDValues, next_macd, seed_macd


def reference_macd(closes: list[float], fast: int, slow: int, signal: int) -> tuple[float, float]:
    """MACD line and signal recomputed from scratch at the last close."""
    line = [
        seed_ema(fast, closes[: i + 1]).value - seed_ema(slow, closes[: i + 1]).value
        for i in range(slow - 1, len(closes))
    ]
    return line[-1], seed_ema(signal, line).value


class TestMACD:
    @pytest.mark.parametrize("n", [0, 10, 40])
    def test_rejects_fast_not_below_slow(self, n) -> None:
        with pytest.raises(ValueError, match="fast period must be < slow period"):
            seed_macd([1.0] * n, fast=26, slow=12)
        with pytest.raises(ValueError, match="fast period must be < slow period"):
            seed_macd([1.0] * n, fast=12, slow=12)

    def test_rejects_non_positive_periods(self) -> None:
        with pytest.raises(ValueError):
            seed_macd([1.0] * 40, fast=0)
        with pytest.raises(ValueError):
            seed_macd([1.0] * 40, signal=0)

    def test_flat_series_is_zero(self) -> None:
        state = seed_macd([100.0] * 50)

        assert state.macd == pytest.approx(0.0)
        assert state.signal.value == pytest.approx(0.0)
        assert state.histogram == pytest.approx(0.0)
        assert state.ready() is True

    def test_macd_unset_while_slow_ema_unset(self) -> None:
        state = seed_macd([float(i) for i in range(1, 20)])

        assert state.fast.ready() is True
        assert state.slow.ready() is False
        assert state.macd is None
        assert state.histogram is None

    def test_signal_unset_until_enough_macd_values(self) -> None:
        # 33 closes give 8 MACD values; the signal needs 9
        closes = [float(i) for i in range(1, 34)]
        state = seed_macd(closes)
        assert state.macd is not None
        assert state.signal.value is None

        state = seed_macd(closes + [34.0])
        assert state.signal.value is not None
        assert state.ready() is True

    def test_fast_and_slow_agree_with_standalone_emas(self, closes) -> None:
        state = seed_macd(closes, 12, 26, 9)

        assert state.fast.value == pytest.approx(seed_ema(12, closes).value, rel=1e-12)
        assert state.slow.value == pytest.approx(seed_ema(26, closes).value, rel=1e-12)
        assert state.macd == pytest.approx(
            seed_ema(12, closes).value - seed_ema(26, closes).value, rel=1e-9, abs=1e-12
        )

    def test_matches_reference(self, closes) -> None:
        state = seed_macd(closes[:120], 12, 26, 9)
        macd, signal = reference_macd(closes[:120], 12, 26, 9)

        assert state.macd == pytest.approx(macd, rel=1e-9, abs=1e-12)
        assert state.signal.value == pytest.approx(signal, rel=1e-9, abs=1e-12)

    def test_histogram_is_macd_minus_signal(self, closes) -> None:
        state = seed_macd(closes)

        assert state.histogram == state.macd - state.signal.value

        state, values = next_macd(state, 101.0)
        assert values.histogram == values.macd - values.signal

    def test_seed_then_next_equals_longer_seed(self, closes) -> None:
        for n in (34, 35, len(closes) - 1):
            stepped, values = next_macd(seed_macd(closes[:n]), closes[n])
            seeded = seed_macd(closes[: n + 1])

            assert stepped.macd == pytest.approx(seeded.macd, rel=1e-12, abs=1e-12)
            assert values.signal == pytest.approx(seeded.signal.value, rel=1e-12, abs=1e-12)
            assert values.histogram == pytest.approx(seeded.histogram, rel=1e-12, abs=1e-12)

    def test_next_order_is_fast_slow_macd_signal(self) -> None:
        state = seed_macd([float(i) for i in range(1, 40)], fast=3, slow=5, signal=2)

        stepped, values = next_macd(state, 50.0)

        fast = next_ema(state.fast, 50.0)
        slow = next_ema(state.slow, 50.0)
        signal = next_ema(state.signal, fast.value - slow.value)
        assert stepped.fast == fast
        assert stepped.slow == slow
        assert values == MACDValues(fast.value - slow.value, signal.value, fast.value - slow.value - signal.value)

    def test_cold_start_from_empty_state(self) -> None:
        state = MACDState(fast=EMAState(12), slow=EMAState(26), signal=EMAState(9))

        state, values = next_macd(state, 100.0)

        # both EMAs bootstrap to the price, so the line starts at zero
        assert values.macd == 0.0
        assert values.signal == 0.0
        assert values.histogram == 0.0

    def test_empty_series(self) -> None:
        state = seed_macd([])

        assert state.macd is None
        assert state.fast.value is None
        assert state.signal.value is None

    def test_warmup_periods(self) -> None:
        assert seed_macd([], 12, 26, 9).warmup_periods() == 26 + 9 - 1
