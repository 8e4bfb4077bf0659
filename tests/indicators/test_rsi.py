import math

import pytest

from candledesk.indicators.rsi import RSIState, compute_rsi, next_rsi, seed_rsi


def reference_rsi(closes: list[float], period: int) -> float:
    gains = [max(b - a, 0.0) for a, b in zip(closes, closes[1:])]
    losses = [max(a - b, 0.0) for a, b in zip(closes, closes[1:])]
    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for g, l in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + g) / period
        avg_loss = (avg_loss * (period - 1) + l) / period
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


class TestRSI:
    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError):
            RSIState(period=0)
        with pytest.raises(ValueError):
            seed_rsi([1.0, 2.0], period=-3)

    def test_not_ready_until_period_plus_one_closes(self) -> None:
        state = seed_rsi([10.0, 11.0, 12.0], period=3)

        assert state.ready() is False
        assert state.value is None
        assert state.prev_close == 12.0

        state = seed_rsi([10.0, 11.0, 12.0, 13.0], period=3)
        assert state.ready() is True

    def test_empty_series_leaves_prev_close_unset(self) -> None:
        state = seed_rsi([], period=14)

        assert state.prev_close is None
        assert state.avg_gain is None
        assert state.avg_loss is None

    def test_monotonic_increase_is_100(self) -> None:
        state = seed_rsi([float(i) for i in range(1, 16)], period=14)

        assert state.avg_loss == 0.0
        assert state.value == 100.0

    def test_all_losses_returns_0(self) -> None:
        state = seed_rsi([13.0, 12.0, 11.0, 10.0], period=3)

        assert state.value == pytest.approx(0.0)

    def test_known_seed_value(self) -> None:
        # Gains: +2, +0, +2 -> avg_gain = 4/3
        # Losses: 0, +1, 0 -> avg_loss = 1/3
        state = seed_rsi([10.0, 12.0, 11.0, 13.0], period=3)

        assert state.avg_gain == pytest.approx(4.0 / 3.0)
        assert state.avg_loss == pytest.approx(1.0 / 3.0)
        assert state.value == pytest.approx(80.0)
        assert state.prev_close == 13.0

    def test_wilder_smoothing_step_after_seed(self) -> None:
        state = seed_rsi([10.0, 12.0, 11.0, 13.0], period=3)

        state, value = next_rsi(state, 14.0)  # gain=1, loss=0

        avg_gain = (4.0 / 3.0 * 2.0 + 1.0) / 3.0
        avg_loss = (1.0 / 3.0 * 2.0 + 0.0) / 3.0
        expected = 100.0 - (100.0 / (1.0 + avg_gain / avg_loss))

        assert value == pytest.approx(expected)
        assert state.prev_close == 14.0

    @pytest.mark.parametrize("period", [2, 3, 14])
    def test_seed_matches_reference(self, period: int, closes) -> None:
        assert seed_rsi(closes, period).value == pytest.approx(reference_rsi(closes, period), rel=1e-9)

    @pytest.mark.parametrize("period", [3, 14])
    def test_seed_then_next_equals_longer_seed(self, period: int, closes) -> None:
        for n in (period + 1, period + 2, len(closes) - 1):
            stepped, value = next_rsi(seed_rsi(closes[:n], period), closes[n])
            seeded = seed_rsi(closes[: n + 1], period)

            assert stepped.avg_gain == pytest.approx(seeded.avg_gain, rel=1e-12)
            assert stepped.avg_loss == pytest.approx(seeded.avg_loss, rel=1e-12)
            assert value == pytest.approx(seeded.value, rel=1e-12)

    def test_zero_average_loss_never_divides(self) -> None:
        state = RSIState(period=3, avg_gain=0.0, avg_loss=0.0, prev_close=10.0)

        state, value = next_rsi(state, 10.0)

        assert value == 100.0
        assert not math.isnan(value)

    def test_compute_rsi_short_circuits(self) -> None:
        assert compute_rsi(5.0, 0.0) == 100.0
        assert compute_rsi(0.0, 5.0) == 0.0
        assert compute_rsi(1.0, 1.0) == pytest.approx(50.0)

    def test_cold_start_records_prev_close_first(self) -> None:
        state, value = next_rsi(RSIState(period=14), 100.0)

        assert value is None
        assert state.prev_close == 100.0
        assert state.ready() is False

    def test_cold_start_bootstraps_from_single_delta(self) -> None:
        state, _ = next_rsi(RSIState(period=14), 100.0)
        state, value = next_rsi(state, 103.0)

        assert state.avg_gain == pytest.approx(3.0)
        assert state.avg_loss == 0.0
        assert value == 100.0

        state, value = next_rsi(state, 102.0)
        assert state.avg_gain == pytest.approx(3.0 * 13.0 / 14.0)
        assert state.avg_loss == pytest.approx(1.0 / 14.0)
        assert 0.0 < value < 100.0

    def test_short_seed_then_update_bootstraps(self) -> None:
        state = seed_rsi([100.0, 101.0], period=14)
        state, value = next_rsi(state, 99.0)

        assert state.avg_gain == 0.0
        assert state.avg_loss == pytest.approx(2.0)
        assert value == pytest.approx(0.0)

    def test_warmup_periods(self) -> None:
        assert RSIState(period=14).warmup_periods() == 15
