import pytest

from candledesk.subscriptions import VALID_TIMEFRAMES, SymbolSubscription


class TestSymbolSubscription:
    def test_defaults(self) -> None:
        sub = SymbolSubscription("BTCUSDT")

        assert sub.symbol == "BTCUSDT"
        assert sub.timeframe == "1m"

    def test_symbol_normalised(self) -> None:
        assert SymbolSubscription(" ethusdt ").symbol == "ETHUSDT"

    @pytest.mark.parametrize("timeframe", VALID_TIMEFRAMES)
    def test_valid_timeframes(self, timeframe) -> None:
        assert SymbolSubscription("BTCUSDT", timeframe).timeframe == timeframe

    def test_invalid_timeframe(self) -> None:
        with pytest.raises(ValueError, match="Invalid timeframe"):
            SymbolSubscription("BTCUSDT", "5s")

    @pytest.mark.parametrize("symbol", ["", "   "])
    def test_empty_symbol(self, symbol) -> None:
        with pytest.raises(ValueError):
            SymbolSubscription(symbol)

    def test_hashable_and_equal(self) -> None:
        assert SymbolSubscription("btcusdt", "1h") == SymbolSubscription("BTCUSDT", "1h")
        assert len({SymbolSubscription("BTCUSDT"), SymbolSubscription("btcusdt")}) == 1
