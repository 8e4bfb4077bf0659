import pytest

from candledesk.series import SeriesBuffer


class TestSeriesBuffer:
    def test_rejects_non_positive_capacity(self) -> None:
        with pytest.raises(ValueError):
            SeriesBuffer(capacity=0)

    def test_push_appends_oldest_first(self) -> None:
        buf = SeriesBuffer(capacity=5)
        for p in (1.0, 2.0, 3.0):
            buf.push(p)

        assert list(buf.to_array()) == [1.0, 2.0, 3.0]
        assert buf.latest == 3.0
        assert len(buf) == 3

    @pytest.mark.parametrize("extra", [1, 7, 600])
    def test_overflow_keeps_last_capacity_prices(self, extra: int) -> None:
        capacity = 10
        buf = SeriesBuffer(capacity=capacity)
        prices = [float(i) for i in range(capacity + extra)]
        for p in prices:
            buf.push(p)

        assert len(buf) == capacity
        assert list(buf.to_array()) == prices[-capacity:]

    def test_preloaded_prices_respect_capacity(self) -> None:
        buf = SeriesBuffer(capacity=3, prices=[1.0, 2.0, 3.0, 4.0])

        assert list(buf.to_array()) == [2.0, 3.0, 4.0]

    def test_to_array_is_read_only_copy(self) -> None:
        buf = SeriesBuffer(capacity=3, prices=[1.0, 2.0])
        arr = buf.to_array()

        with pytest.raises(ValueError):
            arr[0] = 99.0

        buf.push(3.0)
        assert list(arr) == [1.0, 2.0]

    def test_empty(self) -> None:
        buf = SeriesBuffer()

        assert buf.latest is None
        assert buf.to_array().size == 0
        assert buf.capacity == 600

    def test_clear(self) -> None:
        buf = SeriesBuffer(capacity=3, prices=[1.0])
        buf.clear()

        assert len(buf) == 0

    def test_repr(self) -> None:
        assert repr(SeriesBuffer(capacity=4, prices=[1.0])) == "SeriesBuffer(prices=1/4)"
