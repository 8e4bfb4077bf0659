from .feed import ReplaySource, load_bars_csv

__all__ = ["ReplaySource", "load_bars_csv"]
