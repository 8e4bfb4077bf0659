"""Replay a CSV of bars through the indicator engine and print the result."""
import sys

from candledesk import SymbolSubscription, run
from candledesk.providers.replay import ReplaySource

COLUMNS = ["symbol", "close", "rsi14", "ema12", "ema26", "ema200", "macd_hist", "timestamp"]


def fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.4f}"
    return str(value)


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: replay_csv.py BARS.csv SYMBOL [HISTORY_BARS]")
        sys.exit(2)

    path, symbol = sys.argv[1], sys.argv[2]
    history_bars = int(sys.argv[3]) if len(sys.argv) > 3 else 500

    source = ReplaySource.from_csv(path, symbol=symbol, history_bars=history_bars)
    engine = run(source, source, [SymbolSubscription(symbol, "1m")])

    if engine is not None:
        print("  ".join(COLUMNS))
        for snap in engine.store.sorted():
            row = snap.as_dict()
            print("  ".join(fmt(row.get(c)) for c in COLUMNS))
