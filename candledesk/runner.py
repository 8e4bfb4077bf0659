# candledesk/runner.py
"""
Engine orchestration and execution.
"""

import asyncio
import logging
import sys
from typing import Iterable, Optional

from .config import settings
from .engine import IndicatorEngine
from .indicator_set import IndicatorConfig
from .providers.base import BarFeed, HistorySource
from .store import SnapshotStore
from .subscriptions import SymbolSubscription

log = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """
    Configure root logger with console output.

    By default, this is non-destructive: if the root logger already has handlers,
    it will do nothing (assuming the application has configured logging).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        force: If True, clear existing handlers and force this configuration
    """
    root_logger = logging.getLogger()

    if root_logger.hasHandlers() and not force:
        return

    root_logger.setLevel(level.upper())

    if force:
        root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


async def run_engine(
    source: HistorySource,
    feed: BarFeed,
    subscriptions: Iterable[SymbolSubscription | str],
    config: Optional[IndicatorConfig] = None,
    store: Optional[SnapshotStore] = None,
) -> IndicatorEngine:
    """
    Seed every subscription from `source`, then apply bars from `feed`
    until the feed finishes.

    Returns:
        The engine, with every fed bar applied and published to its store
    """
    engine = IndicatorEngine(config, store)

    await source.start()
    try:
        for sub in subscriptions:
            engine.subscribe(sub)

        if not engine.symbols:
            log.warning("No symbols subscribed - nothing to do")
            return engine

        await engine.warmup_from_source(source)

        engine_task = asyncio.create_task(engine.run())
        try:
            await feed.run(engine)
            await engine.drain()
        finally:
            engine_task.cancel()
            await asyncio.gather(engine_task, return_exceptions=True)
    finally:
        await source.close()

    return engine


def run(
    source: HistorySource,
    feed: BarFeed,
    subscriptions: Iterable[SymbolSubscription | str],
    config: Optional[IndicatorConfig] = None,
    log_level: str | None = None,
    setup_logging: bool = True,
) -> Optional[IndicatorEngine]:
    """
    Main entry point for running the indicator engine.

    Args:
        source: Provides the historical closes used to seed each symbol
        feed: Delivers live or replayed bars
        subscriptions: Symbols (or SymbolSubscriptions) to maintain
        config: Indicator periods/capacity (default: from settings)
        log_level: Optional log level override
        setup_logging: If True, configure basic logging

    Example:
        source = ReplaySource.from_csv("btc.csv", symbol="BTCUSDT", history_bars=500)
        engine = run(source, source, ["BTCUSDT"])
        for snap in engine.store.sorted():
            print(snap.as_dict())
    """
    if setup_logging:
        level = log_level or settings.log_level
        configure_logging(level)

    log.info("=" * 70)
    log.info("Candledesk Indicator Engine")
    log.info("=" * 70)

    try:
        settings.validate()
    except ValueError as e:
        log.error("Configuration error: %s", e)
        sys.exit(1)

    engine = None
    try:
        engine = asyncio.run(run_engine(source, feed, list(subscriptions), config))
    except KeyboardInterrupt:
        log.info("")
        log.info("-" * 70)
        log.info("Interrupted by user - shutting down gracefully")
    except Exception as e:
        log.exception("Fatal error in engine runner: %s", e)
        sys.exit(1)
    finally:
        log.info("=" * 70)
        log.info("Candledesk shut down complete")
        log.info("=" * 70)

    return engine
