# candledesk/config.py
"""
Configuration management for the candledesk library.

Settings are loaded from environment variables or a .env file.

Optional environment variables:
    LOG_LEVEL                    - Logging level (default: INFO)
    CANDLEDESK_TIMEFRAME         - Bar timeframe to subscribe to (default: 1m)
    CANDLEDESK_HISTORY_CAPACITY  - Closes kept per symbol (default: 600)
    CANDLEDESK_EMA_PERIODS       - Comma separated EMA periods (default: 12,26,50,100,200)
    CANDLEDESK_RSI_PERIOD        - RSI period (default: 14)
    CANDLEDESK_MACD              - fast,slow,signal (default: 12,26,9)
    CANDLEDESK_COLD_START        - "approximate" or "reseed" (default: approximate)
    CANDLEDESK_QUEUE_MAXSIZE     - Inbound bar queue size (default: 1000)
    CANDLEDESK_BATCH_SIZE        - Bars applied per consumer batch (default: 100)
    CANDLEDESK_FLUSH_INTERVAL    - Seconds between store flushes (default: 0.25)

Example .env file:
    LOG_LEVEL=DEBUG
    CANDLEDESK_TIMEFRAME=15m
    CANDLEDESK_EMA_PERIODS=9,21,50
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

cwd_env = Path.cwd() / ".env"
if cwd_env.exists():
    load_dotenv(dotenv_path=cwd_env)
else:
    # Fallback to standard behavior (searches parents)
    load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_ints(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return tuple(int(p) for p in raw.split(",") if p.strip())
    except ValueError:
        raise ValueError(f"{name} must be comma separated integers, got {raw!r}") from None


@dataclass
class Settings:
    """
    Global settings for the candledesk library.

    Values are loaded from environment variables on initialization.
    Users can override these programmatically if needed:

        from candledesk.config import settings
        settings.history_capacity = 1000
    """

    log_level: str = "INFO"
    timeframe: str = "1m"
    history_capacity: int = 600
    ema_periods: tuple[int, ...] = (12, 26, 50, 100, 200)
    rsi_period: int = 14
    macd_periods: tuple[int, ...] = (12, 26, 9)
    cold_start: str = "approximate"
    queue_maxsize: int = 1000
    batch_size: int = 100
    flush_interval: float = 0.25

    def __post_init__(self) -> None:
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.timeframe = os.getenv("CANDLEDESK_TIMEFRAME", self.timeframe)
        self.history_capacity = _env_int("CANDLEDESK_HISTORY_CAPACITY", self.history_capacity)
        self.ema_periods = _env_ints("CANDLEDESK_EMA_PERIODS", self.ema_periods)
        self.rsi_period = _env_int("CANDLEDESK_RSI_PERIOD", self.rsi_period)
        self.macd_periods = _env_ints("CANDLEDESK_MACD", self.macd_periods)
        self.cold_start = os.getenv("CANDLEDESK_COLD_START", self.cold_start).lower()
        self.queue_maxsize = _env_int("CANDLEDESK_QUEUE_MAXSIZE", self.queue_maxsize)
        self.batch_size = _env_int("CANDLEDESK_BATCH_SIZE", self.batch_size)
        self.flush_interval = _env_float("CANDLEDESK_FLUSH_INTERVAL", self.flush_interval)

    def validate(self) -> None:
        """
        Validate that settings are usable.

        Raises:
            ValueError: If any setting is out of range
        """
        problems = []
        if self.history_capacity <= 0:
            problems.append("CANDLEDESK_HISTORY_CAPACITY must be > 0")
        if not self.ema_periods or any(p <= 0 for p in self.ema_periods):
            problems.append("CANDLEDESK_EMA_PERIODS must be positive integers")
        if self.rsi_period <= 0:
            problems.append("CANDLEDESK_RSI_PERIOD must be > 0")
        if len(self.macd_periods) != 3 or any(p <= 0 for p in self.macd_periods):
            problems.append("CANDLEDESK_MACD must be three positive integers: fast,slow,signal")
        elif self.macd_periods[0] >= self.macd_periods[1]:
            problems.append("CANDLEDESK_MACD fast period must be < slow period")
        if self.cold_start not in ("approximate", "reseed"):
            problems.append(
                f"CANDLEDESK_COLD_START must be 'approximate' or 'reseed', got '{self.cold_start}'"
            )
        if self.queue_maxsize <= 0:
            problems.append("CANDLEDESK_QUEUE_MAXSIZE must be > 0")
        if self.batch_size <= 0:
            problems.append("CANDLEDESK_BATCH_SIZE must be > 0")
        if self.flush_interval < 0:
            problems.append("CANDLEDESK_FLUSH_INTERVAL must be >= 0")

        if problems:
            raise ValueError("Invalid configuration: " + "; ".join(problems))


def load_engine_config(config_path: str | Path) -> dict:
    """
    Load engine configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Dictionary containing configuration
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_file) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        raise ValueError(f"Empty config file: {config_path}")
    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    return config


# Global settings instance - loaded when module is imported
settings = Settings()
