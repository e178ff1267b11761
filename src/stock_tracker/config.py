from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .candles import parse_window_ms
from .projector import CHART_KINDS


@dataclass(frozen=True)
class Config:
    market_api_base_url: str
    poll_interval_seconds: float
    max_history_points: int
    retention_hours: float
    candle_window: str
    candle_interval_ms: int
    candle_commit_slack_ms: int
    fetch_timeout_seconds: float
    fetch_historical_candles: bool
    volume_source: str
    storage_path: str
    tracker_api_port: int
    default_symbols: list[str]
    default_chart_kind: str
    default_timeframe_minutes: int

    @property
    def retention_ms(self) -> int:
        return int(self.retention_hours * 60 * 60 * 1000)



def _bool_from_env(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}



def _symbols_from_env(value: str) -> list[str]:
    symbols: list[str] = []
    for raw in value.split(","):
        symbol = raw.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return symbols



def load_config() -> Config:
    load_dotenv()

    poll_interval_seconds = float(os.getenv("POLL_INTERVAL_SECONDS", "15"))
    if poll_interval_seconds <= 0:
        raise ValueError("POLL_INTERVAL_SECONDS must be > 0")

    max_history_points = int(os.getenv("MAX_HISTORY_POINTS", "500"))
    if max_history_points <= 0:
        raise ValueError("MAX_HISTORY_POINTS must be > 0")

    retention_hours = float(os.getenv("RETENTION_HOURS", "24"))
    if retention_hours <= 0:
        raise ValueError("RETENTION_HOURS must be > 0")

    candle_window = os.getenv("CANDLE_WINDOW", "1m").strip().lower()
    candle_interval_ms = parse_window_ms(candle_window)
    candle_commit_slack_ms = int(float(os.getenv("CANDLE_COMMIT_SLACK_SECONDS", "5")) * 1000)
    if not 0 <= candle_commit_slack_ms < candle_interval_ms:
        raise ValueError("CANDLE_COMMIT_SLACK_SECONDS must be >= 0 and shorter than CANDLE_WINDOW")

    volume_source = os.getenv("VOLUME_SOURCE", "random").strip().lower()
    if volume_source not in {"random", "zero"}:
        raise ValueError(f"VOLUME_SOURCE must be 'random' or 'zero', got '{volume_source}'")

    default_chart_kind = os.getenv("DEFAULT_CHART_KIND", "area").strip().lower()
    if default_chart_kind not in CHART_KINDS:
        raise ValueError(f"DEFAULT_CHART_KIND must be one of {', '.join(CHART_KINDS)}")

    default_timeframe_minutes = int(os.getenv("DEFAULT_TIMEFRAME_MINUTES", "30"))
    if default_timeframe_minutes <= 0:
        raise ValueError("DEFAULT_TIMEFRAME_MINUTES must be > 0")

    return Config(
        market_api_base_url=os.getenv(
            "MARKET_API_BASE_URL",
            "http://localhost:8080/api",
        ).strip().rstrip("/"),
        poll_interval_seconds=poll_interval_seconds,
        max_history_points=max_history_points,
        retention_hours=retention_hours,
        candle_window=candle_window,
        candle_interval_ms=candle_interval_ms,
        candle_commit_slack_ms=candle_commit_slack_ms,
        fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "10")),
        fetch_historical_candles=_bool_from_env(os.getenv("FETCH_HISTORICAL_CANDLES"), True),
        volume_source=volume_source,
        storage_path=os.getenv("STORAGE_PATH", "logs/stock_tracker.sqlite3").strip(),
        tracker_api_port=int(os.getenv("TRACKER_API_PORT", "8000")),
        default_symbols=_symbols_from_env(os.getenv("DEFAULT_SYMBOLS", "AAPL,GOOGL")),
        default_chart_kind=default_chart_kind,
        default_timeframe_minutes=default_timeframe_minutes,
    )
