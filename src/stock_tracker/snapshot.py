from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import Candle, PricePoint, Quote, SymbolState
from .retention import RetentionPolicy

logger = logging.getLogger(__name__)


class PersistedPricePoint(BaseModel):
    timestamp: int
    price: float


class PersistedCandle(BaseModel):
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class PersistedSymbol(BaseModel):
    """One symbol's record as stored.

    Records written by older versions may lack either history array or store
    it as null; both read as empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    quote: Quote | None = None
    price_history: list[PersistedPricePoint] = Field(default_factory=list, alias="priceHistory")
    candle_history: list[PersistedCandle] = Field(default_factory=list, alias="candleHistory")
    open_candle: PersistedCandle | None = Field(default=None, alias="openCandle")

    @field_validator("price_history", "candle_history", mode="before")
    @classmethod
    def _null_history_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def _candle_to_dict(candle: Candle) -> dict[str, Any]:
    return {
        "timestamp": candle.timestamp,
        "open": candle.open,
        "high": candle.high,
        "low": candle.low,
        "close": candle.close,
        "volume": candle.volume,
    }


def _candle_from_record(record: PersistedCandle) -> Candle:
    return Candle(
        timestamp=record.timestamp,
        open=record.open,
        high=record.high,
        low=record.low,
        close=record.close,
        volume=record.volume,
    )


def encode_symbol(state: SymbolState, now_ms: int, policy: RetentionPolicy) -> dict[str, Any]:
    record: dict[str, Any] = {
        "quote": state.quote.model_dump() if state.quote is not None else None,
        "priceHistory": [
            {"timestamp": point.timestamp, "price": point.price}
            for point in policy.bound_age(state.price_history, now_ms)
        ],
        "candleHistory": [
            _candle_to_dict(candle) for candle in policy.bound_age(state.candle_history, now_ms)
        ],
    }
    if state.open_candle is not None:
        record["openCandle"] = _candle_to_dict(state.open_candle)
    return record


def encode(
    states: Mapping[str, SymbolState],
    now_ms: int,
    policy: RetentionPolicy | None = None,
) -> dict[str, dict[str, Any]]:
    active_policy = policy or RetentionPolicy()
    return {symbol: encode_symbol(state, now_ms, active_policy) for symbol, state in states.items()}


def decode_symbol(symbol: str, raw: Mapping[str, Any]) -> SymbolState:
    record = PersistedSymbol.model_validate(raw)
    return SymbolState(
        symbol=symbol,
        quote=record.quote,
        price_history=tuple(
            PricePoint(timestamp=point.timestamp, price=point.price) for point in record.price_history
        ),
        candle_history=tuple(_candle_from_record(candle) for candle in record.candle_history),
        open_candle=_candle_from_record(record.open_candle) if record.open_candle is not None else None,
    )


def decode(snapshot: object) -> dict[str, SymbolState]:
    if not isinstance(snapshot, dict):
        if snapshot is not None:
            logger.warning("[Snapshot] Expected a mapping, got %s; starting empty", type(snapshot).__name__)
        return {}

    states: dict[str, SymbolState] = {}
    for symbol, raw in snapshot.items():
        if not isinstance(raw, dict):
            logger.warning("[Snapshot] Skipping %s: record is not a mapping", symbol)
            continue
        try:
            states[str(symbol)] = decode_symbol(str(symbol), raw)
        except ValidationError as exc:
            logger.warning("[Snapshot] Skipping %s: %s", symbol, exc.errors(include_url=False))
    return states
