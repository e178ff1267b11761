from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class PricePoint:
    timestamp: int
    price: float


@dataclass(frozen=True)
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class Quote(BaseModel):
    """Last known quote for a symbol, in the market-data API's short field names."""

    model_config = ConfigDict(extra="ignore")

    c: float
    d: float | None = None
    dp: float | None = None
    h: float = 0.0
    l: float = 0.0
    o: float = 0.0
    pc: float = 0.0
    t: int = 0


class CandlesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    c: list[float] = Field(default_factory=list)
    h: list[float] = Field(default_factory=list)
    l: list[float] = Field(default_factory=list)
    o: list[float] = Field(default_factory=list)
    s: str = "no_data"
    t: list[int] = Field(default_factory=list)
    v: list[float] = Field(default_factory=list)

    @classmethod
    def no_data(cls) -> CandlesPayload:
        return cls(s="no_data")


class SearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str = ""
    displaySymbol: str = ""
    symbol: str
    type: str = ""


class SearchResponse(BaseModel):
    count: int = 0
    result: list[SearchResult] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> SearchResponse:
        return cls(count=0, result=[])


@dataclass(frozen=True)
class SymbolState:
    symbol: str
    quote: Quote | None = None
    price_history: tuple[PricePoint, ...] = field(default_factory=tuple)
    candle_history: tuple[Candle, ...] = field(default_factory=tuple)
    open_candle: Candle | None = None
