from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol

from .candles import CandleBucketer, build_volume_source
from .client import FetchError, MarketDataClient
from .config import Config
from .history import candles_from_payload, merge_history
from .models import Candle, CandlesPayload, PricePoint, Quote, SearchResponse, SymbolState
from .projector import Projection, now_ms, project
from .retention import RetentionPolicy
from .snapshot import decode, encode
from .state import TrackerState
from .storage import FOLLOWED_STOCKS_KEY, STOCK_DATA_KEY, KeyValueStore, MemoryStore, SqliteStore

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ("AAPL", "GOOGL")


class MarketDataSource(Protocol):
    async def fetch_quote(self, symbol: str) -> Quote: ...

    async def fetch_candles(self, symbol: str) -> CandlesPayload: ...

    async def search(self, query: str) -> SearchResponse: ...


def normalize_symbol(symbol: str) -> str:
    normalized = symbol.strip().upper()
    if not normalized:
        raise ValueError("symbol must not be empty")
    return normalized


class StockTracker:
    def __init__(
        self,
        *,
        client: MarketDataSource,
        store: KeyValueStore,
        state: TrackerState | None = None,
        bucketer: CandleBucketer | None = None,
        policy: RetentionPolicy | None = None,
        fetch_historical_candles: bool = True,
        default_symbols: Iterable[str] = DEFAULT_SYMBOLS,
        default_chart_kind: str = "area",
        default_timeframe_minutes: int = 30,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._client = client
        self._store = store
        self._state = state or TrackerState()
        self._policy = policy or RetentionPolicy()
        self._bucketer = bucketer or CandleBucketer(max_points=self._policy.max_points)
        self._fetch_historical_candles = fetch_historical_candles
        self._default_symbols = [normalize_symbol(symbol) for symbol in default_symbols]
        self._default_chart_kind = default_chart_kind
        self._default_timeframe_minutes = default_timeframe_minutes
        self._clock = clock

    @property
    def state(self) -> TrackerState:
        return self._state

    def load(self) -> None:
        followed = self._store.load(FOLLOWED_STOCKS_KEY)
        if not isinstance(followed, list) or not all(isinstance(symbol, str) for symbol in followed):
            if followed is not None:
                logger.warning("[Tracker] Stored followed list is malformed; using defaults")
            followed = list(self._default_symbols)

        self._state.set_followed(followed)
        restored = decode(self._store.load(STOCK_DATA_KEY))
        self._state.set_symbols({symbol: data for symbol, data in restored.items() if symbol in followed})
        logger.info("[Tracker] Loaded %s followed symbol(s), %s with history", len(followed), len(restored))

    def save(self, now: int | None = None) -> None:
        now_value = now if now is not None else self._clock()
        followed = self._state.followed()
        symbols = {symbol: data for symbol, data in self._state.symbols().items() if symbol in followed}
        try:
            self._store.save(STOCK_DATA_KEY, encode(symbols, now_value, self._policy))
            self._store.save(FOLLOWED_STOCKS_KEY, followed)
        except Exception as exc:  # noqa: BLE001
            logger.exception("[Storage] Failed to save tracker data: %s", exc)
            self._state.add_event("error", "save_failed", {"reason": str(exc)})

    async def tick(self) -> None:
        """One ingest cycle across every followed symbol.

        A failed fetch only costs that symbol this tick; its prior state stays.
        Results for a symbol unfollowed while its fetch was in flight are dropped.
        """
        self._state.set_loading(True)
        try:
            now = self._clock()
            for symbol in self._state.followed():
                if not self._state.is_followed(symbol):
                    continue
                try:
                    updated = await self._ingest_symbol(symbol, now)
                except FetchError as exc:
                    logger.warning("[Tracker] Failed to load data for %s: %s", symbol, exc.reason)
                    self._state.add_event("warning", "fetch_failed", {"symbol": symbol, "reason": exc.reason})
                    continue

                if not self._state.put_symbol(updated):
                    logger.info("[Tracker] Discarding results for unfollowed symbol %s", symbol)

            self._state.mark_updated()
            self.save(now)
        finally:
            self._state.set_loading(False)

    async def _ingest_symbol(self, symbol: str, now: int) -> SymbolState:
        quote = await self._client.fetch_quote(symbol)
        server_candles: tuple[Candle, ...] = ()
        if self._fetch_historical_candles:
            server_candles = candles_from_payload(await self._client.fetch_candles(symbol))

        previous = self._state.get_symbol(symbol) or SymbolState(symbol=symbol)
        price = quote.c

        open_candle, committed = self._bucketer.observe(
            previous.open_candle,
            now,
            price,
            previous.candle_history,
        )
        price_history = self._policy.bound_count(
            (*previous.price_history, PricePoint(timestamp=now, price=price))
        )

        return SymbolState(
            symbol=symbol,
            quote=quote.model_copy(update={"c": price}),
            price_history=price_history,
            candle_history=merge_history(committed, server_candles, self._policy.max_points),
            open_candle=open_candle,
        )

    def follow(self, symbol: str) -> bool:
        normalized = normalize_symbol(symbol)
        added = self._state.follow(normalized)
        if added:
            logger.info("[Tracker] Following %s", normalized)
            self._state.add_event("info", "symbol_followed", {"symbol": normalized})
            self.save()
        return added

    def unfollow(self, symbol: str) -> bool:
        normalized = normalize_symbol(symbol)
        removed = self._state.unfollow(normalized)
        if removed:
            logger.info("[Tracker] Unfollowed %s", normalized)
            self._state.add_event("info", "symbol_unfollowed", {"symbol": normalized})
            self.save()
        return removed

    def clear_history(self) -> None:
        cleared = {
            symbol: SymbolState(symbol=symbol, quote=data.quote)
            for symbol, data in self._state.symbols().items()
        }
        self._state.set_symbols(cleared)
        try:
            self._store.clear(STOCK_DATA_KEY)
            self._store.clear(FOLLOWED_STOCKS_KEY)
        except Exception as exc:  # noqa: BLE001
            logger.exception("[Storage] Failed to clear stored data: %s", exc)
        self._state.add_event("info", "history_cleared", {})
        logger.info("[Tracker] History cleared")

    async def search(self, query: str) -> SearchResponse:
        return await self._client.search(query)

    def chart(
        self,
        chart_kind: str | None = None,
        timeframe_minutes: int | None = None,
        now: int | None = None,
    ) -> Projection:
        return project(
            chart_kind if chart_kind is not None else self._default_chart_kind,
            timeframe_minutes if timeframe_minutes is not None else self._default_timeframe_minutes,
            self._state.followed(),
            self._state.symbols(),
            now=now if now is not None else self._clock(),
        )


def _build_store(storage_path: str) -> KeyValueStore:
    if not storage_path:
        logger.warning("[Storage] STORAGE_PATH is empty; tracker data will not survive a restart")
        return MemoryStore()
    return SqliteStore(storage_path)


def build_tracker(config: Config, store: KeyValueStore | None = None) -> StockTracker:
    policy = RetentionPolicy(max_points=config.max_history_points, retention_ms=config.retention_ms)
    return StockTracker(
        client=MarketDataClient(
            base_url=config.market_api_base_url,
            timeout_seconds=config.fetch_timeout_seconds,
        ),
        store=store or _build_store(config.storage_path),
        bucketer=CandleBucketer(
            interval_ms=config.candle_interval_ms,
            commit_slack_ms=config.candle_commit_slack_ms,
            max_points=policy.max_points,
            volume_source=build_volume_source(config.volume_source),
        ),
        policy=policy,
        fetch_historical_candles=config.fetch_historical_candles,
        default_symbols=config.default_symbols,
        default_chart_kind=config.default_chart_kind,
        default_timeframe_minutes=config.default_timeframe_minutes,
    )
