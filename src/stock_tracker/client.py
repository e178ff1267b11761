from __future__ import annotations

import logging
from urllib.parse import quote as url_quote

import httpx
from pydantic import ValidationError

from .models import CandlesPayload, Quote, SearchResponse

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """A transient failure fetching data for one symbol."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class MarketDataClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8080/api",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)

    async def fetch_quote(self, symbol: str) -> Quote:
        url = f"{self.base_url}/quote/{url_quote(symbol, safe='')}"
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(symbol, f"quote request failed: {exc}") from exc

        if not response.is_success:
            raise FetchError(symbol, f"quote HTTP {response.status_code}")

        try:
            return Quote.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise FetchError(symbol, f"quote payload invalid: {exc}") from exc

    async def fetch_candles(self, symbol: str) -> CandlesPayload:
        url = f"{self.base_url}/candles/{url_quote(symbol, safe='')}"
        try:
            async with self._client() as client:
                response = await client.get(url)
            if not response.is_success:
                logger.warning("[Client] Candles for %s: HTTP %s", symbol, response.status_code)
                return CandlesPayload.no_data()
            return CandlesPayload.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.warning("[Client] Candles for %s failed: %s", symbol, exc)
            return CandlesPayload.no_data()

    async def search(self, query: str) -> SearchResponse:
        if not query.strip():
            return SearchResponse.empty()

        url = f"{self.base_url}/search/{url_quote(query, safe='')}"
        try:
            async with self._client() as client:
                response = await client.get(url)
            if not response.is_success:
                logger.warning("[Client] Search %r: HTTP %s", query, response.status_code)
                return SearchResponse.empty()
            return SearchResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.warning("[Client] Search %r failed: %s", query, exc)
            return SearchResponse.empty()
