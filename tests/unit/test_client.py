import asyncio

import httpx
import pytest

from stock_tracker.client import FetchError, MarketDataClient


def _client(handler) -> MarketDataClient:
    return MarketDataClient(base_url="http://market.test/api/", transport=httpx.MockTransport(handler))


def test_fetch_quote_parses_payload() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(
            200,
            json={"symbol": "AAPL", "c": 190.5, "d": 1.2, "dp": 0.63, "h": 191.0, "l": 188.2, "o": 189.0, "pc": 189.3, "t": 1700000000},
        )

    quote = asyncio.run(_client(handler).fetch_quote("AAPL"))

    assert seen == ["/api/quote/AAPL"]
    assert quote.c == 190.5
    assert quote.dp == 0.63
    assert quote.t == 1700000000


def test_fetch_quote_raises_fetch_error_on_http_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "rate limited"})

    with pytest.raises(FetchError, match="quote HTTP 429") as excinfo:
        asyncio.run(_client(handler).fetch_quote("AAPL"))

    assert excinfo.value.symbol == "AAPL"


def test_fetch_quote_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="quote request failed"):
        asyncio.run(_client(handler).fetch_quote("AAPL"))


def test_fetch_candles_returns_no_data_on_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    payload = asyncio.run(_client(handler).fetch_candles("AAPL"))

    assert payload.s == "no_data"
    assert payload.t == []
    assert payload.c == []


def test_fetch_candles_parses_parallel_arrays() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"c": [2.0], "h": [3.0], "l": [1.0], "o": [1.5], "s": "ok", "t": [1700000000], "v": [1000]},
        )

    payload = asyncio.run(_client(handler).fetch_candles("AAPL"))

    assert payload.s == "ok"
    assert payload.v == [1000.0]


def test_search_short_circuits_blank_query() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    response = asyncio.run(_client(handler).search("   "))

    assert response.count == 0
    assert response.result == []


def test_search_url_encodes_query() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        return httpx.Response(
            200,
            json={
                "count": 1,
                "result": [
                    {"description": "BERKSHIRE HATHAWAY INC-CL B", "displaySymbol": "BRK.B", "symbol": "BRK.B", "type": "Common Stock"}
                ],
            },
        )

    response = asyncio.run(_client(handler).search("brk b/"))

    assert seen == ["/api/search/brk%20b%2F"]
    assert response.count == 1
    assert response.result[0].displaySymbol == "BRK.B"


def test_search_failure_returns_empty_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    response = asyncio.run(_client(handler).search("apple"))

    assert response.count == 0
