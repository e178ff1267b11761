from __future__ import annotations

from .models import SymbolState


def format_price(price: float | None) -> str:
    if price is None:
        return "N/A"
    return f"{price:.2f}"


def format_percent(percent: float | None) -> str:
    if percent is None:
        return "N/A"
    sign = "+" if percent > 0 else ""
    return f"{sign}{percent:.2f}%"


def format_volume(volume: float | None) -> str:
    if volume is None:
        return "N/A"
    if volume >= 1_000_000:
        return f"{volume / 1_000_000:.2f}M"
    if volume >= 1_000:
        return f"{volume / 1_000:.2f}K"
    return f"{volume:g}"


def timeframe_label(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    if minutes == 60:
        return "1hr"
    if minutes < 1440:
        return f"{minutes / 60:g}hr"
    return f"{minutes / 1440:g}day"


def data_point_count(state: SymbolState | None) -> int:
    if state is None:
        return 0
    return max(len(state.price_history), len(state.candle_history))


def summarize_symbol(symbol: str, state: SymbolState | None) -> dict:
    quote = state.quote if state is not None else None
    last_candle = state.candle_history[-1] if state is not None and state.candle_history else None
    return {
        "symbol": symbol,
        "price": format_price(quote.c if quote is not None else None),
        "change": format_percent(quote.dp if quote is not None else None),
        "volume": format_volume(last_candle.volume if last_candle is not None else None),
        "data_points": data_point_count(state),
    }
