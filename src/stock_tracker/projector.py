from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .models import SymbolState

CHART_KINDS: tuple[str, ...] = ("line", "area", "candlestick", "volume")
MINUTE_MS = 60_000


@dataclass(frozen=True)
class SeriesEntry:
    name: str
    data: list[Any]


@dataclass(frozen=True)
class Projection:
    chart_kind: str
    timeframe_minutes: int
    start_time: int
    end_time: int
    axis_label_format: str
    series: list[SeriesEntry]

    def as_dict(self) -> dict:
        return {
            "chart_kind": self.chart_kind,
            "timeframe_minutes": self.timeframe_minutes,
            "xaxis": {
                "min": self.start_time,
                "max": self.end_time,
                "label_format": self.axis_label_format,
            },
            "series": [{"name": entry.name, "data": entry.data} for entry in self.series],
        }


def now_ms() -> int:
    return int(time.time() * 1000)


def axis_label_format(timeframe_minutes: int) -> str:
    return "HH:mm" if timeframe_minutes <= 60 else "dd MMM HH:mm"


def window_bounds(timeframe_minutes: int, now: int) -> tuple[int, int]:
    if timeframe_minutes <= 0:
        raise ValueError("timeframe_minutes must be > 0")
    return now - timeframe_minutes * MINUTE_MS, now


def _in_window(timestamp: int, start_time: int, end_time: int) -> bool:
    return start_time <= timestamp <= end_time


def _series_for(chart_kind: str, state: SymbolState | None, start_time: int, end_time: int) -> list[Any]:
    if state is None:
        return []

    if chart_kind == "candlestick":
        return [
            (candle.timestamp, [candle.open, candle.high, candle.low, candle.close])
            for candle in state.candle_history
            if _in_window(candle.timestamp, start_time, end_time)
        ]

    if chart_kind == "volume":
        return [
            (candle.timestamp, candle.volume)
            for candle in state.candle_history
            if _in_window(candle.timestamp, start_time, end_time)
        ]

    return [
        (point.timestamp, point.price)
        for point in state.price_history
        if _in_window(point.timestamp, start_time, end_time)
    ]


def project(
    chart_kind: str,
    timeframe_minutes: int,
    symbols: Sequence[str],
    states: Mapping[str, SymbolState],
    now: int | None = None,
) -> Projection:
    """Slice and reshape each symbol's series for one chart view.

    Every requested symbol gets an entry, empty when it has no data in range,
    and the projection carries the same bounds the filter used.
    """
    end_ref = now if now is not None else now_ms()
    start_time, end_time = window_bounds(timeframe_minutes, end_ref)
    kind = chart_kind.strip().lower()

    return Projection(
        chart_kind=kind,
        timeframe_minutes=timeframe_minutes,
        start_time=start_time,
        end_time=end_time,
        axis_label_format=axis_label_format(timeframe_minutes),
        series=[
            SeriesEntry(name=symbol, data=_series_for(kind, states.get(symbol), start_time, end_time))
            for symbol in symbols
        ],
    )
