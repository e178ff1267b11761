import pytest

from stock_tracker.models import Candle, PricePoint, SymbolState
from stock_tracker.projector import axis_label_format, project

NOW = 10_000_000


def _state() -> SymbolState:
    start = NOW - 30 * 60_000
    return SymbolState(
        symbol="AAPL",
        price_history=(
            PricePoint(timestamp=start - 1, price=99.0),
            PricePoint(timestamp=start, price=100.0),
            PricePoint(timestamp=NOW - 15_000, price=101.0),
            PricePoint(timestamp=NOW, price=102.0),
            PricePoint(timestamp=NOW + 1, price=103.0),
        ),
        candle_history=(
            Candle(timestamp=start - 60_000, open=1.0, high=2.0, low=0.5, close=1.5, volume=10.0),
            Candle(timestamp=start, open=2.0, high=3.0, low=1.5, close=2.5, volume=20.0),
            Candle(timestamp=NOW, open=3.0, high=4.0, low=2.5, close=3.5, volume=30.0),
        ),
    )


def test_line_projection_includes_both_window_edges() -> None:
    projection = project("line", 30, ["AAPL"], {"AAPL": _state()}, now=NOW)

    assert projection.start_time == NOW - 30 * 60_000
    assert projection.end_time == NOW
    assert projection.series[0].name == "AAPL"
    assert projection.series[0].data == [
        (NOW - 30 * 60_000, 100.0),
        (NOW - 15_000, 101.0),
        (NOW, 102.0),
    ]


def test_area_and_unknown_kinds_use_price_trace() -> None:
    states = {"AAPL": _state()}
    line = project("line", 30, ["AAPL"], states, now=NOW)

    assert project("area", 30, ["AAPL"], states, now=NOW).series == line.series
    assert project("scatter", 30, ["AAPL"], states, now=NOW).series == line.series


def test_candlestick_projection_reshapes_ohlc() -> None:
    projection = project("candlestick", 30, ["AAPL"], {"AAPL": _state()}, now=NOW)

    assert projection.series[0].data == [
        (NOW - 30 * 60_000, [2.0, 3.0, 1.5, 2.5]),
        (NOW, [3.0, 4.0, 2.5, 3.5]),
    ]


def test_volume_projection_uses_candle_volume() -> None:
    projection = project("volume", 30, ["AAPL"], {"AAPL": _state()}, now=NOW)

    assert projection.series[0].data == [(NOW - 30 * 60_000, 20.0), (NOW, 30.0)]


def test_symbols_without_data_yield_empty_series() -> None:
    projection = project("candlestick", 30, ["AAPL", "MSFT"], {"AAPL": _state()}, now=NOW)

    assert [entry.name for entry in projection.series] == ["AAPL", "MSFT"]
    assert projection.series[1].data == []


def test_projection_does_not_mutate_state() -> None:
    state = _state()
    before = (state.price_history, state.candle_history)

    project("line", 5, ["AAPL"], {"AAPL": state}, now=NOW)

    assert (state.price_history, state.candle_history) == before


def test_projection_window_slides_with_clock() -> None:
    states = {"AAPL": _state()}

    earlier = project("line", 30, ["AAPL"], states, now=NOW - 60_000)
    later = project("line", 30, ["AAPL"], states, now=NOW)

    assert later.start_time - earlier.start_time == 60_000
    assert (NOW, 102.0) not in earlier.series[0].data


def test_axis_label_format_switches_after_one_hour() -> None:
    assert axis_label_format(60) == "HH:mm"
    assert axis_label_format(240) == "dd MMM HH:mm"


def test_as_dict_exposes_axis_bounds() -> None:
    body = project("line", 60, ["AAPL"], {}, now=NOW).as_dict()

    assert body["xaxis"] == {"min": NOW - 3_600_000, "max": NOW, "label_format": "HH:mm"}
    assert body["series"] == [{"name": "AAPL", "data": []}]


def test_project_rejects_non_positive_timeframe() -> None:
    with pytest.raises(ValueError, match="timeframe_minutes"):
        project("line", 0, ["AAPL"], {}, now=NOW)
