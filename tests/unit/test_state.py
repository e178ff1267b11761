from stock_tracker.models import Quote, SymbolState
from stock_tracker.state import TrackerState


def test_follow_is_ordered_and_unique() -> None:
    state = TrackerState(followed=["AAPL", "GOOGL", "AAPL"])

    assert state.follow("MSFT") is True
    assert state.follow("AAPL") is False
    assert state.followed() == ["AAPL", "GOOGL", "MSFT"]


def test_unfollow_destroys_symbol_state() -> None:
    state = TrackerState(followed=["AAPL"])
    state.put_symbol(SymbolState(symbol="AAPL", quote=Quote(c=1.0)))

    assert state.unfollow("AAPL") is True
    assert state.get_symbol("AAPL") is None
    assert state.unfollow("AAPL") is False


def test_put_symbol_refuses_unfollowed_symbol() -> None:
    state = TrackerState(followed=["AAPL"])

    assert state.put_symbol(SymbolState(symbol="MSFT")) is False
    assert state.symbols() == {}


def test_snapshot_summarizes_symbols_and_events() -> None:
    state = TrackerState(followed=["AAPL"])
    state.put_symbol(SymbolState(symbol="AAPL", quote=Quote(c=190.0, dp=0.4)))
    state.add_event("warning", "fetch_failed", {"symbol": "AAPL"})
    state.mark_updated(ts=1700.0)

    snapshot = state.snapshot()

    assert snapshot["followed"] == ["AAPL"]
    assert snapshot["last_update_ts"] == 1700.0
    assert snapshot["symbols"]["AAPL"] == {
        "price": 190.0,
        "percent_change": 0.4,
        "price_points": 0,
        "candles": 0,
    }
    assert snapshot["events"][-1]["message"] == "fetch_failed"
