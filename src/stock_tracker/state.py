from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable

from .models import SymbolState


@dataclass
class TrackerEvent:
    ts: float
    level: str
    message: str
    data: dict = field(default_factory=dict)


class TrackerState:
    def __init__(self, followed: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._started_ts = time.time()
        self._followed: list[str] = []
        for symbol in followed:
            if symbol not in self._followed:
                self._followed.append(symbol)
        self._symbols: dict[str, SymbolState] = {}
        self._loading = False
        self._last_update_ts: float | None = None
        self._events: Deque[TrackerEvent] = deque(maxlen=200)

    def followed(self) -> list[str]:
        with self._lock:
            return list(self._followed)

    def is_followed(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._followed

    def set_followed(self, symbols: Iterable[str]) -> None:
        with self._lock:
            self._followed = []
            for symbol in symbols:
                if symbol not in self._followed:
                    self._followed.append(symbol)

    def follow(self, symbol: str) -> bool:
        with self._lock:
            if symbol in self._followed:
                return False
            self._followed.append(symbol)
            return True

    def unfollow(self, symbol: str) -> bool:
        with self._lock:
            if symbol not in self._followed:
                return False
            self._followed.remove(symbol)
            self._symbols.pop(symbol, None)
            return True

    def get_symbol(self, symbol: str) -> SymbolState | None:
        with self._lock:
            return self._symbols.get(symbol)

    def put_symbol(self, state: SymbolState) -> bool:
        """Swap in a symbol's new state, unless it was unfollowed meanwhile."""
        with self._lock:
            if state.symbol not in self._followed:
                return False
            self._symbols[state.symbol] = state
            return True

    def symbols(self) -> dict[str, SymbolState]:
        with self._lock:
            return dict(self._symbols)

    def set_symbols(self, states: dict[str, SymbolState]) -> None:
        with self._lock:
            self._symbols = dict(states)

    def set_loading(self, loading: bool) -> None:
        with self._lock:
            self._loading = loading

    def mark_updated(self, ts: float | None = None) -> None:
        with self._lock:
            self._last_update_ts = ts if ts is not None else time.time()

    def add_event(self, level: str, message: str, data: dict | None = None) -> None:
        with self._lock:
            self._events.append(
                TrackerEvent(
                    ts=time.time(),
                    level=level,
                    message=message,
                    data=data or {},
                )
            )

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "started_ts": self._started_ts,
                "loading": self._loading,
                "last_update_ts": self._last_update_ts,
                "followed": list(self._followed),
                "symbols": {
                    symbol: {
                        "price": state.quote.c if state.quote is not None else None,
                        "percent_change": state.quote.dp if state.quote is not None else None,
                        "price_points": len(state.price_history),
                        "candles": len(state.candle_history),
                    }
                    for symbol, state in self._symbols.items()
                },
                "events": [
                    {
                        "ts": e.ts,
                        "level": e.level,
                        "message": e.message,
                        "data": e.data,
                    }
                    for e in list(self._events)
                ],
            }
