from __future__ import annotations

import threading

from .config import Config, load_config
from .scheduler import RepeatingTask
from .tracker import StockTracker, build_tracker

_tracker: StockTracker | None = None
_scheduler: RepeatingTask | None = None
_lock = threading.Lock()


def get_or_create_tracker(config: Config | None = None) -> StockTracker:
    global _tracker

    if _tracker is not None:
        return _tracker

    with _lock:
        if _tracker is None:
            tracker = build_tracker(config or load_config())
            tracker.load()
            _tracker = tracker
    return _tracker


def set_tracker(tracker: StockTracker | None) -> None:
    global _tracker, _scheduler
    with _lock:
        _tracker = tracker
        _scheduler = None


def get_or_create_scheduler(config: Config | None = None) -> RepeatingTask:
    global _scheduler

    tracker = get_or_create_tracker(config)
    with _lock:
        if _scheduler is None:
            interval = (config or load_config()).poll_interval_seconds
            _scheduler = RepeatingTask(action=tracker.tick, interval_seconds=interval, name="stock-tracker-poll")
        return _scheduler


def get_scheduler() -> RepeatingTask | None:
    return _scheduler
