from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .models import Candle
from .retention import DEFAULT_MAX_POINTS, trim_count

CANDLE_INTERVAL_MS = 60_000
COMMIT_SLACK_MS = 5_000


_WINDOW_UNIT_MS = {"s": 1_000, "m": 60_000, "h": 3_600_000, "d": 86_400_000}


def parse_window_ms(window: str) -> int:
    """Candle interval such as "1m" or "90s" in milliseconds."""
    value = window.strip().lower()
    count, unit = value[:-1], value[-1:]
    if unit not in _WINDOW_UNIT_MS:
        raise ValueError(f"unknown candle window unit in {window!r}")
    if not count.isdigit() or int(count) == 0:
        raise ValueError(f"candle window needs a positive count, got {window!r}")
    return int(count) * _WINDOW_UNIT_MS[unit]


class VolumeSource(Protocol):
    def __call__(self, bucket_start: int) -> float: ...


class RandomVolume:
    """Placeholder volume for locally built candles.

    The quote feed carries no live volume, so this fabricates a number. Real
    volume only ever arrives through the historical candle feed.
    """

    def __init__(self, rng: random.Random | None = None, upper: int = 1_000_000) -> None:
        self._rng = rng or random.Random()
        self._upper = upper

    def __call__(self, bucket_start: int) -> float:
        return float(self._rng.randrange(self._upper))


class ZeroVolume:
    def __call__(self, bucket_start: int) -> float:
        return 0.0


def build_volume_source(name: str) -> VolumeSource:
    normalized = name.strip().lower()
    if normalized == "random":
        return RandomVolume()
    if normalized == "zero":
        return ZeroVolume()
    raise ValueError(f"unsupported volume source: {name}")


def upsert_candle(history: Sequence[Candle], candle: Candle) -> tuple[Candle, ...]:
    for index in range(len(history) - 1, -1, -1):
        if history[index].timestamp == candle.timestamp:
            updated = list(history)
            updated[index] = candle
            return tuple(updated)
    return (*history, candle)


@dataclass
class CandleBucketer:
    interval_ms: int = CANDLE_INTERVAL_MS
    commit_slack_ms: int = COMMIT_SLACK_MS
    max_points: int = DEFAULT_MAX_POINTS
    volume_source: VolumeSource = field(default_factory=RandomVolume)

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        if not 0 <= self.commit_slack_ms < self.interval_ms:
            raise ValueError("commit_slack_ms must be >= 0 and < interval_ms")

    def bucket_start(self, timestamp: int) -> int:
        return (timestamp // self.interval_ms) * self.interval_ms

    def should_commit(self, candle: Candle, timestamp: int) -> bool:
        return timestamp - candle.timestamp >= self.interval_ms - self.commit_slack_ms

    def observe(
        self,
        open_candle: Candle | None,
        timestamp: int,
        price: float,
        history: Sequence[Candle],
    ) -> tuple[Candle, tuple[Candle, ...]]:
        """Fold one price sample into the open bucket.

        Returns the new open candle and the committed history, which gains (or
        replaces) an entry once the sample lands inside the commit window.
        """
        bucket_start = self.bucket_start(timestamp)

        if open_candle is None or open_candle.timestamp != bucket_start:
            current = Candle(
                timestamp=bucket_start,
                open=price,
                high=price,
                low=price,
                close=price,
                volume=self.volume_source(bucket_start),
            )
        else:
            current = Candle(
                timestamp=open_candle.timestamp,
                open=open_candle.open,
                high=max(open_candle.high, price),
                low=min(open_candle.low, price),
                close=price,
                volume=open_candle.volume,
            )

        committed = tuple(history)
        if self.should_commit(current, timestamp):
            committed = trim_count(upsert_candle(committed, current), self.max_points)

        return current, committed
