from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from .models import Candle, CandlesPayload
from .retention import DEFAULT_MAX_POINTS, trim_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authoritative:
    candles: tuple[Candle, ...]


@dataclass(frozen=True)
class LocalOnly:
    candles: tuple[Candle, ...]


HistorySource = Union[Authoritative, LocalOnly]


def candles_from_payload(payload: CandlesPayload) -> tuple[Candle, ...]:
    if payload.s != "ok":
        return ()

    columns = (payload.t, payload.o, payload.h, payload.l, payload.c, payload.v)
    lengths = {len(column) for column in columns}
    if len(lengths) != 1:
        logger.warning("[History] Ignoring ragged candle payload: lengths=%s", sorted(lengths))
        return ()

    return tuple(
        Candle(
            timestamp=int(ts) * 1000,
            open=float(open_),
            high=float(high),
            low=float(low),
            close=float(close),
            volume=float(volume),
        )
        for ts, open_, high, low, close, volume in zip(*columns)
    )


def select_source(local: Sequence[Candle], server: Sequence[Candle]) -> HistorySource:
    if server:
        return Authoritative(tuple(server))
    return LocalOnly(tuple(local))


def _normalize(candles: Sequence[Candle]) -> tuple[Candle, ...]:
    by_ts: dict[int, Candle] = {}
    for candle in candles:
        by_ts[candle.timestamp] = candle
    return tuple(by_ts[ts] for ts in sorted(by_ts))


def resolve(source: HistorySource, max_points: int = DEFAULT_MAX_POINTS) -> tuple[Candle, ...]:
    if isinstance(source, Authoritative):
        return trim_count(_normalize(source.candles), max_points)
    return source.candles


def merge_history(
    local: Sequence[Candle],
    server: Sequence[Candle],
    max_points: int = DEFAULT_MAX_POINTS,
) -> tuple[Candle, ...]:
    """Reconcile locally committed candles with the server's historical series.

    A non-empty server series carries real volume and replaces local history
    wholesale. An empty one (feed down, no data) leaves local history as is.
    """
    return resolve(select_source(local, server), max_points)
