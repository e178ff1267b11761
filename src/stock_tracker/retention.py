from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, TypeVar

DEFAULT_MAX_POINTS = 500
DEFAULT_RETENTION_MS = 24 * 60 * 60 * 1000


class _Timestamped(Protocol):
    @property
    def timestamp(self) -> int: ...


T = TypeVar("T", bound=_Timestamped)


def trim_count(sequence: Sequence[T], max_points: int = DEFAULT_MAX_POINTS) -> tuple[T, ...]:
    if max_points <= 0:
        return ()
    if len(sequence) <= max_points:
        return tuple(sequence)
    return tuple(sequence[-max_points:])


def trim_age(
    sequence: Sequence[T],
    now_ms: int,
    retention_ms: int = DEFAULT_RETENTION_MS,
) -> tuple[T, ...]:
    # Sequences are time-ordered, so everything stale sits at the front.
    cutoff = now_ms - retention_ms
    start = 0
    for start, entry in enumerate(sequence):
        if entry.timestamp > cutoff:
            break
    else:
        return ()
    return tuple(sequence[start:])


@dataclass(frozen=True)
class RetentionPolicy:
    max_points: int = DEFAULT_MAX_POINTS
    retention_ms: int = DEFAULT_RETENTION_MS

    def __post_init__(self) -> None:
        if self.max_points <= 0:
            raise ValueError("max_points must be > 0")
        if self.retention_ms <= 0:
            raise ValueError("retention_ms must be > 0")

    def bound_count(self, sequence: Sequence[T]) -> tuple[T, ...]:
        return trim_count(sequence, self.max_points)

    def bound_age(self, sequence: Sequence[T], now_ms: int) -> tuple[T, ...]:
        return trim_age(sequence, now_ms, self.retention_ms)

    def trim(self, sequence: Sequence[T], now_ms: int) -> tuple[T, ...]:
        return self.bound_count(self.bound_age(sequence, now_ms))
