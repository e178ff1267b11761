from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class RepeatingTask:
    """Runs an async callable on a fixed cadence, one run at a time.

    ``start`` awaits the first run before scheduling the rest. A run that is
    due while another is still in flight is skipped, never overlapped.
    """

    action: Callable[[], Awaitable[None]]
    interval_seconds: float
    name: str = "repeating-task"
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _running: bool = field(default=False, init=False, repr=False)
    _skipped: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

    @property
    def is_started(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def skipped_runs(self) -> int:
        return self._skipped

    async def run_once(self) -> bool:
        if self._running:
            self._skipped += 1
            logger.warning("[Scheduler] %s still running; skipping this run", self.name)
            return False

        self._running = True
        try:
            await self.action()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("[Scheduler] %s failed: %s", self.name, exc)
        finally:
            self._running = False
        return True

    async def start(self) -> None:
        if self.is_started:
            return
        await self.run_once()
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
