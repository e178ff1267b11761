from __future__ import annotations

import asyncio
import logging

from .config import load_config
from .runtime import get_or_create_scheduler, get_or_create_tracker

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def run() -> None:
    config = load_config()
    tracker = get_or_create_tracker(config)
    scheduler = get_or_create_scheduler(config)

    logger.info(
        "[Tracker] Polling %s every %ss from %s",
        ", ".join(tracker.state.followed()) or "no symbols",
        config.poll_interval_seconds,
        config.market_api_base_url,
    )

    await scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        tracker.save()


if __name__ == "__main__":
    asyncio.run(run())
