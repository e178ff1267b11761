from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from .formatting import summarize_symbol, timeframe_label
from .runtime import get_or_create_tracker, get_scheduler

app = FastAPI(title="Stock Tracker API", version="0.1.0")


class FollowRequest(BaseModel):
    symbol: str


async def _refresh() -> bool:
    scheduler = get_scheduler()
    if scheduler is None:
        return False
    return await scheduler.run_once()


@app.get("/healthz")
async def healthz() -> dict:
    return {"ok": True}


@app.get("/status")
async def status() -> dict:
    return get_or_create_tracker().state.snapshot()


@app.get("/symbols")
async def list_symbols() -> dict:
    tracker = get_or_create_tracker()
    return {
        "items": [
            summarize_symbol(symbol, tracker.state.get_symbol(symbol))
            for symbol in tracker.state.followed()
        ]
    }


@app.post("/symbols")
async def follow_symbol(payload: FollowRequest) -> dict:
    tracker = get_or_create_tracker()
    try:
        added = tracker.follow(payload.symbol)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    refreshed = await _refresh() if added else False
    return {"ok": True, "added": added, "refreshed": refreshed, "followed": tracker.state.followed()}


@app.delete("/symbols/{symbol}")
async def unfollow_symbol(symbol: str) -> dict:
    tracker = get_or_create_tracker()
    try:
        removed = tracker.unfollow(symbol)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if not removed:
        raise HTTPException(status_code=404, detail="symbol not followed")
    return {"ok": True, "followed": tracker.state.followed()}


@app.get("/chart")
async def chart(
    kind: str | None = Query(default=None),
    timeframe: int | None = Query(default=None, ge=1, le=7 * 24 * 60),
) -> dict:
    projection = get_or_create_tracker().chart(kind, timeframe)
    body = projection.as_dict()
    body["timeframe_label"] = timeframe_label(projection.timeframe_minutes)
    return body


@app.get("/search")
async def search(q: str = Query(default="")) -> dict:
    response = await get_or_create_tracker().search(q)
    return response.model_dump(mode="json")


@app.post("/admin/clear")
async def clear_history() -> dict:
    get_or_create_tracker().clear_history()
    return {"ok": True}
