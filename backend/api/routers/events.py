"""Server-Sent Events (SSE) router: tell clients the plan changed so they re-query it."""
import asyncio
import itertools
import json
import logging
import threading
from typing import AsyncGenerator
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

_logger = logging.getLogger('shiftplan.events')

router = APIRouter(prefix="/api/events", tags=["Events"])

EVENT_TYPES = ("entry_changed", "employee_changed", "shift_changed", "state_replaced")

# ── In-memory subscriber registry ──────────────────────────────
# Each SSE connection registers (loop, queue); broadcast() runs in worker threads.
_lock = threading.Lock()
_subscribers: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
_event_ids = itertools.count(1)


def _format_sse(event_type: str, data: dict, event_id: int | None = None) -> str:
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.append(f"event: {event_type}")
    lines.append(f"data: {json.dumps(data, ensure_ascii=False, default=str)}")
    return "\n".join(lines) + "\n\n"


def subscriber_count() -> int:
    with _lock:
        return len(_subscribers)


def broadcast(event_type: str, data: dict | None = None) -> None:
    """Queue a change event for every connected client. Safe to call from sync endpoints."""
    payload = {"id": next(_event_ids), "type": event_type, "data": data or {}}
    with _lock:
        alive = []
        for loop, q in _subscribers:
            try:
                loop.call_soon_threadsafe(q.put_nowait, payload)
                alive.append((loop, q))
            except RuntimeError:
                # event loop already closed
                continue
        _subscribers[:] = alive
        count = len(alive)
    if count:
        _logger.debug("SSE broadcast: %s -> %d clients", event_type, count)


async def _event_stream(request: Request, queue: asyncio.Queue) -> AsyncGenerator[str, None]:
    loop = asyncio.get_running_loop()
    try:
        yield _format_sse("connected", {"events": list(EVENT_TYPES)})
        while not await request.is_disconnected():
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=25.0)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield _format_sse(payload["type"], payload["data"], payload["id"])
    finally:
        with _lock:
            if (loop, queue) in _subscribers:
                _subscribers.remove((loop, queue))
        _logger.debug("SSE client disconnected. Remaining: %d", subscriber_count())


@router.get("", summary="SSE event stream", description=(
    "Connect to receive change notifications.\n\n"
    "Events: `connected`, `entry_changed`, `employee_changed`, `shift_changed`, `state_replaced`"
))
async def sse_stream(request: Request):
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue(maxsize=50)
    with _lock:
        _subscribers.append((loop, queue))
    _logger.debug("SSE client connected. Total: %d", subscriber_count())

    return StreamingResponse(
        _event_stream(request, queue),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )
