# Server-Sent Events stream for live wall updates
import asyncio
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from starlette.responses import StreamingResponse

from ..constants import EventConstants, HTTPConstants
from ..services.live_updates import LiveUpdateBus, format_sse
from ..services.service_container import ServiceContainer
from .deps import get_services

router = APIRouter(tags=["events"])

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    'X-Accel-Buffering': 'no',
}


async def stream_events(
    request: Request,
    bus: LiveUpdateBus,
    keepalive_seconds: float = 15.0,
    poll_interval: float = 1.0,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for one viewer until it disconnects

    Waiting happens on the event loop; ``poll_interval`` only bounds how long
    a disconnect can go unnoticed. The subscription is released in
    ``finally`` whether the client went away, the bus closed it, or the task
    was cancelled.
    """
    loop = asyncio.get_running_loop()
    poll_interval = min(poll_interval, keepalive_seconds)
    subscription = bus.subscribe()
    last_frame = loop.time()

    try:
        while not subscription.closed:
            if await request.is_disconnected():
                break

            event = await subscription.next_event(poll_interval)
            if event is None:
                if loop.time() - last_frame >= keepalive_seconds:
                    last_frame = loop.time()
                    yield EventConstants.KEEPALIVE_FRAME
                continue

            last_frame = loop.time()
            yield format_sse(event)
    finally:
        bus.unsubscribe(subscription)


@router.get("/events")
async def events(request: Request, services: ServiceContainer = Depends(get_services)):
    """
    Wall connects here once and receives uploads/deletions as they happen
    """
    return StreamingResponse(
        stream_events(request, services.event_bus, keepalive_seconds=services.config.sse_keepalive_seconds),
        media_type=HTTPConstants.EVENT_STREAM,
        headers=SSE_HEADERS,
    )
