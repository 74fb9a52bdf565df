"""Server-Sent Events stream of runtime state for dashboards."""

from __future__ import annotations

import json
from typing import Any, AsyncGenerator, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from services.realtime.event_bus import EventBus
from utils.auth import require_user

router = APIRouter(prefix="/api", tags=["events"])

PING_SECONDS = 15


def _require_event_bus(request: Request) -> EventBus:
	bus = getattr(request.app.state, "event_bus", None)
	if bus is None:
		raise HTTPException(status_code=500, detail="Event bus unavailable")
	return bus


async def stream_frames(request: Request, bus: EventBus) -> AsyncGenerator[Dict[str, Any], None]:
	"""Subscribe to the bus and yield its frames as SSE events until the client disconnects."""
	observer = bus.subscribe()
	try:
		while True:
			if await request.is_disconnected():
				break
			frame = await observer.next_frame()
			yield {"event": frame["event"], "data": json.dumps(frame["data"])}
	finally:
		bus.unsubscribe(observer)


@router.get("/events", dependencies=[Depends(require_user)])
async def events_route(request: Request, bus: EventBus = Depends(_require_event_bus)) -> EventSourceResponse:
	"""Stream a `snapshot` frame followed by live status, qr, pairing, message, log, and commands frames."""
	return EventSourceResponse(stream_frames(request, bus), ping=PING_SECONDS)
