"""Fan-out publish/subscribe of runtime state deltas to dashboard observers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Set
from uuid import uuid4

from models.runtime_models import EventCategory, RuntimeState, SystemEvent, now_iso

LOGGER = logging.getLogger(__name__)

SNAPSHOT = "snapshot"
DEFAULT_OBSERVER_BACKLOG = 256


class Observer:
	"""A registered streaming sink backed by a bounded queue."""

	def __init__(self, backlog: int = DEFAULT_OBSERVER_BACKLOG) -> None:
		self.id = uuid4().hex
		self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=backlog)
		self.dropped = 0

	def offer(self, frame: Dict[str, Any]) -> bool:
		"""Queue a frame without waiting; return False when the observer is lagging."""
		try:
			self.queue.put_nowait(frame)
		except asyncio.QueueFull:
			self.dropped += 1
			return False
		return True

	async def next_frame(self) -> Dict[str, Any]:
		return await self.queue.get()


class EventBus:
	"""Record events in the runtime history and push them to every observer.

	Publication never waits on an observer. A frame that does not fit in an
	observer's backlog is dropped for that observer only.
	"""

	def __init__(self, runtime: RuntimeState, observer_backlog: int = DEFAULT_OBSERVER_BACKLOG) -> None:
		self.runtime = runtime
		self.observer_backlog = observer_backlog
		self._observers: Set[Observer] = set()

	@property
	def observer_count(self) -> int:
		return len(self._observers)

	def publish(self, category: EventCategory | str, payload: Any) -> SystemEvent:
		"""Append an event to history and deliver it to all current observers."""
		name = category.value if isinstance(category, EventCategory) else str(category)
		event = SystemEvent(id=uuid4().hex, category=name, payload=payload, at=now_iso())
		self.runtime.events.push(event)
		frame = {"event": name, "data": event.to_dict()}
		for observer in list(self._observers):
			if not observer.offer(frame):
				LOGGER.debug("Dropped %s frame for lagging observer %s", name, observer.id)
		return event

	def subscribe(self) -> Observer:
		"""Register an observer whose first frame is a full runtime snapshot."""
		observer = Observer(self.observer_backlog)
		observer.offer(
			{
				"event": SNAPSHOT,
				"data": {"at": now_iso(), "type": SNAPSHOT, "data": self.runtime.snapshot()},
			}
		)
		self._observers.add(observer)
		LOGGER.debug("Observer %s subscribed (%d active)", observer.id, len(self._observers))
		return observer

	def unsubscribe(self, observer: Observer) -> None:
		"""Remove an observer; unknown observers are ignored."""
		if observer in self._observers:
			self._observers.discard(observer)
			LOGGER.debug("Observer %s unsubscribed (%d active)", observer.id, len(self._observers))
