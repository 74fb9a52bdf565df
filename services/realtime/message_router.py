"""Route inbound transport messages to history, the event bus, and auto-replies."""
from __future__ import annotations

import logging
from typing import Optional

from models.runtime_models import EventCategory, InboundMessageRecord, RuntimeState, now_iso
from services.command_registry import CommandRegistry
from services.realtime.event_bus import EventBus
from services.transport.base import NOTIFY, MessageBatch, Transport, TransportMessage
from utils.text import extract_text, normalize_text

LOGGER = logging.getLogger(__name__)

PING_KEYWORD = "ping"
PING_REPLY = "pong ✅"


class InboundMessageRouter:
	"""Record inbound text messages and answer built-in and persisted triggers."""

	def __init__(self, runtime: RuntimeState, bus: EventBus, registry: CommandRegistry) -> None:
		self.runtime = runtime
		self.bus = bus
		self.registry = registry

	async def handle_batch(self, batch: MessageBatch, transport: Transport) -> None:
		"""Process a live notification batch; backfill batches are ignored."""
		if batch.kind != NOTIFY:
			return
		for message in batch.messages:
			await self.handle_message(message, transport)

	async def handle_message(self, message: TransportMessage, transport: Transport) -> Optional[str]:
		"""Record one message and send its auto-reply, returning the reply text if any."""
		text = extract_text(message.content)
		if not message.sender_id or not text:
			return None

		record = InboundMessageRecord(
			at=now_iso(),
			sender_id=message.sender_id,
			text=text,
			is_self_originated=bool(message.from_me),
		)
		self.runtime.messages.push(record)
		self.bus.publish(EventCategory.MESSAGE, record.to_dict())

		if record.is_self_originated:
			return None

		reply = self.match_reply(text)
		if reply is None:
			return None
		await transport.send_text(record.sender_id, reply)
		LOGGER.debug("Auto-replied to %s", record.sender_id)
		return reply

	def match_reply(self, text: str) -> Optional[str]:
		"""Return the reply for `text`: the built-in ping first, then persisted commands."""
		normalized = normalize_text(text)
		if normalized == PING_KEYWORD:
			return PING_REPLY
		return self.registry.find_response(normalized)
