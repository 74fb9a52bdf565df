"""Persisted trigger/response registry backing the auto-reply engine."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Tuple
from uuid import uuid4

from dal.command_store import CommandStore
from models.command import Command
from models.errors import NotFoundError, ValidationError
from models.runtime_models import EventCategory
from services.realtime.event_bus import EventBus
from utils.text import normalize_text


def _clean_fields(trigger: Any, response: Any) -> Tuple[str, str]:
	trigger_text = str(trigger or "").strip()
	response_text = str(response or "").strip()
	if not trigger_text or not response_text:
		raise ValidationError("Both trigger and response are required.")
	return trigger_text, response_text


class CommandRegistry:
	"""Newest-first command collection persisted as a whole on every mutation.

	Mutations are serialised by a lock so concurrent requests cannot interleave
	their read-modify-write of the backing file.
	"""

	def __init__(self, store: CommandStore, bus: EventBus) -> None:
		self.store = store
		self.bus = bus
		self._commands: List[Command] = []
		self._write_lock = asyncio.Lock()

	async def load(self) -> List[Command]:
		"""Populate the registry from the store."""
		self._commands = await self.store.load()
		return self.list()

	def list(self) -> List[Command]:
		return list(self._commands)

	def find_response(self, normalized_text: str) -> Optional[str]:
		"""Return the response of the first command whose trigger matches, in list order."""
		for command in self._commands:
			if normalize_text(command.trigger) == normalized_text:
				return command.response
		return None

	async def create(self, trigger: Any, response: Any) -> Command:
		trigger_text, response_text = _clean_fields(trigger, response)
		async with self._write_lock:
			item = Command(id=uuid4().hex, trigger=trigger_text, response=response_text)
			updated = [item, *self._commands]
			await self.store.save(updated)
			self._commands = updated
		self.bus.publish(EventCategory.COMMANDS, {"action": "create", "item": item.to_dict()})
		return item

	async def update(self, command_id: str, trigger: Any, response: Any) -> Command:
		async with self._write_lock:
			index = self._index_of(command_id)
			trigger_text, response_text = _clean_fields(trigger, response)
			item = Command(id=command_id, trigger=trigger_text, response=response_text)
			updated = list(self._commands)
			updated[index] = item
			await self.store.save(updated)
			self._commands = updated
		self.bus.publish(EventCategory.COMMANDS, {"action": "update", "item": item.to_dict()})
		return item

	async def delete(self, command_id: str) -> None:
		async with self._write_lock:
			index = self._index_of(command_id)
			updated = self._commands[:index] + self._commands[index + 1:]
			await self.store.save(updated)
			self._commands = updated
		self.bus.publish(EventCategory.COMMANDS, {"action": "delete", "id": command_id})

	def _index_of(self, command_id: str) -> int:
		for index, command in enumerate(self._commands):
			if command.id == command_id:
				return index
		raise NotFoundError(f"Command {command_id} not found")
