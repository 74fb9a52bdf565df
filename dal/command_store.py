
"""JSON file data access layer for auto-reply commands.

The whole collection is stored as one JSON array of `{id, trigger, response}`
records and rewritten in full on every save. Loading is fail-soft: a missing,
unreadable, or malformed file yields an empty collection.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List

import aiofiles

from models.command import Command

LOGGER = logging.getLogger(__name__)

COMMANDS_FILENAME = "commands.json"


class CommandStore:
	"""Load and save the ordered command collection.

	Usage:
		store = CommandStore(data_dir)
		commands = await store.load()
		await store.save(commands)
	"""

	def __init__(self, data_dir: Path | str, filename: str = COMMANDS_FILENAME):
		self.data_dir = Path(data_dir)
		self.path = self.data_dir / filename

	async def load(self) -> List[Command]:
		"""Return the stored commands in file order, or [] if the file is unusable."""
		if not self.path.exists():
			return []
		try:
			async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
				raw = await f.read()
			records = json.loads(raw)
			if not isinstance(records, list):
				raise ValueError("Command file must contain a JSON array.")
			return [Command.from_dict(record) for record in records]
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.warning("Ignoring unreadable command store %s: %s", self.path, exc)
			return []

	async def save(self, commands: List[Command]) -> None:
		"""Write the full collection, replacing the previous file atomically."""
		self.data_dir.mkdir(parents=True, exist_ok=True)
		tmp_path = self.path.with_name(self.path.name + ".tmp")
		payload = json.dumps([command.to_dict() for command in commands], indent=2, ensure_ascii=False)
		async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
			await f.write(payload)
		os.replace(tmp_path, self.path)
