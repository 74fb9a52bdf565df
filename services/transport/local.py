"""Local development transport.

Simulates a chat network on the same machine: it publishes a QR challenge
until the session is paired, persists a small credential file in the auth
directory, and logs outgoing messages instead of delivering them.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Optional, Set

from models.runtime_models import ConnectionStatus, now_iso
from services.transport.base import (
	NOTIFY,
	ConnectionUpdate,
	DisconnectReason,
	MessageBatch,
	Transport,
	TransportListener,
	TransportMessage,
)

LOGGER = logging.getLogger(__name__)

CREDS_FILENAME = "creds.json"


class LocalTransport(Transport):
	"""Loopback transport that pairs itself after `pair_after` seconds."""

	def __init__(self, auth_dir: Path, listener: TransportListener, pair_after: Optional[float] = None) -> None:
		super().__init__(auth_dir, listener)
		if pair_after is None:
			pair_after = float(os.getenv("LOCAL_PAIR_AFTER", "5"))
		self.pair_after = pair_after
		self.sent: list[tuple[str, str]] = []
		self._tasks: Set[asyncio.Task] = set()
		self._closed = False

	@property
	def creds_path(self) -> Path:
		return self.auth_dir / CREDS_FILENAME

	async def connect(self) -> None:
		self._closed = False
		await self.listener.on_connection_update(ConnectionUpdate(connection=ConnectionStatus.CONNECTING))
		if self.creds_path.exists():
			await self.listener.on_connection_update(ConnectionUpdate(connection=ConnectionStatus.OPEN))
			return
		challenge = f"local-pair:{secrets.token_urlsafe(16)}"
		await self.listener.on_connection_update(ConnectionUpdate(qr=challenge))
		self._spawn(self._pair_later())

	async def request_pairing_code(self, phone_number: str) -> str:
		if not phone_number.isdigit():
			raise ValueError("Pairing number must contain digits only.")
		return secrets.token_hex(4).upper()

	async def send_text(self, recipient_id: str, text: str) -> None:
		if self._closed:
			raise ConnectionError("Local transport is closed.")
		self.sent.append((recipient_id, text))
		LOGGER.info("Local transport delivered message to %s: %s", recipient_id, text)

	async def close(self) -> None:
		self._closed = True
		for task in list(self._tasks):
			task.cancel()

	async def receive(self, sender_id: str, text: str, from_me: bool = False) -> None:
		"""Inject an inbound text as if it arrived from the network."""
		message = TransportMessage(sender_id=sender_id, from_me=from_me, content={"conversation": text})
		await self.listener.on_messages(MessageBatch(kind=NOTIFY, messages=[message]))

	async def log_out(self) -> None:
		"""Drop the stored credentials and report a logged-out closure."""
		self.creds_path.unlink(missing_ok=True)
		self._closed = True
		await self.listener.on_connection_update(
			ConnectionUpdate(connection=ConnectionStatus.CLOSED, disconnect_code=DisconnectReason.LOGGED_OUT)
		)

	async def _pair_later(self) -> None:
		await asyncio.sleep(self.pair_after)
		if self._closed:
			return
		self.auth_dir.mkdir(parents=True, exist_ok=True)
		self.creds_path.write_text(json.dumps({"paired_at": now_iso()}), encoding="utf-8")
		await self.listener.on_connection_update(ConnectionUpdate(connection=ConnectionStatus.OPEN))

	def _spawn(self, coro) -> None:
		task = asyncio.create_task(coro)
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
