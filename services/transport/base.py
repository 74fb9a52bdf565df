"""Contract between the session controller and a messaging transport.

A transport owns the network connection and its credential files. It reports
connection changes and inbound message batches to a listener and offers
pairing-code and send primitives.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from models.runtime_models import ConnectionStatus


class DisconnectReason:
	"""Disconnect cause codes reported with a closed connection."""

	CONNECTION_CLOSED = 428
	CONNECTION_LOST = 408
	LOGGED_OUT = 401
	RESTART_REQUIRED = 515


# Batch kinds: live notifications vs. history backfill.
NOTIFY = "notify"
APPEND = "append"


@dataclass
class ConnectionUpdate:
	"""A connection notification; any field may be absent.

	`connection` may be a `ConnectionStatus` or its plain string value.
	"""

	connection: Optional[Union[ConnectionStatus, str]] = None
	qr: Optional[str] = None
	disconnect_code: Optional[int] = None


@dataclass
class TransportMessage:
	"""An inbound message with its raw content payload."""

	sender_id: Optional[str]
	from_me: bool = False
	content: Optional[Dict[str, Any]] = None


@dataclass
class MessageBatch:
	kind: str
	messages: List[TransportMessage] = field(default_factory=list)


class TransportListener(Protocol):
	async def on_connection_update(self, update: ConnectionUpdate) -> None:
		...

	async def on_messages(self, batch: MessageBatch) -> None:
		...


class Transport(ABC):
	"""Base class for messaging transports loaded by the session controller."""

	def __init__(self, auth_dir: Path, listener: TransportListener) -> None:
		self.auth_dir = Path(auth_dir)
		self.listener = listener

	@abstractmethod
	async def connect(self) -> None:
		"""Open the connection; progress is reported through the listener."""

	@abstractmethod
	async def request_pairing_code(self, phone_number: str) -> str:
		"""Return a short pairing code for linking the given phone number."""

	@abstractmethod
	async def send_text(self, recipient_id: str, text: str) -> None:
		"""Deliver a text message."""

	@abstractmethod
	async def close(self) -> None:
		"""Terminate the connection without touching stored credentials."""
