"""Runtime domain models shared by the session, router, and event bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from services.history import BoundedHistory

MESSAGE_HISTORY_CAPACITY = 50
EVENT_HISTORY_CAPACITY = 200


def now_iso() -> str:
	"""Return the current UTC time as an ISO-8601 string."""
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ConnectionStatus(str, Enum):
	"""Lifecycle states of the transport connection."""

	STARTING = "starting"
	CONNECTING = "connecting"
	OPEN = "open"
	CLOSING = "closing"
	CLOSED = "closed"


class EventCategory(str, Enum):
	"""Categories published on the event bus."""

	STATUS = "status"
	QR = "qr"
	PAIRING = "pairing"
	MESSAGE = "message"
	LOG = "log"
	COMMANDS = "commands"


@dataclass
class ConnectionState:
	"""Current connection status plus an optional structured cause."""

	status: ConnectionStatus = ConnectionStatus.STARTING
	last_update: str = field(default_factory=now_iso)
	details: Optional[Dict[str, Any]] = None

	def to_dict(self) -> Dict[str, Any]:
		return {"status": self.status.value, "lastUpdate": self.last_update, "details": self.details}


@dataclass
class PairingMaterial:
	"""QR challenge image and pairing code; both may be empty at once."""

	qr_png_base64: Optional[str] = None
	pairing_code: Optional[str] = None


@dataclass(frozen=True)
class InboundMessageRecord:
	"""A text message seen on the transport."""

	at: str
	sender_id: str
	text: str
	is_self_originated: bool

	def to_dict(self) -> Dict[str, Any]:
		return {"at": self.at, "from": self.sender_id, "text": self.text, "isFromMe": self.is_self_originated}


@dataclass(frozen=True)
class SystemEvent:
	"""A state delta distributed to dashboard observers."""

	id: str
	category: str
	payload: Any
	at: str

	def to_dict(self) -> Dict[str, Any]:
		return {"id": self.id, "at": self.at, "type": self.category, "data": self.payload}


@dataclass
class RuntimeState:
	"""Process-scoped runtime state, constructed once at startup and injected."""

	started_at: str = field(default_factory=now_iso)
	connection: ConnectionState = field(default_factory=ConnectionState)
	pairing: PairingMaterial = field(default_factory=PairingMaterial)
	messages: BoundedHistory[InboundMessageRecord] = field(
		default_factory=lambda: BoundedHistory(MESSAGE_HISTORY_CAPACITY)
	)
	events: BoundedHistory[SystemEvent] = field(default_factory=lambda: BoundedHistory(EVENT_HISTORY_CAPACITY))

	def snapshot(self) -> Dict[str, Any]:
		"""Return the complete runtime state in its wire shape."""
		return {
			"startedAt": self.started_at,
			"connection": self.connection.to_dict(),
			"pairingCode": self.pairing.pairing_code,
			"qrPngBase64": self.pairing.qr_png_base64,
			"lastMessages": [record.to_dict() for record in self.messages],
			"lastEvents": [event.to_dict() for event in self.events],
		}
