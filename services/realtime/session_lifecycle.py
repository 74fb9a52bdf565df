"""Own the transport connection and drive the session state machine.

States: starting -> connecting -> open -> closed. A closure is either
logged-out (terminal until an explicit reset) or recoverable (a new session is
started after a fixed delay). Every state, QR, and pairing change is published
on the event bus.
"""
from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Set

from models.errors import NotReadyError, TransportError, ValidationError
from models.runtime_models import ConnectionState, ConnectionStatus, EventCategory, RuntimeState
from services.qr_generator import QRCodeGenerator
from services.realtime.event_bus import EventBus
from services.realtime.message_router import InboundMessageRouter
from services.transport.base import (
	ConnectionUpdate,
	DisconnectReason,
	MessageBatch,
	Transport,
	TransportListener,
)
from utils.text import to_recipient_id

LOGGER = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 1.2

TransportFactory = Callable[[Path, TransportListener], Transport]


def _clear_directory(path: Path) -> None:
	"""Delete everything inside `path`, keeping the directory itself."""
	if not path.exists():
		return
	for child in path.iterdir():
		if child.is_dir() and not child.is_symlink():
			shutil.rmtree(child, ignore_errors=True)
		else:
			child.unlink(missing_ok=True)


class _SessionListener:
	"""Forward transport callbacks, dropping those from a superseded transport."""

	def __init__(self, controller: "SessionController", generation: int) -> None:
		self.controller = controller
		self.generation = generation

	async def on_connection_update(self, update: ConnectionUpdate) -> None:
		if self.generation != self.controller.generation:
			LOGGER.debug("Ignoring connection update from superseded transport: %s", update)
			return
		await self.controller.on_connection_update(update)

	async def on_messages(self, batch: MessageBatch) -> None:
		if self.generation != self.controller.generation:
			return
		await self.controller.on_messages(batch)


class SessionController:
	"""Single long-lived bot session over a pluggable transport."""

	def __init__(
		self,
		runtime: RuntimeState,
		bus: EventBus,
		router: InboundMessageRouter,
		auth_dir: Path | str,
		transport_factory: TransportFactory,
		pairing_number: str = "",
		reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
		qr_generator: Optional[QRCodeGenerator] = None,
	) -> None:
		self.runtime = runtime
		self.bus = bus
		self.router = router
		self.auth_dir = Path(auth_dir)
		self.transport_factory = transport_factory
		self.pairing_number = pairing_number
		self.reconnect_delay = reconnect_delay
		self.qr_generator = qr_generator or QRCodeGenerator()
		self.generation = 0
		self._transport: Optional[Transport] = None
		self._start_lock = asyncio.Lock()
		self._reconnect_tasks: Set[asyncio.Task] = set()

	@property
	def transport(self) -> Optional[Transport]:
		return self._transport

	@property
	def pending_reconnects(self) -> int:
		return len(self._reconnect_tasks)

	async def start(self) -> bool:
		"""Create a transport and connect it; return False if a start is already running."""
		if self._start_lock.locked():
			LOGGER.debug("Session start already in progress; skipping")
			return False
		async with self._start_lock:
			self._set_status(ConnectionStatus.STARTING)
			self.auth_dir.mkdir(parents=True, exist_ok=True)
			self.generation += 1
			transport = self.transport_factory(self.auth_dir, _SessionListener(self, self.generation))
			self._transport = transport
			try:
				await transport.connect()
			except Exception:
				if self._transport is transport:
					self._transport = None
				raise
			self.bus.publish(EventCategory.LOG, {"msg": "Bot started"})
			LOGGER.info("Bot started")
		return True

	async def reset(self) -> None:
		"""Wipe stored credentials, clear challenges, drop the transport, and start over.

		Teardown holds the start lock, so an in-flight start finishes first and a
		reconnect firing meanwhile is a no-op.
		"""
		async with self._start_lock:
			await asyncio.to_thread(_clear_directory, self.auth_dir)
			self.runtime.pairing.pairing_code = None
			self.runtime.pairing.qr_png_base64 = None
			self.bus.publish(EventCategory.PAIRING, {"pairingCode": None})
			self.bus.publish(EventCategory.QR, {"qrPngBase64": None})

			transport, self._transport = self._transport, None
			self.generation += 1
			if transport is not None:
				try:
					await transport.close()
				except Exception as exc:  # pylint: disable=broad-exception-caught
					LOGGER.warning("Error while closing transport during reset: %s", exc)

		LOGGER.info("Session reset; starting a new session")
		await self.start()

	async def shutdown(self) -> None:
		"""Cancel pending reconnects and close the transport."""
		for task in list(self._reconnect_tasks):
			task.cancel()
		transport, self._transport = self._transport, None
		self.generation += 1
		if transport is not None:
			try:
				await transport.close()
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.warning("Error while closing transport on shutdown: %s", exc)

	async def send_text(self, to: Any, text: Any) -> str:
		"""Send an operator message and return the normalised recipient id."""
		recipient = to_recipient_id(to)
		body = str(text or "").strip()
		if not recipient:
			raise ValidationError("Recipient must contain at least one digit.")
		if not body:
			raise ValidationError("Message text is required.")
		transport = self._transport
		if transport is None or self.runtime.connection.status != ConnectionStatus.OPEN:
			raise NotReadyError("No open session to send through.")
		try:
			await transport.send_text(recipient, body)
		except Exception as exc:
			raise TransportError(f"Send failed: {exc}") from exc
		self.bus.publish(EventCategory.LOG, {"msg": f"Sent message to {recipient}"})
		return recipient

	async def on_connection_update(self, update: ConnectionUpdate) -> None:
		if update.qr is not None and self.runtime.connection.status != ConnectionStatus.OPEN:
			await self._set_qr(update.qr)

		if update.connection is None:
			return
		status = ConnectionStatus(update.connection)
		if status == ConnectionStatus.OPEN:
			self._set_status(ConnectionStatus.OPEN)
			await self._set_qr(None)
			if self.pairing_number:
				await self._request_pairing_code()
		elif status == ConnectionStatus.CLOSED:
			self._handle_close(update.disconnect_code)
		else:
			self._set_status(status)

	async def on_messages(self, batch: MessageBatch) -> None:
		transport = self._transport
		if transport is None:
			return
		await self.router.handle_batch(batch, transport)

	def _handle_close(self, code: Optional[int]) -> None:
		should_reconnect = code != DisconnectReason.LOGGED_OUT
		self._transport = None
		self._set_status(ConnectionStatus.CLOSED, {"statusCode": code, "shouldReconnect": should_reconnect})
		if should_reconnect:
			LOGGER.info("Connection closed (code=%s); reconnecting in %.1fs", code, self.reconnect_delay)
			self._schedule_reconnect()
			return
		LOGGER.warning("Session logged out; waiting for an explicit reset")
		self.runtime.pairing.pairing_code = None
		self.runtime.pairing.qr_png_base64 = None
		self.bus.publish(EventCategory.PAIRING, {"pairingCode": None})
		self.bus.publish(EventCategory.QR, {"qrPngBase64": None})

	def _schedule_reconnect(self) -> None:
		task = asyncio.create_task(self._reconnect_later())
		self._reconnect_tasks.add(task)
		task.add_done_callback(self._reconnect_tasks.discard)

	async def _reconnect_later(self) -> None:
		await asyncio.sleep(self.reconnect_delay)
		if self._transport is not None:
			LOGGER.debug("Session already running; scheduled reconnect skipped")
			return
		try:
			await self.start()
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.exception("Reconnect failed")
			self.bus.publish(EventCategory.LOG, {"msg": f"Reconnect failed: {exc}"})

	async def _request_pairing_code(self) -> None:
		transport = self._transport
		code: Optional[str] = None
		if transport is not None:
			try:
				code = await transport.request_pairing_code(self.pairing_number)
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.warning("Pairing code request failed: %s", exc)
		self.runtime.pairing.pairing_code = code
		self.bus.publish(EventCategory.PAIRING, {"pairingCode": code})

	async def _set_qr(self, challenge: Optional[str]) -> None:
		image = None
		if challenge:
			image = await asyncio.to_thread(self.qr_generator.create_png_base64, challenge)
		self.runtime.pairing.qr_png_base64 = image
		self.bus.publish(EventCategory.QR, {"qrPngBase64": image})

	def _set_status(self, status: ConnectionStatus, details: Optional[Dict[str, Any]] = None) -> None:
		self.runtime.connection = ConnectionState(status=status, details=details)
		self.bus.publish(EventCategory.STATUS, self.runtime.connection.to_dict())
