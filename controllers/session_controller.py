"""Request helpers for the bot session: status reads, reset, and operator sends."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import HTTPException, Request

from models.runtime_models import RuntimeState, now_iso
from services.realtime.session_lifecycle import SessionController


def _runtime(request: Request) -> RuntimeState:
	runtime = getattr(request.app.state, "runtime", None)
	if runtime is None:
		raise HTTPException(status_code=500, detail="Runtime state not initialized.")
	return runtime


def _session(request: Request) -> SessionController:
	session = getattr(request.app.state, "session", None)
	if session is None:
		raise HTTPException(status_code=500, detail="Session controller not initialized.")
	return session


def health() -> Dict[str, Any]:
	return {"ok": True, "at": now_iso()}


def get_status(request: Request) -> Dict[str, Any]:
	"""Return the current connection state."""
	return _runtime(request).connection.to_dict()


def get_qr(request: Request) -> Dict[str, Any]:
	return {"qrPngBase64": _runtime(request).pairing.qr_png_base64}


def get_pairing(request: Request) -> Dict[str, Any]:
	return {"pairingCode": _runtime(request).pairing.pairing_code}


def list_messages(request: Request) -> List[Dict[str, Any]]:
	"""Return recent inbound messages, newest first."""
	return [record.to_dict() for record in _runtime(request).messages]


async def reset_session(request: Request) -> Dict[str, Any]:
	"""Wipe credentials and restart the session."""
	await _session(request).reset()
	return {"ok": True}


async def send_message(request: Request, to: Any, text: Any) -> Dict[str, Any]:
	"""Send an operator message through the open session.

	Raises:
		ValidationError: If the recipient has no digits or the text is empty.
		NotReadyError: If no session is open.
		TransportError: If the transport rejects the send.
	"""
	await _session(request).send_text(to, text)
	return {"ok": True}
