"""Dashboard login and bearer-token verification."""

from __future__ import annotations

import hmac
import secrets
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request

from models.errors import Unauthorized
from utils.http_errors import to_http_exception


class TokenIssuer:
	"""Issue opaque bearer tokens for the configured admin account."""

	def __init__(self, admin_user: str, admin_pass: str, ttl_seconds: int) -> None:
		self.admin_user = admin_user
		self.admin_pass = admin_pass
		self.ttl_seconds = ttl_seconds
		self._tokens: Dict[str, Tuple[str, float]] = {}

	def login(self, username: str, password: str) -> str:
		"""Return a new token, or raise Unauthorized for bad credentials."""
		user_ok = hmac.compare_digest(str(username or "").encode(), self.admin_user.encode())
		pass_ok = hmac.compare_digest(str(password or "").encode(), self.admin_pass.encode())
		if not (user_ok and pass_ok):
			raise Unauthorized("Invalid username or password.")
		self._prune()
		token = secrets.token_urlsafe(32)
		self._tokens[token] = (self.admin_user, time.time() + self.ttl_seconds)
		return token

	def verify(self, token: Optional[str]) -> str:
		"""Return the username bound to `token`, or raise Unauthorized."""
		if not token:
			raise Unauthorized("Missing bearer token.")
		entry = self._tokens.get(token)
		if entry is None:
			raise Unauthorized("Invalid bearer token.")
		username, expires_at = entry
		if expires_at <= time.time():
			self._tokens.pop(token, None)
			raise Unauthorized("Bearer token expired.")
		return username

	def _prune(self) -> None:
		now = time.time()
		for token in [t for t, (_, expires_at) in self._tokens.items() if expires_at <= now]:
			del self._tokens[token]


def bearer_token(request: Request) -> Optional[str]:
	header = request.headers.get("authorization") or ""
	if header.startswith("Bearer "):
		return header[7:].strip() or None
	return None


def require_user(request: Request) -> str:
	"""FastAPI dependency enforcing a valid bearer token."""
	issuer: Optional[TokenIssuer] = getattr(request.app.state, "token_issuer", None)
	if issuer is None:
		raise HTTPException(status_code=500, detail="Token issuer not initialized.")
	try:
		return issuer.verify(bearer_token(request))
	except Unauthorized as exc:
		raise to_http_exception(exc) from exc
