"""Dashboard login route."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from models.errors import Unauthorized
from utils.auth import TokenIssuer
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginPayload(BaseModel):
	username: Optional[str] = None
	password: Optional[str] = None


@router.post("/login")
async def login_route(request: Request, payload: LoginPayload):
	"""Exchange admin credentials for a bearer token."""
	issuer: Optional[TokenIssuer] = getattr(request.app.state, "token_issuer", None)
	if issuer is None:
		raise HTTPException(status_code=500, detail="Token issuer not initialized.")
	try:
		token = issuer.login(payload.username or "", payload.password or "")
	except Unauthorized as exc:
		raise to_http_exception(exc) from exc
	return {"token": token}
