"""FastAPI routes for the bot session, message history, and operator sends."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from controllers.session_controller import (
	get_pairing,
	get_qr,
	get_status,
	list_messages,
	reset_session,
	send_message,
)
from models.errors import BotError
from utils.auth import require_user
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api", tags=["session"], dependencies=[Depends(require_user)])


class SendPayload(BaseModel):
	to: Optional[Union[str, int]] = None
	text: Optional[str] = None


@router.get("/status")
async def status_route(request: Request):
	return get_status(request)


@router.get("/qr")
async def qr_route(request: Request):
	return get_qr(request)


@router.get("/pairing")
async def pairing_route(request: Request):
	return get_pairing(request)


@router.get("/messages")
async def messages_route(request: Request):
	return list_messages(request)


@router.post("/session/reset")
async def reset_route(request: Request):
	try:
		return await reset_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/send")
async def send_route(request: Request, payload: SendPayload):
	try:
		return await send_message(request, payload.to, payload.text)
	except HTTPException:
		raise
	except BotError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
