"""FastAPI routes for auto-reply command management."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from controllers.command_controller import create_command, delete_command, list_commands, update_command
from models.errors import BotError
from utils.auth import require_user
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/commands", tags=["commands"], dependencies=[Depends(require_user)])


class CommandPayload(BaseModel):
	trigger: Optional[str] = None
	response: Optional[str] = None


@router.get("")
async def list_commands_route(request: Request):
	return list_commands(request)


@router.post("", status_code=201)
async def create_command_route(request: Request, payload: CommandPayload):
	try:
		return await create_command(request, payload.trigger, payload.response)
	except HTTPException:
		raise
	except BotError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{command_id}")
async def update_command_route(request: Request, command_id: str, payload: CommandPayload):
	try:
		return await update_command(request, command_id, payload.trigger, payload.response)
	except HTTPException:
		raise
	except BotError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{command_id}")
async def delete_command_route(request: Request, command_id: str):
	try:
		return await delete_command(request, command_id)
	except HTTPException:
		raise
	except BotError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
