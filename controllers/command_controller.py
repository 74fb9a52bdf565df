from typing import Any, Dict, List

from fastapi import HTTPException, Request

from services.command_registry import CommandRegistry


def _registry(request: Request) -> CommandRegistry:
    registry = getattr(request.app.state, "command_registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Command registry not initialized.")
    return registry


def list_commands(request: Request) -> List[Dict[str, Any]]:
    """Return all commands, newest first."""
    return [command.to_dict() for command in _registry(request).list()]


async def create_command(request: Request, trigger: Any, response: Any) -> Dict[str, Any]:
    """Create a command and return it.

    Args:
        request: FastAPI Request (used to access the shared registry).
        trigger: Text that fires the command.
        response: Reply text.

    Raises:
        ValidationError: If either field is empty after trimming.
    """
    command = await _registry(request).create(trigger, response)
    return command.to_dict()


async def update_command(request: Request, command_id: str, trigger: Any, response: Any) -> Dict[str, Any]:
    command = await _registry(request).update(command_id, trigger, response)
    return command.to_dict()


async def delete_command(request: Request, command_id: str) -> Dict[str, Any]:
    await _registry(request).delete(command_id)
    return {"ok": True}
