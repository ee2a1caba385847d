"""Chat and auth endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from apps.router import MESSAGE_REQUIRED, classify
from apps.router.models import ChatContext
from lib.contracts.errors import UnknownCommand
from lib.contracts.identity import Identity
from lib.telemetry.logger import get_logger
from lib.utils.helpers import _utcnow_iso
from lib.utils.validation import ensure

from .security import current_identity

logger = get_logger(__name__)

DEBUG_IDENTITY = Identity(id="debug-user", email="dev@local")

chat_router = APIRouter(prefix="/api/chat", tags=["chat"])
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
debug_router = APIRouter(prefix="/api/chat", tags=["debug"])


class MessageRequest(BaseModel):
    """Body of ``POST /api/chat/message``.

    Fields are loosely typed so that a missing or non-string message is
    reported with the chat-specific 400 message rather than a schema error.
    """

    message: Any = None
    context: Any = None


class CommandRequest(BaseModel):
    command: Any = None


# ---------------------------------------------------------------------------
# /api/chat
# ---------------------------------------------------------------------------


@chat_router.post("/message")
async def send_message(
    body: MessageRequest,
    request: Request,
    identity: Identity = Depends(current_identity),
):
    """Route a chat message to a command or to the AI."""

    reply = await request.app.state.router.route(body.message, identity, body.context)
    return {
        "success": True,
        "type": reply.type,
        "response": reply.response_body(),
        "timestamp": _utcnow_iso(),
    }


@chat_router.get("/commands")
async def list_commands(request: Request, identity: Identity = Depends(current_identity)):
    return {"success": True, "commands": request.app.state.dispatcher.commands}


@chat_router.post("/command")
async def run_command(
    body: CommandRequest,
    request: Request,
    identity: Identity = Depends(current_identity),
):
    """Execute a slash command directly, bypassing the AI path."""

    dispatcher = request.app.state.dispatcher
    ensure(isinstance(body.command, str) and body.command != "", "Command is required")
    token = classify(body.command)
    if token is None:
        raise UnknownCommand(body.command, dispatcher.tokens)

    result = await dispatcher.execute(token.value, identity)
    logger.info("Direct command executed: %s by %s", token.value, identity.email)
    return {
        "success": True,
        "command": token.value,
        "response": result.model_dump(),
        "timestamp": _utcnow_iso(),
    }


@chat_router.get("/status")
async def chat_status(request: Request):
    """Provider reachability and the command registry; no auth."""

    connected = await request.app.state.completion.validate_api_key()
    tokens = request.app.state.dispatcher.tokens
    return {
        "success": True,
        "services": {
            "openRouter": {
                "status": "connected" if connected else "disconnected",
                "message": "API key valid" if connected else "Invalid API key",
            }
        },
        "commands": {"available": len(tokens), "list": tokens},
        "timestamp": _utcnow_iso(),
    }


@debug_router.post("/message/debug")
async def debug_message(body: MessageRequest, request: Request):
    """AI path without authentication.  Only mounted outside production."""

    ensure(isinstance(body.message, str) and body.message != "", MESSAGE_REQUIRED)
    ctx = ChatContext.for_identity(DEBUG_IDENTITY, body.context)
    reply = await request.app.state.completion.complete(body.message, ctx.as_prompt_fields())
    return {
        "success": True,
        "type": "ai",
        "response": reply.public_view(),
        "timestamp": _utcnow_iso(),
    }


# ---------------------------------------------------------------------------
# /api/auth
# ---------------------------------------------------------------------------


@auth_router.get("/validate")
async def validate(identity: Identity = Depends(current_identity)):
    return {
        "success": True,
        "user": identity.public_view(),
        "message": "Authentication successful",
    }


@auth_router.get("/me")
async def me(identity: Identity = Depends(current_identity)):
    return {"success": True, "user": identity.model_dump()}


@auth_router.post("/validate-key")
async def validate_key(request: Request):
    valid = await request.app.state.completion.validate_api_key()
    return {
        "success": valid,
        "message": "OpenRouter API key is valid" if valid else "Invalid OpenRouter API key",
    }
