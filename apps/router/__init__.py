"""Message routing.

:class:`MessageRouter` decides, per chat message, whether the text is a
slash command for the :class:`~apps.command_dispatcher.CommandDispatcher` or
free text for the completion gateway.  Classification is an exact token
match; there is no partial matching and no alias table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from apps.command_dispatcher import CommandDispatcher
from apps.command_dispatcher.tokens import CommandToken
from lib.contracts.identity import Identity
from lib.contracts.replies import RoutedReply
from lib.gateways.completion import CompletionGateway
from lib.telemetry.logger import get_logger, log_event
from lib.utils.validation import ensure

from .models import ChatContext

logger = get_logger(__name__)

MESSAGE_REQUIRED = "Message is required and must be a string"


def classify(message: str) -> Optional[CommandToken]:
    """Return the command ``message`` invokes, or ``None`` for free text."""

    return CommandToken.parse(message)


@dataclass
class MessageRouter:
    """Stateless router between the command dispatcher and the completion path.

    Parameters
    ----------
    dispatcher: executes slash commands.
    completion: answers everything else.
    """

    dispatcher: CommandDispatcher
    completion: CompletionGateway

    async def route(
        self,
        message: Any,
        identity: Identity,
        context: Dict[str, Any] | None = None,
    ) -> RoutedReply:
        """Route one chat message and return the typed reply.

        Raises :class:`~lib.contracts.errors.InvalidInput` when ``message`` is
        empty or not a string.
        """

        ensure(isinstance(message, str) and message != "", MESSAGE_REQUIRED)
        log_event(
            logger,
            "chat_message",
            user_id=identity.id,
            preview=message[:200],
            has_context=bool(context),
        )

        token = classify(message)
        if token is not None:
            result = await self.dispatcher.execute(token.value, identity)
            return RoutedReply(type="command", response=result)

        ctx = ChatContext.for_identity(identity, context)
        reply = await self.completion.complete(message, ctx.as_prompt_fields())
        log_event(
            logger,
            "ai_reply",
            user_id=identity.id,
            model=reply.model,
            failed=reply.error is not None,
        )
        return RoutedReply(type="ai", response=reply)


__all__ = ["MessageRouter", "classify"]
