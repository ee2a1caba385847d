"""Reply models shared by the router, the dispatcher and the HTTP layer."""
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Output of a slash command.

    ``type`` is the command name without the leading slash, or ``error``.
    ``data`` mirrors the rendered markdown in structured form.
    """

    type: str
    content: str
    data: Any = None


class Usage(BaseModel):
    """Token accounting reported by the completion provider."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ChatReply(BaseModel):
    """Output of the completion path.

    A provider failure never surfaces as an exception: ``content`` then holds
    the apology text and ``error`` the classified failure message.
    """

    content: str
    model: str | None = None
    usage: Usage | None = None
    error: str | None = None

    def public_view(self) -> Dict[str, Any]:
        """Shape returned to HTTP clients; ``error`` only when set."""

        body: Dict[str, Any] = {
            "content": self.content,
            "model": self.model,
            "usage": self.usage.model_dump() if self.usage else None,
        }
        if self.error:
            body["error"] = self.error
        return body


class RoutedReply(BaseModel):
    """Result of routing one chat message."""

    type: Literal["command", "ai"]
    response: Union[CommandResult, ChatReply] = Field(...)

    def response_body(self) -> Dict[str, Any]:
        if isinstance(self.response, ChatReply):
            return self.response.public_view()
        return self.response.model_dump()
