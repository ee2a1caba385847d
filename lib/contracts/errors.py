"""Error taxonomy.

Client-facing errors carry the HTTP status and the short ``error`` label used
in response bodies.  Completion errors never reach HTTP clients: the
completion gateway converts them into a successful reply.
"""

from __future__ import annotations

from typing import Any, Dict, List


class AppError(Exception):
    status_code = 500
    label = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.label, "message": self.message}


class InvalidInput(AppError):
    status_code = 400
    label = "Bad Request"


class Unauthorized(AppError):
    status_code = 401
    label = "Unauthorized"


class IdentityServiceError(AppError):
    """The identity service could not be reached or answered garbage."""

    status_code = 500
    label = "Authentication Error"


class UnknownCommand(AppError):
    status_code = 400
    label = "Bad Request"

    def __init__(self, command: str, available: List[str]) -> None:
        super().__init__("Invalid command")
        self.command = command
        self.available = list(available)

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["availableCommands"] = self.available
        return body

    def error_content(self) -> str:
        listing = "\n".join(f"• {cmd}" for cmd in self.available)
        return (
            f"❌ Perintah tidak dikenal: {self.command}\n\n"
            f"Perintah yang tersedia:\n{listing}"
        )


# ---------------------------------------------------------------------------
# Data service
# ---------------------------------------------------------------------------


class DataServiceError(Exception):
    """A data query failed (transport, HTTP status or malformed body)."""


class RecordNotFound(DataServiceError):
    """A single-row query matched nothing."""


# ---------------------------------------------------------------------------
# Completion provider
# ---------------------------------------------------------------------------


class CompletionError(Exception):
    pass


class InvalidCredentials(CompletionError):
    pass


class RateLimited(CompletionError):
    pass


class QuotaExceeded(CompletionError):
    pass


class ProviderError(CompletionError):
    pass
