"""The fixed set of slash commands."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional


class CommandToken(str, Enum):
    """Slash commands recognised by the chat surface."""

    MISI = "/misi"
    POINKU = "/poinku"
    TIERKU = "/tierku"
    FAQ = "/faq"
    UPGRADE = "/upgrade"
    HUBUNGI_ADMIN = "/hubungiadmin"

    @property
    def kind(self) -> str:
        """Command name without the leading slash, used as the result type."""

        return self.value[1:]

    @classmethod
    def all_values(cls) -> List[str]:
        return [t.value for t in cls]

    @classmethod
    def lookup(cls, token: str) -> Optional["CommandToken"]:
        """Exact match of an already extracted token; ``None`` otherwise."""

        try:
            return cls(token)
        except ValueError:
            return None

    @classmethod
    def parse(cls, message: str) -> Optional["CommandToken"]:
        """Return the command ``message`` invokes, if any.

        The message is trimmed and lowercased; it is a command only when it
        starts with ``/`` and its first whitespace-delimited token is exactly
        one of the registered commands.
        """

        token = extract_token(message)
        if not token.startswith("/"):
            return None
        return cls.lookup(token)


def extract_token(message: str) -> str:
    parts = (message or "").strip().lower().split()
    return parts[0] if parts else ""
