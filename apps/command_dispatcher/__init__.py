"""Slash-command dispatcher.

:class:`CommandDispatcher` maps every :class:`CommandToken` to exactly one
:class:`~apps.command_dispatcher.handlers.CommandHandler`.  Handlers degrade
to static data on their own; the dispatcher only guards against a handler
that raises anyway and turns that into the generic error reply.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List

from lib.config.catalog_loader import CommandCatalog, load_command_catalog
from lib.contracts.errors import UnknownCommand
from lib.contracts.identity import Identity
from lib.contracts.replies import CommandResult
from lib.telemetry.logger import get_logger, log_event

from .handlers import CommandHandler
from .tokens import CommandToken

logger = get_logger(__name__)

CATALOG_PATH = Path(__file__).with_name("catalog.yaml")

GENERIC_ERROR = "❌ Terjadi kesalahan saat memproses perintah. Silakan coba lagi atau hubungi admin."


def load_catalog(path: str | Path = CATALOG_PATH) -> CommandCatalog:
    return load_command_catalog(path)


class CommandDispatcher:
    """Execute slash commands for an authenticated caller.

    Parameters
    ----------
    handlers:
        One handler per :class:`CommandToken`.  A missing or duplicated
        token raises ``ValueError``; each handler is checked against the
        catalog here, so a missing fallback dataset fails at startup.
    catalog:
        Supplies the per-command descriptions.
    """

    def __init__(self, handlers: Iterable[CommandHandler], catalog: CommandCatalog) -> None:
        self.catalog = catalog
        self._handlers: Dict[CommandToken, CommandHandler] = {}
        for handler in handlers:
            if handler.token in self._handlers:
                raise ValueError(f"duplicate handler for {handler.token.value}")
            handler.check()
            self._handlers[handler.token] = handler
        missing = [t.value for t in CommandToken if t not in self._handlers]
        if missing:
            raise ValueError(f"no handler for {', '.join(missing)}")

    @property
    def tokens(self) -> List[str]:
        return CommandToken.all_values()

    @property
    def commands(self) -> List[Dict[str, str]]:
        """Registered commands with their descriptions, in declaration order."""

        return [{"command": t, "description": self.catalog.description(t)} for t in self.tokens]

    async def execute(self, token: str, identity: Identity) -> CommandResult:
        """Run the handler registered for ``token``.

        ``token`` is matched case-insensitively.  An unknown token is
        answered with the :class:`UnknownCommand` error result listing the
        valid commands.
        """

        command = CommandToken.lookup((token or "").strip().lower())
        if command is None:
            unknown = UnknownCommand(token, self.tokens)
            log_event(logger, "unknown_command", level=logging.WARNING, command=token, user_id=identity.id)
            return CommandResult(type="error", content=unknown.error_content())

        logger.info("Processing command %s for user %s", command.value, identity.id)
        try:
            result = await self._handlers[command].handle(identity)
        except Exception as exc:
            log_event(
                logger,
                "command_failed",
                level=logging.ERROR,
                command=command.value,
                user_id=identity.id,
                error=repr(exc),
            )
            return CommandResult(type="error", content=GENERIC_ERROR)

        log_event(logger, "command_executed", command=command.value, user_id=identity.id)
        return result


__all__ = ["CommandDispatcher", "CommandToken", "load_catalog", "GENERIC_ERROR"]
