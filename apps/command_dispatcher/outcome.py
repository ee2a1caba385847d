"""Fetch outcome with an explicit fallback.

Handlers never let a failed fetch escape: the fetch is captured into an
:class:`Outcome` and resolved with :meth:`Outcome.unwrap_or`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.error is None else default  # type: ignore[return-value]

    @classmethod
    async def capture(cls, awaitable: Awaitable[T], timeout: float | None = None) -> "Outcome[T]":
        """Await ``awaitable`` under ``timeout``; a timeout counts as a failure."""

        try:
            return cls(value=await asyncio.wait_for(awaitable, timeout))
        except Exception as exc:
            return cls(error=exc)
