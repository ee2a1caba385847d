"""Validation helpers."""

from lib.contracts.errors import InvalidInput


def ensure(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidInput(message)
