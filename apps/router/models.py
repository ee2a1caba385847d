"""Pydantic models used by the message router."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lib.contracts.identity import Identity


class ChatContext(BaseModel):
    """Caller context forwarded to the completion provider.

    ``userTier`` and ``userPoints`` come from the client as-is; empty values
    fall back to ``"Unknown"`` and ``0``.  ``userName`` always comes from the
    verified identity.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_tier: Any = Field(default="Unknown", alias="userTier")
    user_points: Any = Field(default=0, alias="userPoints")
    user_name: Optional[str] = Field(default=None, alias="userName")

    @field_validator("user_tier", mode="before")
    @classmethod
    def _tier_or_unknown(cls, v: Any) -> Any:
        return v or "Unknown"

    @field_validator("user_points", mode="before")
    @classmethod
    def _points_or_zero(cls, v: Any) -> Any:
        return v or 0

    @classmethod
    def for_identity(cls, identity: Identity, raw: Dict[str, Any] | None = None) -> "ChatContext":
        raw = raw if isinstance(raw, dict) else {}
        values = {k: v for k, v in raw.items() if k in ("userTier", "userPoints")}
        return cls.model_validate({**values, "userName": identity.display_name})

    def as_prompt_fields(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
