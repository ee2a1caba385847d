"""Authenticated caller, built per request from a verified bearer token."""
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class Identity(BaseModel):
    """Verified user as reported by the identity service."""

    id: str
    email: str | None = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None

    @field_validator("user_metadata", "app_metadata", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def display_name(self) -> str:
        """Name shown to the completion provider; falls back to the email."""

        name = self.user_metadata.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
        return self.email or self.id

    def public_view(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": self.user_metadata,
        }
