"""Process configuration.

All external service settings are read from the environment (or a ``.env``
file) once at startup.  Missing required values raise a
:class:`pydantic.ValidationError` so that the server refuses to boot instead
of failing on the first request.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Typed view over the environment."""

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    supabase_url: str = Field(..., min_length=8, description="Identity and data service base URL.")
    supabase_anon_key: str = Field(..., min_length=1, description="Public API key of the data service.")
    open_api_key: str = Field(..., min_length=1, description="Chat completion provider key.")

    frontend_url: str = Field(
        default="http://localhost:3000",
        min_length=1,
        description="Single origin allowed by CORS, also sent as HTTP-Referer to the provider.",
    )
    rate_limit_max_requests: int = Field(default=100, gt=0)
    rate_limit_window_seconds: int = Field(default=900, gt=0)
    gateway_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for identity and data calls, and for each command handler.",
    )

    completion_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for one chat completion request.",
    )
    completion_base_url: str = Field(default="https://openrouter.ai/api/v1", min_length=8)
    completion_model: str = Field(default="z-ai/glm-4.5-air:free", min_length=1)
    completion_max_tokens: int = Field(default=1000, gt=0)
    completion_temperature: float = Field(default=0.7, ge=0, le=2)
    completion_top_p: float = Field(default=0.9, gt=0, le=1)
    completion_app_title: str = Field(default="HPZ Crew Chatbot")

    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    port: int = Field(default=3001, gt=0, lt=65536)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def rate_limit(self) -> str:
        """Limit string understood by ``slowapi``/``limits``."""

        return f"{self.rate_limit_max_requests} per {self.rate_limit_window_seconds} second"


def load_settings() -> AppSettings:
    """Load and validate settings; raises on missing required values."""

    return AppSettings()
