"""Chat completion gateway (OpenAI-compatible provider via the OpenAI SDK).

Responsibilities:
- Prepend the HPZ Crew system prompt and the caller's tier/points context.
- Issue exactly one completion request per user message (no retry, no stream).
- Classify provider failures and turn them into a successful, apologetic
  :class:`ChatReply` so the chat surface never shows a raw error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import openai
from openai import AsyncOpenAI

from lib.config.settings import AppSettings
from lib.contracts.errors import (
    CompletionError,
    InvalidCredentials,
    ProviderError,
    QuotaExceeded,
    RateLimited,
)
from lib.contracts.replies import ChatReply, Usage
from lib.telemetry.logger import get_logger, log_event

logger = get_logger(__name__)

APOLOGY = "Maaf, sedang ada gangguan di sistem AI. Silakan coba lagi beberapa saat ya! 🙏"
EMPTY_REPLY = "Maaf, aku tidak bisa memproses pesan itu."

SYSTEM_PROMPT = """Kamu adalah asisten AI resmi dari HPZ Crew, komunitas digital untuk para rider dan kreator otomotif di Indonesia.

## INFORMASI DASAR HPZ CREW:
HPZ Crew dibentuk oleh HPZ TV sebagai wadah bagi para penggemar motor, modifikator, dan konten kreator otomotif. Di sini, kamu bisa belajar, berkolaborasi, dan berkontribusi sambil mendapatkan reward nyata.

## SISTEM TIERING:
- 🏁 Rookie Rider (0-499 poin): Starter Kit Digital, akses challenge dasar
- 🏍️ Pro Racer (500-1499 poin): Bonus poin 1.2x, fitur media sosial, merchandise eksklusif
- 🏆 HPZ Legend (1500+ poin): Produk gratis bulanan, event eksklusif, prioritas support

## CARA DAPAT POIN:
- Upload konten dengan #RideWithPride: +50 poin
- Ajak teman lewat link afiliasi: +100 poin
- Ikut challenge mingguan: +30 poin
- Hadir di event: +40 poin
- Penjualan via afiliasi: +150 poin

## REWARD:
- 500 poin: HPZ Merchandise Pack
- 1000 poin: HPZ Product Bundle
- 1500 poin: Tiket Event Nasional
- 2000 poin: Exclusive Legend Kit

## KONTAK HPZ:
- Email: crew@hpztv.com
- Instagram: @hpztv.official
- Discord: discord.gg/hpzcrew

## CARA RESPON:
- Gunakan bahasa Indonesia yang santai dan ramah
- Berikan informasi akurat tentang HPZ Crew
- Motivasi user untuk berkembang di komunitas
- Jika ada pertanyaan teknis, arahkan ke admin
- Selalu sertakan emoji yang relevan
- Berikan saran yang constructif

## PERINTAH KHUSUS:
Jika user mengirim perintah dengan "/" (seperti /misi, /poinku, dll), jelaskan bahwa perintah tersebut akan diproses oleh sistem command HPZ Crew.

Contoh respon:
"Perintah /misi kamu sedang diproses! 🚀 Aku akan menampilkan misi aktif yang bisa kamu kerjakan untuk mendapatkan poin tambahan."

Selalu berikan jawaban yang membantu, informatif, dan sesuai dengan nilai-nilai HPZ Crew: Brotherhood, Creativity, Growth! 🏍️✨"""


def build_completion_client(settings: AppSettings) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.open_api_key,
        base_url=settings.completion_base_url,
        timeout=settings.completion_timeout_seconds,
        max_retries=0,
        default_headers={
            "HTTP-Referer": settings.frontend_url,
            "X-Title": settings.completion_app_title,
        },
    )


def classify_provider_error(exc: Exception) -> CompletionError:
    """Map an SDK exception onto the completion error taxonomy."""

    if isinstance(exc, CompletionError):
        return exc
    status = getattr(exc, "status_code", None)
    if isinstance(exc, openai.AuthenticationError) or status == 401:
        return InvalidCredentials("Invalid OpenRouter API key")
    if isinstance(exc, openai.RateLimitError) or status == 429:
        return RateLimited("Rate limit exceeded. Please try again later.")
    if status == 402:
        return QuotaExceeded("Insufficient OpenRouter credits")
    return ProviderError("Failed to get response from AI service")


def with_context(user_message: str, context: Mapping[str, Any] | None) -> str:
    """Prefix ``user_message`` with the caller's tier and points, if known."""

    context = context or {}
    info = ""
    if context.get("userTier"):
        info += f"Tier pengguna: {context['userTier']}\n"
    if context.get("userPoints"):
        info += f"Poin pengguna: {context['userPoints']}\n"
    if not info:
        return user_message
    return f"{info}\n\nPesan user: {user_message}"


class CompletionGateway:
    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        top_p: float = 0.9,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "CompletionGateway":
        return cls(
            build_completion_client(settings),
            model=settings.completion_model,
            max_tokens=settings.completion_max_tokens,
            temperature=settings.completion_temperature,
            top_p=settings.completion_top_p,
        )

    def _with_system(self, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        if any(m.get("role") == "system" for m in messages):
            return messages
        return [{"role": "system", "content": self.system_prompt}, *messages]

    async def chat_completion(self, messages: List[Dict[str, str]], **options: Any) -> Any:
        """Send one completion request; raises a :class:`CompletionError`."""

        request = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            **options,
            "messages": self._with_system(messages),
            "stream": False,
        }
        logger.debug("Sending completion request to %s", request["model"])
        try:
            return await self.client.chat.completions.create(**request)
        except Exception as exc:
            classified = classify_provider_error(exc)
            log_event(
                logger,
                "provider_error",
                kind=type(classified).__name__,
                status=getattr(exc, "status_code", None),
                error=str(exc),
            )
            raise classified from exc

    async def complete(self, user_message: str, context: Mapping[str, Any] | None = None) -> ChatReply:
        messages = [{"role": "user", "content": with_context(user_message, context)}]
        try:
            completion = await self.chat_completion(messages)
        except CompletionError as exc:
            return ChatReply(content=APOLOGY, error=str(exc))

        choices = getattr(completion, "choices", None) or []
        content = None
        if choices:
            content = getattr(choices[0].message, "content", None)
        return ChatReply(
            content=content or EMPTY_REPLY,
            model=getattr(completion, "model", None),
            usage=_usage(getattr(completion, "usage", None)),
        )

    async def validate_api_key(self) -> bool:
        try:
            page = await self.client.models.list()
        except Exception as exc:
            log_event(logger, "api_key_validation_failed", error=str(exc))
            return False
        return getattr(page, "data", None) is not None

    async def aclose(self) -> None:
        await self.client.close()


def _usage(raw: Any) -> Usage | None:
    if raw is None:
        return None
    return Usage(
        prompt_tokens=getattr(raw, "prompt_tokens", None),
        completion_tokens=getattr(raw, "completion_tokens", None),
        total_tokens=getattr(raw, "total_tokens", None),
    )
