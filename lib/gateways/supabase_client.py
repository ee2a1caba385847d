"""Supabase client shared by the identity and data gateways."""

from __future__ import annotations

import httpx
from supabase import AsyncClient, AsyncClientOptions

from lib.config.settings import AppSettings

USER_AGENT = "hpz-crew-backend/1.0"


def build_http_client(
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Transport handed to every supabase sub-client.

    Requests are bounded by ``gateway_timeout_seconds``.
    """

    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.gateway_timeout_seconds),
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


def build_supabase_client(settings: AppSettings, http_client: httpx.AsyncClient) -> AsyncClient:
    """Service-side client keyed with the anon key.

    No session is kept: every caller token is passed explicitly to
    ``auth.get_user``, and table queries run under the anon key.
    """

    options = AsyncClientOptions(
        httpx_client=http_client,
        auto_refresh_token=False,
        persist_session=False,
    )
    return AsyncClient(settings.supabase_url, settings.supabase_anon_key, options)
