"""Bearer authentication and rate limiting."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address

from lib.config.settings import AppSettings
from lib.contracts.errors import Unauthorized
from lib.contracts.identity import Identity

bearer_scheme = HTTPBearer(auto_error=False)


async def current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Resolve the ``Authorization: Bearer`` header to a verified identity."""

    if credentials is None or not credentials.credentials:
        raise Unauthorized("No authorization token provided.")
    identity = await request.app.state.identity.verify(credentials.credentials)
    request.state.identity = identity
    return identity


def build_limiter(settings: AppSettings) -> Limiter:
    """One in-memory limit shared by every route, per client address."""

    return Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        headers_enabled=True,
        storage_uri="memory://",
    )


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """Count the request against the application limit.

    Installed as a global dependency, so it runs for every path operation
    before authentication.  Raises :class:`slowapi.errors.RateLimitExceeded`
    once the window is spent; otherwise the ``X-RateLimit-*`` headers are
    attached to the outgoing response.
    """

    limiter: Limiter = request.app.state.limiter
    # in_middleware=True selects the application-wide limits
    limiter._check_request_limit(request, enforce_rate_limit, in_middleware=True)
    limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))
