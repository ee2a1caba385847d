"""Bearer token verification against the identity service."""

from __future__ import annotations

import httpx
from pydantic import ValidationError
from supabase import AsyncClient, AuthApiError, AuthError

from lib.contracts.errors import IdentityServiceError, Unauthorized
from lib.contracts.identity import Identity
from lib.telemetry.logger import get_logger, log_event

logger = get_logger(__name__)

REJECTED_STATUSES = (400, 401, 403, 404)


class IdentityVerifier:
    """Resolve a bearer token to an :class:`Identity`.

    The identity service is treated as a black box: a token is either
    accepted (the user record is returned) or rejected.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def verify(self, token: str) -> Identity:
        if not token:
            raise Unauthorized("No authorization token provided.")
        try:
            resp = await self.client.auth.get_user(token)
        except AuthApiError as exc:
            if exc.status in REJECTED_STATUSES:
                log_event(logger, "auth_failed", status=exc.status)
                raise Unauthorized("Invalid or expired token.") from exc
            log_event(logger, "identity_error", status=exc.status)
            raise IdentityServiceError("Failed to authenticate user.") from exc
        except (AuthError, httpx.HTTPError) as exc:
            log_event(logger, "identity_unreachable", error=str(exc))
            raise IdentityServiceError("Failed to authenticate user.") from exc
        except ValidationError as exc:
            raise Unauthorized("Invalid or expired token.") from exc

        if resp is None or resp.user is None:
            raise Unauthorized("Invalid or expired token.")
        try:
            identity = Identity.model_validate(resp.user.model_dump(mode="json"))
        except ValidationError as exc:
            raise Unauthorized("Invalid or expired token.") from exc
        logger.info("Authenticated user: %s (%s)", identity.email, identity.id)
        return identity
