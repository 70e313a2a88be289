"""Bearer token authentication middleware."""

from __future__ import annotations

import hashlib
import hmac

from fastapi import Request, Response
from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.responses import JSONResponse

from stackscore.constants import AUTH_EXEMPT_PATHS, OWNER_ID_HEX_LENGTH


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": message})


def owner_for_token(token: str, tokens: dict[str, str]) -> str | None:
    """Resolve the caller's owner id from a bearer token.

    With ``auth_tokens`` configured the token must be listed. Without
    it, the owner id is a stable digest of the token so the same
    caller always sees the same records.
    """
    if tokens:
        for known, owner in tokens.items():
            if hmac.compare_digest(
                token.encode("utf-8"), known.encode("utf-8")
            ):
                return owner
        return None
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
    return digest[:OWNER_ID_HEX_LENGTH]


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Require ``Authorization: Bearer <token>`` outside exempt paths.

    The resolved owner id is stored on ``request.state.owner_id``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if (
            request.url.path in AUTH_EXEMPT_PATHS
            or request.method == "OPTIONS"
        ):
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        if not header:
            return _unauthorized("Authorization header missing")
        scheme, _, token = header.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            return _unauthorized("Malformed authorization header")

        settings = request.app.state.settings
        owner_id = owner_for_token(token, settings.auth_tokens)
        if owner_id is None:
            return _unauthorized("Invalid token")

        request.state.owner_id = owner_id
        return await call_next(request)
