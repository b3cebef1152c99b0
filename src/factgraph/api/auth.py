"""Bearer token authentication middleware.

When `secret_key` is set to something other than the default, all requests
(except health and docs) must include `Authorization: Bearer <secret_key>`.
Which subject is calling is decided separately, from the subject header.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from factgraph.config import get_settings

# Paths that skip auth
PUBLIC_PATHS = {"/v1/health", "/docs", "/openapi.json", "/redoc"}

DEFAULT_KEY = "change-me-in-production"


def _reject(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"messages": [{"type": "ActionError", "message": message, "messageTemplate": None,
                               "field": None, "parameter": None}]},
    )


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Simple bearer-token auth middleware.

    Auth is enforced only when secret_key != default placeholder.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        settings = get_settings()

        # Skip auth if key is the default placeholder (dev mode)
        if settings.secret_key == DEFAULT_KEY:
            return await call_next(request)

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return _reject(401, "Missing bearer token")

        token = auth_header[7:]  # strip "Bearer "
        if token != settings.secret_key:
            return _reject(403, "Invalid bearer token")

        return await call_next(request)
