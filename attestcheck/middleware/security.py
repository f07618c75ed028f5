"""
Security headers and CORS configuration.
"""
import os
from typing import Callable, List

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy
    - Content-Security-Policy (API only, nothing to render)
    - Strict-Transport-Security when ENABLE_HSTS is set
    """

    ENABLE_HSTS = os.getenv("ENABLE_HSTS", "false").lower() == "true"

    HSTS_MAX_AGE = 31536000

    CSP_POLICY = "default-src 'none'; frame-ancestors 'none'"

    # Swagger UI and ReDoc load their own assets
    DOCS_PATHS = {"/docs", "/redoc"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.path not in self.DOCS_PATHS:
            response.headers["Content-Security-Policy"] = self.CSP_POLICY

        if self.ENABLE_HSTS:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.HSTS_MAX_AGE}; includeSubDomains"
            )

        if "Server" in response.headers:
            del response.headers["Server"]

        return response


def get_cors_origins() -> List[str]:
    """
    Get allowed CORS origins from environment.

    Defaults to the production front end plus local development servers.
    """
    origins_str = os.getenv("CORS_ORIGINS", "")

    if origins_str:
        return [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    return [
        "https://www.verifiermondevis.fr",
        "http://localhost:4321",
        "http://localhost:5173",
        "http://127.0.0.1:4321",
    ]
