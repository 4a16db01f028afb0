"""HTTP middleware: security headers, request body cap and per-client rate limiting."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."
BODY_TOO_LARGE_MESSAGE = "Request body too large"
INVALID_BODY_MESSAGE = "Invalid request body"

# Applied to every response. No Content-Security-Policy: the bundled
# frontend uses inline script.
SECURITY_HEADERS: dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add a fixed set of hardening headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared ``Content-Length`` exceeds ``max_bytes``.

    The check runs before the body is read, so an oversized JSON document is
    never parsed.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                return JSONResponse({"error": INVALID_BODY_MESSAGE}, status_code=400)
            if size > self.max_bytes:
                logger.warning(f"Rejected {size}-byte body on {request.url.path}")
                return JSONResponse({"error": BODY_TOO_LARGE_MESSAGE}, status_code=413)
        return await call_next(request)


class FixedWindowRateLimiter:
    """Count hits per key within fixed time windows.

    Windows start at a key's first hit and last ``window_seconds``. Expired
    windows are dropped lazily on the next hit for the same key, and in bulk
    whenever the table grows past ``prune_threshold`` entries.

    Args:
        limit: Hits allowed per window
        window_seconds: Window length
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 10_000,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self.prune_threshold = prune_threshold
        self._windows: dict[str, tuple[float, int]] = {}

    def _prune(self, now: float) -> None:
        self._windows = {
            key: (start, count)
            for key, (start, count) in self._windows.items()
            if now - start < self.window_seconds
        }

    def hit(self, key: str) -> tuple[bool, int, float]:
        """Record one hit for *key*.

        Returns:
            Tuple of (allowed, remaining hits, seconds until the window resets)
        """
        now = self.clock()
        if len(self._windows) > self.prune_threshold:
            self._prune(now)

        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0

        count += 1
        self._windows[key] = (start, count)

        reset_in = max(0.0, self.window_seconds - (now - start))
        remaining = max(0, self.limit - count)
        return count <= self.limit, remaining, reset_in

    def reset(self) -> None:
        """Forget all windows."""
        self._windows.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the request budget on a path prefix.

    Answers over-limit requests with 429 and ``{"error": ...}``. Standard
    ``RateLimit-*`` headers are set on every limited-path response.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowRateLimiter,
        path_prefix: str = "/api/",
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_key = request.client.host if request.client else "unknown"
        allowed, remaining, reset_in = self.limiter.hit(client_key)
        headers = {
            "RateLimit-Limit": str(self.limiter.limit),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(math.ceil(reset_in)),
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for client {client_key}")
            headers["Retry-After"] = str(math.ceil(reset_in))
            return JSONResponse({"error": RATE_LIMIT_MESSAGE}, status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
