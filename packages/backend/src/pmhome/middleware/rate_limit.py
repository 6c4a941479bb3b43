"""Rate limiting middleware — fixed one-minute windows in Redis.

Learn: Each client IP has two counters per minute: one for the credential
endpoints (login, forgot/reset password), which get a much smaller budget
to slow down password guessing and reset-mail flooding, and one for
everything else. Keys look like "pmhome:rl:{bucket}:{ip}:{minute}" and
expire shortly after their window closes.

Redis is optional. Without it (tests, local runs) requests pass through
unlimited; a Redis error mid-flight is logged and also lets the request
through.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pmhome.cache import get_redis

logger = structlog.get_logger()

WINDOW_SECONDS = 60
AUTH_PATHS = ("/auth/login", "/auth/forgot-password", "/auth/reset-password")


def _bucket_for(path: str) -> str:
    return "auth" if path.startswith(AUTH_PATHS) else "api"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.limits = {"api": default_rpm, "auth": auth_rpm}

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        now = int(time.time())
        window = now // WINDOW_SECONDS
        bucket = _bucket_for(request.url.path)
        limit = self.limits[bucket]
        client_ip = request.client.host if request.client else "unknown"
        key = f"pmhome:rl:{bucket}:{client_ip}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, WINDOW_SECONDS * 2)
        except Exception as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > limit:
            retry_after = WINDOW_SECONDS - now % WINDOW_SECONDS
            logger.info("rate_limit.exceeded", client_ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Try again later."},
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        return response
