import logging
import time
import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from alertaseguro.config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
SENSOR_PATHS = frozenset({"/esp/event"})


def _bucket(request: Request) -> tuple[str, int]:
    """Redis key and per-minute limit. Sensor events are counted apart from app traffic."""
    client_ip = request.client.host if request.client else "unknown"
    if request.url.path in SENSOR_PATHS:
        return f"rate_limit:sensor:{client_ip}", settings.SENSOR_RATE_LIMIT_PER_MINUTE
    return f"rate_limit:api:{client_ip}", settings.RATE_LIMIT_PER_MINUTE


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-backed sliding window rate limiter, keyed by client IP."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/health":
            return await call_next(request)

        redis_client = getattr(request.app.state, "redis", None)
        if redis_client is None:
            return await call_next(request)

        key, limit = _bucket(request)
        now = time.time()
        try:
            pipe = redis_client.pipeline()
            pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
            pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
            pipe.zcard(key)
            pipe.expire(key, WINDOW_SECONDS)
            results = await pipe.execute()
        except Exception as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if results[2] > limit:
            logger.info("Rate limit hit for %s", key)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )

        return await call_next(request)
