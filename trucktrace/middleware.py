"""
middleware.py – HTTP middleware: per-IP rate limit on /api/*, access log.
"""
import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse

from .deps import get_rate_limiter

logger = logging.getLogger(__name__)

RATE_LIMITED_MSG = "Too many requests from this IP, please try again later."


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def rate_limit(request: Request, call_next):
    limiter, item = get_rate_limiter()
    if limiter is not None and request.url.path.startswith("/api/"):
        if not limiter.hit(item, "api", client_ip(request)):
            logger.warning("Rate limit exceeded: %s %s", client_ip(request), request.url.path)
            return JSONResponse(status_code=429, content={"success": False, "message": RATE_LIMITED_MSG})
    return await call_next(request)


async def access_log(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response
