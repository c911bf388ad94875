"""Per-IP request limits.

``api_limit`` is one 100 requests / 15 minutes window shared by the auth and
election routers. ``admin_limit`` is a 60 request window for the admin
router, and election mutations count against it as well.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from evote import config

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=config.RATE_LIMIT_STORAGE_URI,
    enabled=config.RATE_LIMIT_ENABLED,
)

api_limit = limiter.shared_limit(config.API_RATE_LIMIT, scope="api")
admin_limit = limiter.shared_limit(config.ADMIN_RATE_LIMIT, scope="admin")


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit {exc.detail} hit by {get_remote_address(request)} on {request.url.path}")
    return JSONResponse(status_code=429, content={"message": "Too many requests, try again later"})
