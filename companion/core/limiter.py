"""Request rate limiting shared by the app and its routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from companion.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.auth.rate_limit_enabled,
)
