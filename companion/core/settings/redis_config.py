"""Redis connection configuration."""

from pydantic import BaseModel


class RedisConfig(BaseModel, frozen=True):
    """Redis settings for token revocation and login throttling."""

    url: str
    socket_timeout: float
