"""Lazily created Redis connection backing the token blocklist."""

import logging

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client built from ``REDIS_URL``.

    Short socket timeouts make an unreachable Redis surface as an error
    quickly, which the token service turns into a fail-closed 503.
    """

    global _client
    if _client is None:
        timeout = getattr(settings, "REDIS_SOCKET_TIMEOUT", 2.0)
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        logger.debug("Created Redis client for blocklist at %s", settings.REDIS_URL)
    return _client


def reset_redis_client() -> None:
    """Drop the cached client so the next call reconnects with current settings."""

    global _client
    _client = None


__all__ = ["get_redis_client", "reset_redis_client"]
