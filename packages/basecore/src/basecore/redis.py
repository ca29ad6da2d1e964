"""
Redis client utilities for basecore.

Provides lazy-initialized Redis client to avoid import-time connections.
"""

import functools
import json
from typing import Any

import redis

from basecore.settings import get_settings


@functools.lru_cache()
def get_redis_url() -> str:
    """Get Redis URL from settings."""
    return get_settings().REDIS_URL


@functools.lru_cache()
def get_redis_client() -> redis.Redis:
    """
    Get Redis client (cached).

    This function lazily initializes the Redis client to avoid import-time connections.
    """
    url = get_redis_url()
    return redis.from_url(url, decode_responses=True)


def read_json_document(key: str, client: redis.Redis | None = None) -> dict[str, Any] | None:
    """
    Read a JSON document stored under a plain string key.

    Args:
        key: Redis key holding the serialized document
        client: Optional client (defaults to the cached client)

    Returns:
        Parsed document, or None if the key does not exist

    Raises:
        redis.RedisError: If Redis is unreachable
        ValueError: If the stored value is not valid JSON
    """
    client = client or get_redis_client()
    raw = client.get(key)
    if raw is None:
        return None
    return json.loads(raw)


def write_json_document(key: str, document: dict[str, Any], client: redis.Redis | None = None) -> None:
    """Serialize a document as JSON and store it under key."""
    client = client or get_redis_client()
    client.set(key, json.dumps(document))
