"""Recipe cache keyed by a hash of the source URL (Redis)."""

import hashlib
import json
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from recipe_parser.config import get_settings
from recipe_parser.models.schemas import ParsedRecipe, validate_recipe


CACHE_KEY_PREFIX = "recipe:"
CACHE_TTL_SECONDS = 86400

_redis: Redis | None = None


async def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(get_settings().redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def url_to_cache_key(url: str) -> str:
    """
    "recipe:" + hex sha256 of the lowercased URL.

    Only case is folded: query strings, trailing slashes and scheme are
    part of the key as written. Other services read the same keys, so
    the format must not change.
    """
    digest = hashlib.sha256(url.lower().encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


async def get_cached_recipe(kv: Redis, url: str) -> Optional[ParsedRecipe]:
    """Cached recipe for url, or None on a miss, a Redis error or a stale shape."""
    key = url_to_cache_key(url)
    try:
        raw = await kv.get(key)
    except RedisError as e:
        print(f"⚠️ Cache read failed: {e}")
        return None
    if not raw:
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        print(f"⚠️ Ignoring unreadable cache entry {key}")
        return None

    recipe, errors = validate_recipe(data)
    if errors:
        print(f"⚠️ Ignoring cache entry that no longer validates: {key}")
        return None
    return recipe


async def cache_recipe(
    kv: Redis,
    url: str,
    recipe: ParsedRecipe,
    ttl_seconds: int = CACHE_TTL_SECONDS,
) -> bool:
    """Write-through a recipe. Returns False (and logs) if Redis is unavailable."""
    key = url_to_cache_key(url)
    try:
        await kv.set(key, recipe.model_dump_json(), ex=ttl_seconds)
    except RedisError as e:
        print(f"⚠️ Cache write failed: {e}")
        return False
    print(f"💾 Cached recipe under {key[:20]}...")
    return True
