"""Health check endpoint."""

from fastapi import APIRouter
from redis.exceptions import RedisError

from recipe_parser.config import get_settings
from recipe_parser.models.schemas import HealthResponse
from recipe_parser.services.cache import get_redis

router = APIRouter(tags=["health"])
settings = get_settings()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Recipe cache (Redis) is reachable
    """
    try:
        kv = await get_redis()
        await kv.ping()
        cache_status = "connected"
    except RedisError as e:
        cache_status = f"error: {str(e)}"

    return HealthResponse(
        status="healthy" if cache_status == "connected" else "degraded",
        environment=settings.environment,
        cache=cache_status,
    )
