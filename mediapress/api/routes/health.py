import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from ...config import VERSION
from ...models.api import HealthResponse
from ...services.container import Services
from ...utils.helpers import format_file_size
from ..dependencies import get_services

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)):
    """Liveness/readiness: Redis e armazenamento"""
    try:
        redis_ok = bool(await services.redis.ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis indisponível: {e}")
        redis_ok = False

    storage_ok = await services.storage.check()
    queues = await services.queue.queue_lengths() if redis_ok else {}

    checks = {
        "queue": redis_ok,
        "storage": storage_ok,
        "rateLimit": redis_ok,
    }
    healthy = all(checks.values())
    settings = services.settings

    response = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=VERSION,
        services=checks,
        queues=queues,
        config={
            "maxFileSize": format_file_size(settings.max_file_size),
            "timeout": f"{settings.processing_timeout_ms}ms",
            "apiKeysConfigured": bool(settings.api_keys),
            "signingKeysConfigured": bool(settings.signing_keys),
            "storage": settings.storage_backend,
        },
    )
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=response.model_dump(by_alias=True, mode="json"),
    )
