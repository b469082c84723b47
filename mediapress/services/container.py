import logging
from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis

from ..config import Settings
from ..engine import CompressionEngine
from .broker import BrokerClient
from .dispatcher import Dispatcher
from .processor import JobProcessor
from .queue import QueueService
from .rate_limiter import RateLimiter
from .signature import SignatureVerifier
from .storage import BlobStorage, LocalStorage, StorageGateway

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Instâncias compartilhadas por requisição via app.state (sem singletons de módulo)"""

    settings: Settings
    redis: Any
    broker: Any
    storage: StorageGateway
    queue: QueueService
    rate_limiter: RateLimiter
    engine: Any
    processor: JobProcessor
    dispatcher: Dispatcher

    async def close(self):
        if hasattr(self.broker, "close"):
            await self.broker.close()
        await self.storage.close()
        await self.redis.aclose()


def build_storage(settings: Settings) -> StorageGateway:
    if settings.storage_backend == "blob":
        return BlobStorage(settings.blob_read_write_token, settings.blob_api_url)
    if settings.storage_backend != "local":
        raise ValueError(f"STORAGE_BACKEND inválido: {settings.storage_backend}")
    return LocalStorage(settings.storage_dir, settings.app_url)


def assemble_services(
        settings: Settings,
        redis_client,
        broker,
        storage: StorageGateway,
        engine=None
) -> Services:
    """Liga as peças; usado pela aplicação e pelos testes com dublês"""
    engine = engine or CompressionEngine()
    queue = QueueService(
        redis_client,
        broker,
        max_attempts=settings.queue_retry_attempts,
        retention_seconds=settings.job_retention_seconds,
    )
    processor = JobProcessor(
        queue,
        engine,
        storage,
        timeout_seconds=settings.processing_timeout_ms / 1000 if settings.processing_timeout_ms else None,
    )
    dispatcher = Dispatcher(
        queue, processor, SignatureVerifier(settings.signing_keys), url=settings.process_url,
    )
    rate_limiter = RateLimiter(
        redis_client,
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
    )
    return Services(
        settings=settings,
        redis=redis_client,
        broker=broker,
        storage=storage,
        queue=queue,
        rate_limiter=rate_limiter,
        engine=engine,
        processor=processor,
        dispatcher=dispatcher,
    )


def build_services(settings: Settings) -> Services:
    redis_client = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    broker = BrokerClient(
        settings.qstash_token,
        settings.process_url,
        base_url=settings.qstash_url,
        retries=settings.queue_retry_attempts,
    )
    return assemble_services(settings, redis_client, broker, build_storage(settings))
