import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

import pydantic
from pydantic import BaseModel
from redis.exceptions import WatchError

from ..errors import BrokerError, ConflictError, NotFoundError
from ..models.job import Job, JobPayload, JobPriority, JobResult, JobStatus, MediaKind
from ..utils.helpers import estimate_processing_time, generate_job_id

logger = logging.getLogger(__name__)


class EnqueueResult(BaseModel):
    job_id: str
    status: JobStatus
    estimated_time: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QueueService:
    """Registro dos jobs no Redis, listas de visibilidade por prioridade e publicação no broker"""

    def __init__(self, redis_client, broker, max_attempts: int = 3, retention_seconds: int = 0):
        self.redis = redis_client
        self.broker = broker
        self.max_attempts = max_attempts
        self.retention_seconds = retention_seconds

    @staticmethod
    def _job_key(job_id: str) -> str:
        return f"job:{job_id}"

    @staticmethod
    def _queue_key(priority: JobPriority) -> str:
        return f"queue:{priority.value}"

    async def enqueue(
            self,
            job_type: MediaKind,
            payload: JobPayload,
            priority: JobPriority = JobPriority.MEDIUM
    ) -> EnqueueResult:
        """Persiste o job, indexa na lista da prioridade e publica o gatilho; tudo ou nada"""
        job_id = generate_job_id()
        job = Job(
            id=job_id,
            type=job_type,
            payload=payload,
            status=JobStatus.QUEUED,
            priority=priority,
            created_at=utc_now(),
            attempts=0,
            max_attempts=self.max_attempts,
            progress=0,
        )

        key = self._job_key(job_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(key, job.model_dump_json())
            pipe.lpush(self._queue_key(priority), job_id)
            await pipe.execute()
        logger.info(f"[{job_id}] Job {job_type.value} criado com prioridade {priority.value}")

        try:
            message_id = await self.broker.publish(job_id)
        except Exception as e:
            logger.error(f"[{job_id}] Falha ao publicar gatilho, desfazendo job: {e}")
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.lrem(self._queue_key(priority), 0, job_id)
                await pipe.execute()
            if isinstance(e, BrokerError):
                raise
            raise BrokerError(f"Failed to publish job trigger: {e}") from e

        try:
            await self._mutate(job_id, lambda current: current.model_copy(
                update={"broker_message_id": message_id}
            ))
        except NotFoundError:
            # Job já removido por um delete concorrente
            logger.warning(f"[{job_id}] Job removido antes de registrar a mensagem {message_id}")

        logger.info(f"[{job_id}] Gatilho publicado (mensagem {message_id})")
        return EnqueueResult(
            job_id=job_id,
            status=JobStatus.QUEUED,
            estimated_time=estimate_processing_time(job_type.value),
        )

    async def get_job(self, job_id: str) -> Job:
        """Leitura direta do registro (sem cache)"""
        raw = await self.redis.get(self._job_key(job_id))
        if raw is None:
            raise NotFoundError("Job not found")
        return Job.model_validate_json(raw)

    async def get_status(self, job_id: str) -> Job:
        return await self.get_job(job_id)

    async def _mutate(self, job_id: str, apply: Callable[[Job], Job]) -> Job:
        """Read-modify-write otimista: WATCH na chave, versão incrementada, repete em conflito"""
        key = self._job_key(job_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        raise NotFoundError("Job not found")
                    current = Job.model_validate_json(raw)
                    updated = apply(current)
                    updated = updated.model_copy(update={"version": current.version + 1})

                    ttl = None
                    if updated.status.is_terminal and self.retention_seconds > 0:
                        ttl = self.retention_seconds

                    pipe.multi()
                    pipe.set(key, updated.model_dump_json(), ex=ttl)
                    if current.status == JobStatus.QUEUED and updated.status != JobStatus.QUEUED:
                        pipe.lrem(self._queue_key(current.priority), 0, job_id)
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.debug(f"[{job_id}] Conflito de escrita, repetindo")
                    continue

    async def update_status(
            self,
            job_id: str,
            status: JobStatus,
            progress: Optional[int] = None,
            error: Optional[str] = None,
            expected_status: Optional[JobStatus] = None
    ) -> Job:
        """Atualiza status/progresso; com expected_status vira um compare-and-set"""

        def apply(job: Job) -> Job:
            if expected_status is not None and job.status != expected_status:
                raise ConflictError(
                    f"Job {job_id} is {job.status.value}, expected {expected_status.value}"
                )
            changes = {"status": status, "error": error}
            if progress is not None:
                changes["progress"] = max(0, min(100, int(progress)))
            if status.is_terminal:
                changes["completed_at"] = utc_now()
            return job.model_copy(update=changes)

        return await self._mutate(job_id, apply)

    async def claim(self, job_id: str, progress: int = 10) -> Job:
        """queued -> processing; ConflictError se outra entrega já assumiu o job"""

        def apply(job: Job) -> Job:
            if job.status != JobStatus.QUEUED:
                raise ConflictError(f"Job {job_id} is {job.status.value}, expected queued")
            return job.model_copy(update={
                "status": JobStatus.PROCESSING,
                "progress": progress,
                "error": None,
                "attempts": job.attempts + 1,
            })

        return await self._mutate(job_id, apply)

    async def save_result(self, job_id: str, result: JobResult) -> Job:
        def apply(job: Job) -> Job:
            return job.model_copy(update={
                "status": JobStatus.COMPLETED,
                "progress": 100,
                "error": None,
                "completed_at": utc_now(),
                "results": result,
            })

        return await self._mutate(job_id, apply)

    async def fail_job(self, job_id: str, error: str) -> Job:
        return await self.update_status(job_id, JobStatus.FAILED, None, error)

    async def delete_job(self, job_id: str) -> Job:
        """Remove registro e entrada na lista; artefatos ficam por conta de quem chama"""
        job = await self.get_job(job_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self._job_key(job_id))
            pipe.lrem(self._queue_key(job.priority), 0, job_id)
            await pipe.execute()
        logger.info(f"[{job_id}] Job removido")
        return job

    async def list_jobs(self, limit: int = 50, offset: int = 0) -> Tuple[List[Job], int]:
        """Todos os jobs, mais recentes primeiro, paginados"""
        keys = [key async for key in self.redis.scan_iter(match="job:*", count=500)]
        if not keys:
            return [], 0

        jobs: List[Job] = []
        for raw in await self.redis.mget(keys):
            # Pode ter expirado entre o SCAN e o MGET
            if raw is None:
                continue
            try:
                jobs.append(Job.model_validate_json(raw))
            except pydantic.ValidationError as e:
                logger.warning(f"Registro de job inválido ignorado: {e}")

        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return jobs[offset:offset + limit], len(jobs)

    async def queued_ids(self, priority: JobPriority) -> List[str]:
        return list(await self.redis.lrange(self._queue_key(priority), 0, -1))

    async def queue_lengths(self) -> Dict[str, int]:
        lengths = {}
        for priority in JobPriority:
            lengths[priority.value] = await self.redis.llen(self._queue_key(priority))
        return lengths
