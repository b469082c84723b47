import json
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..errors import ConflictError, NotFoundError, SignatureError, ValidationError
from ..models.job import JobStatus

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    RECEIVED = "received"
    VERIFIED = "verified"
    DELEGATED = "delegated"
    REJECTED = "rejected"


class DispatchOutcome(BaseModel):
    state: DispatchState
    job_id: Optional[str] = None
    status: Optional[JobStatus] = None
    skipped: bool = False
    detail: str = ""

    @property
    def http_status(self) -> int:
        """Código devolvido ao broker; erro faz o broker reenviar"""
        if self.state == DispatchState.REJECTED:
            return 401
        if self.skipped:
            return 200
        if self.status == JobStatus.FAILED:
            return 500
        return 200


class Dispatcher:
    """Recebe o gatilho do broker, verifica a assinatura e a fila antes de processar"""

    def __init__(self, queue, processor, verifier, url: Optional[str] = None):
        self.queue = queue
        self.processor = processor
        self.verifier = verifier
        # URL pública do endpoint; confere a claim "sub" da assinatura
        self.url = url

    @staticmethod
    def _parse_job_id(body: bytes) -> str:
        try:
            payload = json.loads(body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JSON body")
        job_id = payload.get("jobId") if isinstance(payload, dict) else None
        if not job_id or not isinstance(job_id, str):
            raise ValidationError("Job ID is required")
        return job_id

    async def dispatch(self, body: bytes, signature: Optional[str]) -> DispatchOutcome:
        """received -> verified -> delegated, ou received -> rejected"""
        if self.verifier.enabled:
            try:
                self.verifier.verify(signature, body, self.url)
            except SignatureError as e:
                logger.warning(f"Gatilho rejeitado: {e.message}")
                return DispatchOutcome(state=DispatchState.REJECTED, detail=e.message)

        job_id = self._parse_job_id(body)

        # Leitura fresca do registro: é ela que garante a idempotência
        try:
            job = await self.queue.get_job(job_id)
        except NotFoundError:
            logger.info(f"[{job_id}] Gatilho para job inexistente ignorado")
            return DispatchOutcome(
                state=DispatchState.VERIFIED, job_id=job_id, skipped=True, detail="Job not found",
            )

        if job.status != JobStatus.QUEUED:
            logger.info(f"[{job_id}] Gatilho duplicado ignorado (status {job.status.value})")
            return DispatchOutcome(
                state=DispatchState.VERIFIED,
                job_id=job_id,
                status=job.status,
                skipped=True,
                detail="Job already processed",
            )

        try:
            final = await self.processor.process(job_id)
        except (ConflictError, NotFoundError) as e:
            # Outra entrega assumiu o job, ou ele foi removido no meio do caminho
            logger.info(f"[{job_id}] Processamento ignorado: {e.message}")
            return DispatchOutcome(
                state=DispatchState.VERIFIED, job_id=job_id, skipped=True, detail=e.message,
            )

        return DispatchOutcome(
            state=DispatchState.DELEGATED,
            job_id=job_id,
            status=final.status,
            detail=final.error or "Job processed successfully",
        )
