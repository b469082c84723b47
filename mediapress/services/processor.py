import asyncio
import base64
import binascii
import logging
import re
from typing import List, Optional, Tuple

from ..errors import EngineError, MediaPressError, NotFoundError, UploadError, ValidationError
from ..models.compression import CompressionOutput
from ..models.job import (
    CompressedArtifact,
    Job,
    JobResult,
    JobStatus,
    OriginalArtifact,
    ThumbnailArtifact,
)
from ..utils.helpers import calculate_compression_ratio, get_content_type
from .storage import StorageGateway, UploadResult

logger = logging.getLogger(__name__)

# Progresso registrado em cada etapa do pipeline
PROGRESS_FETCHING = 10
PROGRESS_TRANSFORMING = 30
PROGRESS_UPLOADING = 60
PROGRESS_FINALIZING = 90


def _slug(label: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "", label) or "item"


class JobProcessor:
    """Leva um job da fila até completed/failed: decodifica, comprime, envia, registra"""

    def __init__(self, queue, engine, storage: StorageGateway, timeout_seconds: Optional[float] = None):
        self.queue = queue
        self.engine = engine
        self.storage = storage
        self.timeout_seconds = timeout_seconds

    async def process(self, job_id: str) -> Job:
        """Executa o pipeline; ConflictError/NotFoundError se o job não estiver mais na fila"""
        job = await self.queue.claim(job_id, PROGRESS_FETCHING)
        logger.info(f"[{job_id}] Processamento iniciado (tentativa {job.attempts})")

        uploaded: List[str] = []
        try:
            buffer = self._decode(job)
            await self.queue.update_status(job_id, JobStatus.PROCESSING, PROGRESS_TRANSFORMING)

            output = await self._compress(job, buffer)
            await self.queue.update_status(job_id, JobStatus.PROCESSING, PROGRESS_UPLOADING)

            original, compressed, thumbnails = await self._upload_all(job, buffer, output)
            uploaded = [original.url] + [r.url for r in compressed] + [r.url for r in thumbnails]
            await self.queue.update_status(job_id, JobStatus.PROCESSING, PROGRESS_FINALIZING)

            result = self._assemble(buffer, output, original, compressed, thumbnails)
        except Exception as e:
            message = e.message if isinstance(e, MediaPressError) else (str(e) or e.__class__.__name__)
            logger.error(f"[{job_id}] Falha no processamento: {message}", exc_info=True)
            if uploaded:
                await self._discard(job_id, uploaded)
            return await self.queue.fail_job(job_id, message)

        try:
            completed = await self.queue.save_result(job_id, result)
        except NotFoundError:
            logger.warning(f"[{job_id}] Job removido durante o processamento; descartando artefatos")
            await self._discard(job_id, result.artifact_urls())
            raise

        logger.info(f"[{job_id}] Concluído: {len(result.compressed)} variantes, "
                    f"{len(result.thumbnails)} miniaturas, redução {result.compression_ratio}")
        return completed

    @staticmethod
    def _decode(job: Job) -> bytes:
        try:
            return base64.b64decode(job.payload.file.buffer, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Could not decode file payload: {e}") from e

    async def _compress(self, job: Job, buffer: bytes) -> CompressionOutput:
        call = self.engine.compress(buffer, job.type, job.payload.options)
        if not self.timeout_seconds:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            raise EngineError(f"Compression timed out after {self.timeout_seconds:g}s")

    async def _upload_all(
            self,
            job: Job,
            buffer: bytes,
            output: CompressionOutput
    ) -> Tuple[UploadResult, List[UploadResult], List[UploadResult]]:
        """Envia original, variantes e miniaturas em paralelo; o índice do resultado segue o do pedido"""
        storage = self.storage
        media_type = job.type.value

        requests = [(
            buffer,
            storage.generate_path(media_type, job.id, storage.generate_filename("original", job.payload.extension)),
            job.payload.file.type or get_content_type(job.payload.extension),
        )]
        for variant in output.compressed:
            filename = storage.generate_filename(f"compressed-{_slug(variant.label)}", variant.format)
            requests.append((
                variant.data,
                storage.generate_path(media_type, job.id, filename),
                get_content_type(variant.format),
            ))
        for thumbnail in output.thumbnails:
            filename = storage.generate_filename(f"thumbnail-{_slug(thumbnail.label)}", thumbnail.format)
            requests.append((
                thumbnail.data,
                storage.generate_path(media_type, job.id, filename),
                get_content_type(thumbnail.format),
            ))

        results = await asyncio.gather(
            *(storage.upload(data, path, content_type) for data, path, content_type in requests),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            # Compensação: nada de artefatos órfãos de um job que vai falhar
            committed = [r.url for r in results if isinstance(r, UploadResult)]
            if committed:
                await self._discard(job.id, committed)
            raise UploadError(f"{len(failures)} of {len(results)} uploads failed: {failures[0]}")

        n_compressed = len(output.compressed)
        return results[0], list(results[1:1 + n_compressed]), list(results[1 + n_compressed:])

    @staticmethod
    def _assemble(
            buffer: bytes,
            output: CompressionOutput,
            original: UploadResult,
            compressed: List[UploadResult],
            thumbnails: List[UploadResult]
    ) -> JobResult:
        first = output.compressed[0] if output.compressed else None
        ratio = calculate_compression_ratio(len(buffer), first.size) if first else "0%"

        return JobResult(
            original=OriginalArtifact(
                url=original.url,
                size=len(buffer),
                duration=output.originals.duration,
            ),
            compressed=[
                CompressedArtifact(
                    label=variant.label,
                    url=upload.url,
                    size=variant.size,
                    format=variant.format,
                    dimensions=variant.dimensions,
                    sample_rate=variant.sample_rate,
                )
                for variant, upload in zip(output.compressed, compressed)
            ],
            thumbnails=[
                ThumbnailArtifact(
                    label=thumbnail.label,
                    url=upload.url,
                    size=thumbnail.size,
                    dimensions=thumbnail.dimensions,
                    timestamp=thumbnail.timestamp,
                )
                for thumbnail, upload in zip(output.thumbnails, thumbnails)
            ],
            compression_ratio=ratio,
        )

    async def _discard(self, job_id: str, urls: List[str]):
        summary = await self.storage.delete_multiple(urls)
        logger.info(f"[{job_id}] Artefatos removidos: {summary.success_count} ok, {summary.fail_count} falhas")
