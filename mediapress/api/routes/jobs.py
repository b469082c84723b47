import logging

from fastapi import APIRouter, Depends, Query

from ...models.api import DeleteJobResponse, JobListResponse, JobStatusResponse
from ...services.container import Services
from ..dependencies import get_services
from ..middleware.rate_limit import enforce_rate_limit

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])
logger = logging.getLogger(__name__)


@router.get("/jobs/status/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, services: Services = Depends(get_services)):
    """Consulta o status e o resultado de um job"""
    job = await services.queue.get_status(job_id)
    return JobStatusResponse.from_job(job)


@router.delete("/jobs/delete/{job_id}", response_model=DeleteJobResponse)
async def delete_job(job_id: str, services: Services = Depends(get_services)):
    """Remove o job e todos os artefatos referenciados no resultado"""
    job = await services.queue.get_job(job_id)

    deleted = failed = 0
    urls = job.results.artifact_urls() if job.results else []
    if urls:
        summary = await services.storage.delete_multiple(urls)
        deleted, failed = summary.success_count, summary.fail_count
        if failed:
            logger.warning(f"[{job_id}] {failed} artefatos não puderam ser removidos")

    await services.queue.delete_job(job_id)

    return DeleteJobResponse(
        job_id=job_id,
        message="Job and associated files deleted",
        artifacts_deleted=deleted,
        artifacts_failed=failed,
    )


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(
        limit: int = Query(default=50, ge=1, le=100),
        offset: int = Query(default=0, ge=0),
        services: Services = Depends(get_services)
):
    """Lista jobs, mais recentes primeiro"""
    jobs, total = await services.queue.list_jobs(limit, offset)
    return JobListResponse(
        jobs=[JobStatusResponse.from_job(job) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )
