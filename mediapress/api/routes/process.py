import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...models.api import ProcessResponse
from ...services.container import Services
from ...services.dispatcher import DispatchState
from ..dependencies import get_services

# Chamado pelo broker: autenticado pela assinatura, não por chave de API
router = APIRouter()
logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Upstash-Signature"


@router.post("/jobs/process", response_model=ProcessResponse)
async def process_job(request: Request, services: Services = Depends(get_services)):
    """Recebe o gatilho do broker e executa o job"""
    body = await request.body()
    outcome = await services.dispatcher.dispatch(body, request.headers.get(SIGNATURE_HEADER))

    logger.info(f"[{outcome.job_id}] Gatilho: {outcome.state.value} ({outcome.detail})")

    response = ProcessResponse(
        success=outcome.http_status == 200,
        job_id=outcome.job_id,
        state=outcome.state.value,
        status=outcome.status,
        message=outcome.detail,
    )
    if outcome.state == DispatchState.REJECTED:
        response.message = outcome.detail or "Invalid signature"

    return JSONResponse(
        status_code=outcome.http_status,
        content=response.model_dump(by_alias=True, mode="json"),
    )
