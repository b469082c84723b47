import base64
import logging
from typing import Any, Dict, Optional, Type

import pydantic
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ...models.api import CompressionResponse
from ...models.job import FilePayload, JobPayload, JobPriority, MediaKind
from ...models.options import AudioOptions, ImageOptions, VideoOptions
from ...services.container import Services
from ...utils.helpers import get_file_extension
from ...utils.validators import parse_json_field, validate_file
from ..dependencies import get_services
from ..middleware.auth import require_api_key
from ..middleware.rate_limit import enforce_rate_limit

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])
logger = logging.getLogger(__name__)


def _build_options(model: Type[pydantic.BaseModel], fields: Dict[str, Any]):
    """Monta as opções validadas; campos ausentes ficam com o padrão"""
    provided = {k: v for k, v in fields.items() if v is not None}
    try:
        return model.model_validate(provided)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("msg", "Invalid options")).replace("Value error, ", "")
        raise HTTPException(status_code=400, detail=message)


def _parse_priority(raw: Optional[str]) -> JobPriority:
    if not raw:
        return JobPriority.MEDIUM
    try:
        return JobPriority(raw.lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid priority: {raw}")


async def _queue_compression(
        services: Services,
        kind: MediaKind,
        file: UploadFile,
        options,
        priority: JobPriority,
        api_key: Optional[str]
) -> CompressionResponse:
    info = await validate_file(file, kind.value, services.settings.max_file_size)
    logger.info(f"Recebido upload {kind.value}: {info['name']}, tamanho: {info['size']}")

    payload = JobPayload(
        file=FilePayload(
            buffer=base64.b64encode(info["content"]).decode("ascii"),
            name=info["name"],
            type=info["mime_type"],
            size=info["size"],
        ),
        options=options,
        extension=get_file_extension(info["mime_type"]),
        api_key=api_key or "",
    )

    result = await services.queue.enqueue(kind, payload, priority)

    return CompressionResponse(
        job_id=result.job_id,
        status=result.status,
        estimated_time=result.estimated_time,
        message=f"{kind.value.capitalize()} compression job queued successfully",
    )


@router.post("/compress/image", response_model=CompressionResponse, status_code=202)
async def compress_image(
        file: UploadFile = File(...),
        qualities: Optional[str] = Form(default=None),
        thumbnails: Optional[str] = Form(default=None),
        format: Optional[str] = Form(default=None),
        strip_metadata: Optional[str] = Form(default=None, alias="stripMetadata"),
        priority: Optional[str] = Form(default=None),
        services: Services = Depends(get_services),
        api_key: Optional[str] = Depends(require_api_key)
):
    """Enfileira compressão de imagem"""
    options = _build_options(ImageOptions, {
        "qualities": parse_json_field(qualities, "qualities"),
        "thumbnails": parse_json_field(thumbnails, "thumbnails"),
        "format": format,
        "strip_metadata": parse_json_field(strip_metadata, "stripMetadata"),
    })
    return await _queue_compression(
        services, MediaKind.IMAGE, file, options, _parse_priority(priority), api_key
    )


@router.post("/compress/video", response_model=CompressionResponse, status_code=202)
async def compress_video(
        file: UploadFile = File(...),
        qualities: Optional[str] = Form(default=None),
        thumbnails: Optional[str] = Form(default=None),
        format: Optional[str] = Form(default=None),
        codec: Optional[str] = Form(default=None),
        audio_codec: Optional[str] = Form(default=None, alias="audioCodec"),
        crf: Optional[str] = Form(default=None),
        preset: Optional[str] = Form(default=None),
        priority: Optional[str] = Form(default=None),
        services: Services = Depends(get_services),
        api_key: Optional[str] = Depends(require_api_key)
):
    """Enfileira compressão de vídeo"""
    options = _build_options(VideoOptions, {
        "qualities": parse_json_field(qualities, "qualities"),
        "thumbnails": parse_json_field(thumbnails, "thumbnails"),
        "format": format,
        "codec": codec,
        "audio_codec": audio_codec,
        "crf": parse_json_field(crf, "crf"),
        "preset": preset,
    })
    return await _queue_compression(
        services, MediaKind.VIDEO, file, options, _parse_priority(priority), api_key
    )


@router.post("/compress/audio", response_model=CompressionResponse, status_code=202)
async def compress_audio(
        file: UploadFile = File(...),
        bitrates: Optional[str] = Form(default=None),
        sample_rates: Optional[str] = Form(default=None, alias="sampleRates"),
        format: Optional[str] = Form(default=None),
        priority: Optional[str] = Form(default=None),
        services: Services = Depends(get_services),
        api_key: Optional[str] = Depends(require_api_key)
):
    """Enfileira compressão de áudio"""
    options = _build_options(AudioOptions, {
        "bitrates": parse_json_field(bitrates, "bitrates"),
        "sample_rates": parse_json_field(sample_rates, "sampleRates"),
        "format": format,
    })
    return await _queue_compression(
        services, MediaKind.AUDIO, file, options, _parse_priority(priority), api_key
    )
