import json
from typing import Any, Dict, List, Optional

import magic
from fastapi import UploadFile

from ..errors import ValidationError

MAX_LIST_ENTRIES = 10
SNIFF_BYTES = 2048

# Formatos suportados por tipo de mídia
SUPPORTED_IMAGE_FORMATS = {
    'image/jpeg', 'image/png', 'image/webp', 'image/avif', 'image/gif'
}

SUPPORTED_VIDEO_FORMATS = {
    'video/mp4', 'video/webm', 'video/quicktime', 'video/x-m4v'
}

SUPPORTED_AUDIO_FORMATS = {
    'audio/mpeg', 'audio/mp3', 'audio/aac', 'audio/opus',
    'audio/wav', 'audio/x-wav', 'audio/vnd.wave', 'audio/ogg',
    'audio/x-hx-aac-adts', 'audio/x-aac'
}

SUPPORTED_FORMATS = {
    "image": SUPPORTED_IMAGE_FORMATS,
    "video": SUPPORTED_VIDEO_FORMATS,
    "audio": SUPPORTED_AUDIO_FORMATS,
}


def validate_number_list(value: Any, label: str, minimum: int, maximum: int) -> List[int]:
    """Valida uma lista numérica: não vazia, até 10 itens, cada um dentro da faixa"""
    if not isinstance(value, list):
        raise ValueError(f"{label} must be a JSON array of numbers")
    for item in value:
        # bool é subclasse de int
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"{label} values must be numbers between {minimum} and {maximum}")
        if item != item or item < minimum or item > maximum:
            raise ValueError(f"{label} values must be numbers between {minimum} and {maximum}")
    if len(value) == 0:
        raise ValueError(f"{label} must not be empty")
    if len(value) > MAX_LIST_ENTRIES:
        raise ValueError(f"{label} must have at most {MAX_LIST_ENTRIES} entries")
    return [int(item) for item in value]


def validate_number(value: Any, label: str, minimum: int, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number between {minimum} and {maximum}")
    if value != value or value < minimum or value > maximum:
        raise ValueError(f"{label} must be a number between {minimum} and {maximum}")
    return int(value)


def parse_json_field(raw: Optional[str], label: str) -> Any:
    """Decodifica um campo de formulário JSON; None quando ausente"""
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(f"Invalid JSON for {label}: {raw}")


def declared_content_type(file: UploadFile) -> Optional[str]:
    """Tipo MIME informado pelo cliente; None quando genérico ou ausente"""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        return None
    return content_type


def detect_mime_type(content: bytes) -> str:
    """Tipo MIME real, identificado pelos primeiros bytes do arquivo"""
    return magic.from_buffer(content[:SNIFF_BYTES], mime=True)


async def validate_file(file: UploadFile, media_type: str, max_size: int) -> Dict[str, Any]:
    """Valida arquivo de upload e devolve seus bytes e metadados"""

    content = await file.read()
    file_size = len(content)

    if file_size > max_size:
        raise ValidationError(
            f"File size exceeds maximum allowed size of {max_size // (1024 * 1024)}MB"
        )

    if file_size == 0:
        raise ValidationError("File is empty")

    mime_type = detect_mime_type(content)
    if mime_type not in SUPPORTED_FORMATS[media_type]:
        raise ValidationError(f"Invalid file type. Expected {media_type}, got {mime_type}")

    # O tipo declarado só pode divergir dentro da mesma família (image/*, video/*, audio/*)
    declared = declared_content_type(file)
    if declared and declared.split("/")[0] != mime_type.split("/")[0]:
        raise ValidationError(
            f"Declared content type {declared} does not match file contents ({mime_type})"
        )

    return {
        "content": content,
        "mime_type": mime_type,
        "size": file_size,
        "name": file.filename or "file",
    }
