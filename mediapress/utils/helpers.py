import uuid
from typing import Dict

MIME_TO_EXTENSION: Dict[str, str] = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
    'image/avif': 'avif',
    'image/gif': 'gif',
    'video/mp4': 'mp4',
    'video/webm': 'webm',
    'video/quicktime': 'mov',
    'video/x-m4v': 'mp4',
    'audio/mpeg': 'mp3',
    'audio/mp3': 'mp3',
    'audio/aac': 'aac',
    'audio/opus': 'opus',
    'audio/wav': 'wav',
    'audio/x-wav': 'wav',
    'audio/vnd.wave': 'wav',
    'audio/ogg': 'ogg',
    'audio/x-hx-aac-adts': 'aac',
    'audio/x-aac': 'aac',
}

EXTENSION_TO_CONTENT_TYPE: Dict[str, str] = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'webp': 'image/webp',
    'avif': 'image/avif',
    'gif': 'image/gif',
    'mp4': 'video/mp4',
    'webm': 'video/webm',
    'mov': 'video/quicktime',
    'mp3': 'audio/mpeg',
    'aac': 'audio/aac',
    'opus': 'audio/opus',
    'ogg': 'audio/ogg',
    'wav': 'audio/wav',
}

ESTIMATED_TIMES: Dict[str, str] = {
    'image': '30-60 seconds',
    'video': '2-5 minutes',
    'audio': '1-2 minutes',
}


def generate_job_id() -> str:
    """Gera ID único para job"""
    return str(uuid.uuid4())


def estimate_processing_time(media_type: str) -> str:
    """Estimativa de tempo exibida ao cliente"""
    return ESTIMATED_TIMES.get(media_type, '1-3 minutes')


def get_file_extension(mime_type: str) -> str:
    """Extensão a partir do tipo MIME"""
    return MIME_TO_EXTENSION.get(mime_type, 'bin')


def get_content_type(extension: str) -> str:
    return EXTENSION_TO_CONTENT_TYPE.get(extension.lower(), 'application/octet-stream')


def calculate_compression_ratio(original_size: int, compressed_size: int) -> str:
    """Percentual de redução com duas casas decimais"""
    if original_size <= 0:
        return "0%"
    ratio = (original_size - compressed_size) / original_size * 100
    return f"{ratio:.2f}%"


def format_file_size(size_bytes: float) -> str:
    """Formata tamanho do arquivo em formato legível"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"
