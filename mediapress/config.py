import os
from typing import List, Optional

from pydantic import BaseModel, Field

# Padrões de compressão usados quando a requisição omite uma opção
IMAGE_DEFAULTS = {
    "qualities": [90, 75, 60, 45],
    "thumbnails": [100, 300, 500],
    "format": "webp",
    "strip_metadata": True,
}

VIDEO_DEFAULTS = {
    "qualities": [1080, 720, 480, 360],
    "thumbnails": 3,
    "format": "mp4",
    "codec": "libx264",
    "audio_codec": "aac",
    "crf": 23,
    "preset": "medium",
}

AUDIO_DEFAULTS = {
    "bitrates": [320, 192, 128, 64],
    "sample_rates": [44100, 48000],
    "format": "mp3",
}

VERSION = "2.0.0"


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _list_env(name: str) -> List[str]:
    value = os.getenv(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    app_url: str = "http://localhost:8000"
    environment: str = "development"
    port: int = 8000
    log_level: str = "INFO"
    redis_url: str = "redis://localhost:6379"

    api_keys: List[str] = Field(default_factory=list)
    max_file_size: int = 500 * 1024 * 1024
    processing_timeout_ms: int = 300000

    rate_limit_window_ms: int = 60000
    rate_limit_max_requests: int = 100

    queue_retry_attempts: int = 3
    qstash_url: str = "https://qstash.upstash.io"
    qstash_token: Optional[str] = None
    qstash_current_signing_key: Optional[str] = None
    qstash_next_signing_key: Optional[str] = None

    storage_backend: str = "local"
    storage_dir: str = "./uploads"
    blob_api_url: str = "https://blob.vercel-storage.com"
    blob_read_write_token: Optional[str] = None

    job_retention_seconds: int = 0

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def signing_keys(self) -> List[str]:
        return [k for k in (self.qstash_current_signing_key, self.qstash_next_signing_key) if k]

    @property
    def process_url(self) -> str:
        return f"{self.app_url.rstrip('/')}/api/jobs/process"

    @classmethod
    def from_env(cls) -> "Settings":
        """Lê a configuração das variáveis de ambiente"""
        return cls(
            app_url=os.getenv("APP_URL", "http://localhost:8000"),
            environment=os.getenv("ENVIRONMENT", "development"),
            port=_int_env("PORT", 8000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            api_keys=_list_env("API_KEYS"),
            max_file_size=_int_env("MAX_FILE_SIZE", 500 * 1024 * 1024),
            processing_timeout_ms=_int_env("PROCESSING_TIMEOUT_MS", 300000),
            rate_limit_window_ms=_int_env("RATE_LIMIT_WINDOW_MS", 60000),
            rate_limit_max_requests=_int_env("RATE_LIMIT_MAX_REQUESTS", 100),
            queue_retry_attempts=_int_env("QUEUE_RETRY_ATTEMPTS", 3),
            qstash_url=os.getenv("QSTASH_URL", "https://qstash.upstash.io"),
            qstash_token=os.getenv("QSTASH_TOKEN") or None,
            qstash_current_signing_key=os.getenv("QSTASH_CURRENT_SIGNING_KEY") or None,
            qstash_next_signing_key=os.getenv("QSTASH_NEXT_SIGNING_KEY") or None,
            storage_backend=os.getenv("STORAGE_BACKEND", "local"),
            storage_dir=os.getenv("STORAGE_DIR", "./uploads"),
            blob_api_url=os.getenv("BLOB_API_URL", "https://blob.vercel-storage.com"),
            blob_read_write_token=os.getenv("BLOB_READ_WRITE_TOKEN") or None,
            job_retention_seconds=_int_env("JOB_RETENTION_SECONDS", 0),
        )
