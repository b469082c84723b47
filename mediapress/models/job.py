from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from .base import CamelModel
from .options import CompressionOptions


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Dimensions(CamelModel):
    width: int
    height: int


class FilePayload(CamelModel):
    buffer: str  # base64
    name: str
    type: str
    size: int


class JobPayload(CamelModel):
    file: FilePayload
    options: CompressionOptions
    extension: str
    api_key: str = ""


class OriginalArtifact(CamelModel):
    url: str
    size: int
    duration: Optional[float] = None


class CompressedArtifact(CamelModel):
    label: str
    url: str
    size: int
    format: str
    dimensions: Optional[Dimensions] = None
    sample_rate: Optional[int] = None


class ThumbnailArtifact(CamelModel):
    label: str
    url: str
    size: int
    dimensions: Optional[Dimensions] = None
    timestamp: Optional[float] = None


class JobResult(CamelModel):
    original: OriginalArtifact
    compressed: List[CompressedArtifact] = Field(default_factory=list)
    thumbnails: List[ThumbnailArtifact] = Field(default_factory=list)
    compression_ratio: str

    def artifact_urls(self) -> List[str]:
        """Todas as URLs armazenadas para este resultado"""
        urls = [self.original.url] if self.original.url else []
        urls.extend(c.url for c in self.compressed if c.url)
        urls.extend(t.url for t in self.thumbnails if t.url)
        return urls


class Job(CamelModel):
    id: str
    type: MediaKind
    payload: JobPayload
    status: JobStatus = JobStatus.QUEUED
    priority: JobPriority = JobPriority.MEDIUM
    created_at: datetime
    completed_at: Optional[datetime] = None
    # Reservados: registrados mas não consultados pelo processador
    attempts: int = 0
    max_attempts: int = 0
    progress: int = 0
    error: Optional[str] = None
    results: Optional[JobResult] = None
    version: int = 0
    broker_message_id: Optional[str] = None

    @model_validator(mode="after")
    def _options_match_type(self):
        if self.payload.options.kind != self.type.value:
            raise ValueError(
                f"options of kind {self.payload.options.kind} do not match job type {self.type.value}"
            )
        return self
