from .options import AudioOptions, CompressionOptions, ImageOptions, VideoOptions
from .job import (
    CompressedArtifact,
    Dimensions,
    FilePayload,
    Job,
    JobPayload,
    JobPriority,
    JobResult,
    JobStatus,
    MediaKind,
    OriginalArtifact,
    ThumbnailArtifact,
)
from .compression import CompressionOutput, OriginalMetadata, Thumbnail, Variant

__all__ = [
    "AudioOptions",
    "CompressionOptions",
    "ImageOptions",
    "VideoOptions",
    "CompressedArtifact",
    "Dimensions",
    "FilePayload",
    "Job",
    "JobPayload",
    "JobPriority",
    "JobResult",
    "JobStatus",
    "MediaKind",
    "OriginalArtifact",
    "ThumbnailArtifact",
    "CompressionOutput",
    "OriginalMetadata",
    "Thumbnail",
    "Variant",
]
