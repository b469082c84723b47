from typing import List, Optional

from pydantic import BaseModel, Field

from .job import Dimensions


class OriginalMetadata(BaseModel):
    format: str = "unknown"
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None


class Variant(BaseModel):
    label: str
    data: bytes
    size: int
    format: str
    dimensions: Optional[Dimensions] = None
    sample_rate: Optional[int] = None


class Thumbnail(BaseModel):
    label: str
    data: bytes
    size: int
    format: str
    dimensions: Optional[Dimensions] = None
    timestamp: Optional[float] = None


class CompressionOutput(BaseModel):
    """Saída do motor; compressed/thumbnails seguem a ordem das opções pedidas"""

    originals: OriginalMetadata
    compressed: List[Variant] = Field(default_factory=list)
    thumbnails: List[Thumbnail] = Field(default_factory=list)
