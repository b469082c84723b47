from typing import Optional

from ..errors import EngineError
from ..models.compression import CompressionOutput
from ..models.job import MediaKind
from ..models.options import AudioOptions, CompressionOptions, ImageOptions, VideoOptions
from .audio import AudioCompressor
from .image import ImageCompressor
from .video import VideoCompressor


class CompressionEngine:
    """Despacha para o compressor do tipo de mídia; a saída segue a ordem das opções"""

    def __init__(
            self,
            image: Optional[ImageCompressor] = None,
            video: Optional[VideoCompressor] = None,
            audio: Optional[AudioCompressor] = None
    ):
        self.image = image or ImageCompressor()
        self.video = video or VideoCompressor()
        self.audio = audio or AudioCompressor()

    async def compress(
            self,
            buffer: bytes,
            media_type: MediaKind,
            options: CompressionOptions
    ) -> CompressionOutput:
        if options.kind != media_type.value:
            raise EngineError(f"Options for {options.kind} cannot be used on a {media_type.value} job")

        try:
            if isinstance(options, ImageOptions):
                return await self.image.compress(buffer, options)
            elif isinstance(options, VideoOptions):
                return await self.video.compress(buffer, options)
            elif isinstance(options, AudioOptions):
                return await self.audio.compress(buffer, options)
        except EngineError as e:
            raise EngineError(f"{media_type.value.capitalize()} compressor failed: {e.message}") from e
        except Exception as e:
            raise EngineError(f"{media_type.value.capitalize()} compressor failed: {e}") from e

        raise EngineError(f"Unsupported media type: {media_type.value}")


__all__ = [
    "AudioCompressor",
    "CompressionEngine",
    "ImageCompressor",
    "VideoCompressor",
]
