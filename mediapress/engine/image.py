import asyncio
import io
import logging
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from ..errors import EngineError
from ..models.compression import CompressionOutput, OriginalMetadata, Thumbnail, Variant
from ..models.job import Dimensions
from ..models.options import ImageOptions

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "gif": "GIF",
}

THUMBNAIL_QUALITY = 80

# Sem parâmetro de qualidade no Pillow: a qualidade vira o tamanho da paleta
PALETTE_FORMATS = ("png", "gif")


def _quantize(image: Image.Image, quality: int) -> Image.Image:
    colors = max(2, round(256 * quality / 100))
    if image.mode == "RGBA":
        return image.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
    return image.convert("RGB").quantize(colors=colors)


def _encode(img: Image.Image, fmt: str, quality: int, exif: Optional[bytes]) -> bytes:
    """Recodifica a imagem no formato pedido; sem exif os metadados são descartados"""
    image = img
    if fmt == "jpeg" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    elif fmt in PALETTE_FORMATS:
        image = _quantize(image, quality)

    params = {}
    if fmt in ("jpeg", "webp", "avif"):
        params["quality"] = quality
    if fmt in ("jpeg", "png"):
        params["optimize"] = True
    if exif:
        params["exif"] = exif

    out = io.BytesIO()
    image.save(out, format=PIL_FORMATS[fmt], **params)
    return out.getvalue()


class ImageCompressor:
    """Variantes por qualidade e miniaturas por tamanho, com Pillow"""

    def _compress_sync(self, buffer: bytes, options: ImageOptions) -> CompressionOutput:
        try:
            img = Image.open(io.BytesIO(buffer))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise EngineError(f"Could not decode image: {e}") from e

        width, height = img.size
        exif = None if options.strip_metadata else img.info.get("exif")

        compressed: List[Variant] = []
        for quality in options.qualities:
            data = _encode(img, options.format, quality, exif)
            compressed.append(Variant(
                label=f"{quality}%",
                data=data,
                size=len(data),
                format=options.format,
                dimensions=Dimensions(width=width, height=height),
            ))

        thumbnails: List[Thumbnail] = []
        for size in options.thumbnails:
            thumb = img.copy()
            # thumbnail() preserva a proporção e nunca amplia
            thumb.thumbnail((size, size))
            data = _encode(thumb, options.format, THUMBNAIL_QUALITY, exif)
            thumbnails.append(Thumbnail(
                label=f"{size}px",
                data=data,
                size=len(data),
                format=options.format,
                dimensions=Dimensions(width=thumb.width, height=thumb.height),
            ))

        return CompressionOutput(
            originals=OriginalMetadata(
                format=(img.format or "unknown").lower(),
                size=len(buffer),
                width=width,
                height=height,
            ),
            compressed=compressed,
            thumbnails=thumbnails,
        )

    async def compress(self, buffer: bytes, options: ImageOptions) -> CompressionOutput:
        # Pillow é síncrono; roda fora do event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._compress_sync, buffer, options)
