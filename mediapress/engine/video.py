import logging
import tempfile
from pathlib import Path
from typing import List

from ..errors import EngineError
from ..models.compression import CompressionOutput, OriginalMetadata, Thumbnail, Variant
from ..models.job import Dimensions
from ..models.options import VideoOptions
from .ffmpeg import FFMPEG, first_stream, probe, read_bytes, run_command, to_float, to_int, write_bytes

logger = logging.getLogger(__name__)

THUMBNAIL_WIDTH = 320


def _even(value: float) -> int:
    """libx264 exige dimensões pares"""
    return max(2, int(round(value / 2.0)) * 2)


def scaled_dimensions(src_width: int, src_height: int, target_height: int) -> Dimensions:
    if src_width <= 0 or src_height <= 0:
        return Dimensions(width=_even(target_height * 16 / 9), height=_even(target_height))
    return Dimensions(
        width=_even(src_width * target_height / src_height),
        height=_even(target_height),
    )


def thumbnail_timestamps(duration: float, count: int) -> List[float]:
    """Instantes igualmente espaçados, sem incluir início e fim"""
    if count <= 0 or duration <= 0:
        return []
    return [round(duration * (i + 1) / (count + 1), 2) for i in range(count)]


class VideoCompressor:
    """Uma variante por altura pedida e miniaturas JPEG, via ffmpeg"""

    async def compress(self, buffer: bytes, options: VideoOptions) -> CompressionOutput:
        with tempfile.TemporaryDirectory(prefix="mediapress-video-") as tmp:
            workdir = Path(tmp)
            source = workdir / "input"
            await write_bytes(source, buffer)

            info = await probe(source)
            stream = first_stream(info, "video")
            if stream is None:
                raise EngineError("No video stream found in input")

            fmt = info.get("format", {})
            src_width = to_int(stream.get("width")) or 0
            src_height = to_int(stream.get("height")) or 0
            duration = to_float(fmt.get("duration")) or to_float(stream.get("duration")) or 0.0

            compressed: List[Variant] = []
            for quality in options.qualities:
                dims = scaled_dimensions(src_width, src_height, quality)
                output = workdir / f"output-{quality}.{options.format}"
                await run_command(
                    FFMPEG, "-y", "-v", "error",
                    "-i", str(source),
                    "-vf", f"scale={dims.width}:{dims.height}",
                    "-c:v", options.codec,
                    "-c:a", options.audio_codec,
                    "-crf", str(options.crf),
                    "-preset", options.preset,
                    "-movflags", "+faststart",
                    str(output),
                )
                data = await read_bytes(output)
                compressed.append(Variant(
                    label=f"{quality}p",
                    data=data,
                    size=len(data),
                    format=options.format,
                    dimensions=dims,
                ))

            thumbnails: List[Thumbnail] = []
            for index, timestamp in enumerate(thumbnail_timestamps(duration, options.thumbnails)):
                output = workdir / f"thumb-{index}.jpg"
                await run_command(
                    FFMPEG, "-y", "-v", "error",
                    "-ss", str(timestamp),
                    "-i", str(source),
                    "-frames:v", "1",
                    "-vf", f"scale={THUMBNAIL_WIDTH}:-2",
                    "-q:v", "3",
                    str(output),
                )
                data = await read_bytes(output)
                thumb_dims = None
                if src_width > 0:
                    thumb_dims = Dimensions(
                        width=THUMBNAIL_WIDTH,
                        height=_even(src_height * THUMBNAIL_WIDTH / src_width),
                    )
                thumbnails.append(Thumbnail(
                    label=f"{timestamp}s",
                    data=data,
                    size=len(data),
                    format="jpg",
                    dimensions=thumb_dims,
                    timestamp=timestamp,
                ))

        return CompressionOutput(
            originals=OriginalMetadata(
                format=fmt.get("format_name", "unknown"),
                size=len(buffer),
                width=src_width,
                height=src_height,
                duration=duration,
                bitrate=to_int(fmt.get("bit_rate")),
            ),
            compressed=compressed,
            thumbnails=thumbnails,
        )
