import logging
import tempfile
from pathlib import Path
from typing import List

from ..errors import EngineError
from ..models.compression import CompressionOutput, OriginalMetadata, Variant
from ..models.options import AudioOptions
from .ffmpeg import FFMPEG, first_stream, probe, read_bytes, run_command, to_float, to_int, write_bytes

logger = logging.getLogger(__name__)

AUDIO_CODECS = {
    "mp3": "libmp3lame",
    "aac": "aac",
    "opus": "libopus",
    "wav": "pcm_s16le",
}


class AudioCompressor:
    """Uma variante por bitrate, na primeira taxa de amostragem pedida"""

    async def compress(self, buffer: bytes, options: AudioOptions) -> CompressionOutput:
        sample_rate = options.sample_rates[0]
        codec = AUDIO_CODECS[options.format]

        with tempfile.TemporaryDirectory(prefix="mediapress-audio-") as tmp:
            workdir = Path(tmp)
            source = workdir / "input"
            await write_bytes(source, buffer)

            info = await probe(source)
            stream = first_stream(info, "audio")
            if stream is None:
                raise EngineError("No audio stream found in input")
            fmt = info.get("format", {})

            compressed: List[Variant] = []
            for bitrate in options.bitrates:
                output = workdir / f"output-{bitrate}.{options.format}"
                args = [
                    FFMPEG, "-y", "-v", "error",
                    "-i", str(source),
                    "-vn",
                    "-c:a", codec,
                    "-ar", str(sample_rate),
                ]
                # PCM não tem bitrate configurável
                if options.format != "wav":
                    args += ["-b:a", f"{bitrate}k"]
                args.append(str(output))
                await run_command(*args)

                data = await read_bytes(output)
                compressed.append(Variant(
                    label=f"{bitrate}kbps",
                    data=data,
                    size=len(data),
                    format=options.format,
                    sample_rate=sample_rate,
                ))

        return CompressionOutput(
            originals=OriginalMetadata(
                format=fmt.get("format_name", "unknown"),
                size=len(buffer),
                duration=to_float(fmt.get("duration")) or to_float(stream.get("duration")),
                bitrate=to_int(fmt.get("bit_rate")),
                sample_rate=to_int(stream.get("sample_rate")),
                channels=to_int(stream.get("channels")),
            ),
            compressed=compressed,
        )
