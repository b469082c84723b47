from typing import Annotated, List, Literal, Union

from pydantic import Field, field_validator

from ..config import AUDIO_DEFAULTS, IMAGE_DEFAULTS, VIDEO_DEFAULTS
from ..utils.validators import validate_number, validate_number_list
from .base import CamelModel

ImageFormat = Literal["jpeg", "png", "webp", "avif", "gif"]
VideoFormat = Literal["mp4", "webm", "mov"]
AudioFormat = Literal["mp3", "aac", "opus", "wav"]
VideoPreset = Literal[
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow",
]


class ImageOptions(CamelModel):
    kind: Literal["image"] = "image"
    qualities: List[int] = Field(default_factory=lambda: list(IMAGE_DEFAULTS["qualities"]))
    thumbnails: List[int] = Field(default_factory=lambda: list(IMAGE_DEFAULTS["thumbnails"]))
    format: ImageFormat = IMAGE_DEFAULTS["format"]
    strip_metadata: bool = IMAGE_DEFAULTS["strip_metadata"]

    @field_validator("qualities", mode="before")
    @classmethod
    def _check_qualities(cls, value):
        return validate_number_list(value, "qualities", 1, 100)

    @field_validator("thumbnails", mode="before")
    @classmethod
    def _check_thumbnails(cls, value):
        return validate_number_list(value, "thumbnails", 16, 4096)

    @field_validator("strip_metadata", mode="before")
    @classmethod
    def _check_strip_metadata(cls, value):
        # Só booleanos JSON; "0", "no" etc. não viram True/False por coerção
        if not isinstance(value, bool):
            raise ValueError("stripMetadata must be true or false")
        return value


class VideoOptions(CamelModel):
    kind: Literal["video"] = "video"
    qualities: List[int] = Field(default_factory=lambda: list(VIDEO_DEFAULTS["qualities"]))
    thumbnails: int = VIDEO_DEFAULTS["thumbnails"]
    format: VideoFormat = VIDEO_DEFAULTS["format"]
    codec: str = VIDEO_DEFAULTS["codec"]
    audio_codec: str = VIDEO_DEFAULTS["audio_codec"]
    crf: int = VIDEO_DEFAULTS["crf"]
    preset: VideoPreset = VIDEO_DEFAULTS["preset"]

    @field_validator("qualities", mode="before")
    @classmethod
    def _check_qualities(cls, value):
        return validate_number_list(value, "qualities", 144, 2160)

    @field_validator("thumbnails", mode="before")
    @classmethod
    def _check_thumbnails(cls, value):
        return validate_number(value, "thumbnails", 0, 10)

    @field_validator("crf", mode="before")
    @classmethod
    def _check_crf(cls, value):
        return validate_number(value, "crf", 0, 51)


class AudioOptions(CamelModel):
    kind: Literal["audio"] = "audio"
    bitrates: List[int] = Field(default_factory=lambda: list(AUDIO_DEFAULTS["bitrates"]))
    sample_rates: List[int] = Field(default_factory=lambda: list(AUDIO_DEFAULTS["sample_rates"]))
    format: AudioFormat = AUDIO_DEFAULTS["format"]

    @field_validator("bitrates", mode="before")
    @classmethod
    def _check_bitrates(cls, value):
        return validate_number_list(value, "bitrates", 32, 320)

    @field_validator("sample_rates", mode="before")
    @classmethod
    def _check_sample_rates(cls, value):
        return validate_number_list(value, "sampleRates", 8000, 96000)


# Variante marcada pelo campo "kind"
CompressionOptions = Annotated[
    Union[ImageOptions, VideoOptions, AudioOptions],
    Field(discriminator="kind"),
]
