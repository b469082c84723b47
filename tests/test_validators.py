import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from mediapress.errors import ValidationError
from mediapress.utils.helpers import (
    calculate_compression_ratio,
    estimate_processing_time,
    format_file_size,
    get_content_type,
    get_file_extension,
)
from mediapress.utils.validators import parse_json_field, validate_file, validate_number_list

from doubles import png_bytes, wav_bytes

MAX_SIZE = 1024 * 1024


def upload(data: bytes, filename: str, content_type: str = None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=headers)


class TestNumberLists:

    def test_valid_values_become_ints(self):
        assert validate_number_list([90, 75.0], "qualities", 1, 100) == [90, 75]

    @pytest.mark.parametrize("value", [[0], [101], ["80"], [True], [float("nan")]])
    def test_out_of_range_or_wrong_type(self, value):
        with pytest.raises(ValueError, match="qualities values must be numbers between 1 and 100"):
            validate_number_list(value, "qualities", 1, 100)

    def test_empty_list(self):
        with pytest.raises(ValueError, match="must not be empty"):
            validate_number_list([], "bitrates", 32, 320)

    def test_too_many_entries(self):
        with pytest.raises(ValueError, match="at most 10"):
            validate_number_list([100] * 11, "thumbnails", 16, 4096)

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            validate_number_list(80, "qualities", 1, 100)


class TestJsonFields:

    def test_absent_field(self):
        assert parse_json_field(None, "qualities") is None
        assert parse_json_field("", "qualities") is None

    def test_json_array(self):
        assert parse_json_field("[80, 60]", "qualities") == [80, 60]

    def test_invalid_json(self):
        with pytest.raises(ValidationError, match="Invalid JSON for qualities"):
            parse_json_field("[80,", "qualities")


class TestValidateFile:

    def test_accepts_supported_type(self):
        data = png_bytes(32, 32)
        info = asyncio.run(validate_file(upload(data, "a.png", "image/png"), "image", MAX_SIZE))

        assert info["mime_type"] == "image/png"
        assert info["size"] == len(data)
        assert info["content"] == data
        assert info["name"] == "a.png"

    def test_type_comes_from_the_bytes(self):
        info = asyncio.run(validate_file(upload(wav_bytes(), "recording"), "audio", MAX_SIZE))
        assert info["mime_type"] in {"audio/x-wav", "audio/wav", "audio/vnd.wave"}

    def test_generic_declared_type_is_ignored(self):
        upload_file = upload(png_bytes(32, 32), "a.bin", "application/octet-stream")
        info = asyncio.run(validate_file(upload_file, "image", MAX_SIZE))
        assert info["mime_type"] == "image/png"

    def test_rejects_content_labelled_as_image(self):
        script = upload(b"#!/bin/sh\necho not an image\n", "a.png", "image/png")
        with pytest.raises(ValidationError, match="Invalid file type. Expected image"):
            asyncio.run(validate_file(script, "image", MAX_SIZE))

    def test_rejects_declared_type_from_another_family(self):
        mislabelled = upload(png_bytes(32, 32), "a.mp4", "video/mp4")
        with pytest.raises(ValidationError, match="does not match file contents"):
            asyncio.run(validate_file(mislabelled, "image", MAX_SIZE))

    def test_rejects_wrong_kind(self):
        with pytest.raises(ValidationError, match="Expected video, got image/png"):
            asyncio.run(validate_file(upload(png_bytes(32, 32), "a.png", "image/png"), "video", MAX_SIZE))

    def test_rejects_empty_file(self):
        with pytest.raises(ValidationError, match="File is empty"):
            asyncio.run(validate_file(upload(b"", "a.png", "image/png"), "image", MAX_SIZE))

    def test_rejects_large_file(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            asyncio.run(validate_file(upload(b"x" * 2048, "a.png", "image/png"), "image", 1024))


class TestHelpers:

    def test_compression_ratio(self):
        assert calculate_compression_ratio(1000, 400) == "60.00%"
        assert calculate_compression_ratio(0, 400) == "0%"
        assert calculate_compression_ratio(100, 150) == "-50.00%"

    def test_lookup_tables(self):
        assert get_file_extension("video/quicktime") == "mov"
        assert get_file_extension("application/zip") == "bin"
        assert get_content_type("WEBP") == "image/webp"
        assert estimate_processing_time("video") == "2-5 minutes"

    def test_format_file_size(self):
        assert format_file_size(500 * 1024 * 1024) == "500.0 MB"
        assert format_file_size(512) == "512.0 B"
