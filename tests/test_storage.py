import asyncio
import json
import re

import httpx
import pytest

from mediapress.errors import UploadError
from mediapress.services.storage import BlobStorage, LocalStorage, StorageGateway


def run(coro):
    return asyncio.run(coro)


class TestLocalStorage:

    def test_upload_then_delete(self, tmp_path):
        storage = LocalStorage(str(tmp_path), "http://testserver/")

        async def scenario():
            result = await storage.upload(b"abc", "image/job-1/original.png", "image/png")
            stored = (tmp_path / "image/job-1/original.png").read_bytes()
            deleted = await storage.delete(result.url)
            deleted_again = await storage.delete(result.url)
            return result, stored, deleted, deleted_again

        result, stored, deleted, deleted_again = run(scenario())

        assert result.url == "http://testserver/uploads/image/job-1/original.png"
        assert result.size == 3
        assert stored == b"abc"
        assert deleted is True
        assert deleted_again is False

    def test_paths_cannot_escape_the_root(self, tmp_path):
        storage = LocalStorage(str(tmp_path / "root"), "http://testserver")

        async def scenario():
            with pytest.raises(UploadError):
                await storage.upload(b"x", "../escape.txt", "text/plain")
            return await storage.delete("http://testserver/uploads/../../etc/passwd")

        assert run(scenario()) is False
        assert not (tmp_path / "escape.txt").exists()

    def test_foreign_urls_are_not_deleted(self, tmp_path):
        storage = LocalStorage(str(tmp_path), "http://testserver")
        assert run(storage.delete("https://elsewhere/uploads/a.png")) is False

    def test_delete_multiple_counts(self, tmp_path):
        storage = LocalStorage(str(tmp_path), "http://testserver")

        async def scenario():
            kept = await storage.upload(b"a", "audio/j/a.mp3", "audio/mpeg")
            return await storage.delete_multiple([kept.url, "http://testserver/uploads/audio/j/missing.mp3"])

        summary = run(scenario())

        assert summary.success_count == 1
        assert summary.fail_count == 1

    def test_health_check(self, tmp_path):
        assert run(LocalStorage(str(tmp_path), "http://testserver").check())


def test_generated_names():
    name = StorageGateway.generate_filename("compressed-720p", "mp4")
    assert re.fullmatch(r"compressed-720p-\d+-[0-9a-f]{12}\.mp4", name)
    assert StorageGateway.generate_path("video", "job-1", name) == f"video/job-1/{name}"


class TestBlobStorage:

    def test_upload_and_delete(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.method == "PUT":
                return httpx.Response(200, json={
                    "url": f"https://blob.test/{request.url.path.lstrip('/')}",
                    "contentType": request.headers["x-content-type"],
                })
            return httpx.Response(200, json={})

        storage = BlobStorage("token", "https://blob.test", transport=httpx.MockTransport(handler))

        async def scenario():
            result = await storage.upload(b"data", "image/j/original.png", "image/png")
            deleted = await storage.delete(result.url)
            await storage.close()
            return result, deleted

        result, deleted = run(scenario())

        assert result.url == "https://blob.test/image/j/original.png"
        assert result.content_type == "image/png"
        assert deleted is True
        assert requests[0].headers["authorization"] == "Bearer token"
        assert requests[0].content == b"data"
        assert requests[1].url.path == "/delete"
        assert json.loads(requests[1].content) == {"urls": [result.url]}

    def test_upload_error(self):
        storage = BlobStorage(
            "token", "https://blob.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        with pytest.raises(UploadError):
            run(storage.upload(b"data", "a.png", "image/png"))

    def test_failed_delete_returns_false(self):
        storage = BlobStorage(
            "token", "https://blob.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )
        assert run(storage.delete("https://blob.test/a.png")) is False

    def test_token_required(self):
        with pytest.raises(ValueError):
            BlobStorage(None)
