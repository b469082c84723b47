import asyncio
import logging
import os
import secrets
import time
from pathlib import Path
from typing import List, Optional

import aiofiles
import httpx
from pydantic import BaseModel

from ..errors import UploadError

logger = logging.getLogger(__name__)


class UploadResult(BaseModel):
    url: str
    size: int
    content_type: str


class DeleteSummary(BaseModel):
    success_count: int
    fail_count: int


class StorageGateway:
    """Interface comum de armazenamento de artefatos"""

    async def upload(self, data: bytes, path: str, content_type: str) -> UploadResult:
        raise NotImplementedError

    async def delete(self, url: str) -> bool:
        raise NotImplementedError

    async def delete_multiple(self, urls: List[str]) -> DeleteSummary:
        """Remove várias URLs em paralelo, contando sucessos e falhas"""
        results = await asyncio.gather(*(self.delete(url) for url in urls))
        success = sum(1 for ok in results if ok)
        return DeleteSummary(success_count=success, fail_count=len(results) - success)

    @staticmethod
    def generate_filename(prefix: str, extension: str, random_suffix: bool = True) -> str:
        timestamp = int(time.time() * 1000)
        suffix = f"-{secrets.token_hex(6)}" if random_suffix else ""
        return f"{prefix}-{timestamp}{suffix}.{extension}"

    @staticmethod
    def generate_path(media_type: str, job_id: str, filename: str) -> str:
        return f"{media_type}/{job_id}/{filename}"

    async def check(self) -> bool:
        return True

    async def close(self):
        pass


class LocalStorage(StorageGateway):
    """Grava artefatos em disco; servidos pela aplicação em /uploads"""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _url_for(self, path: str) -> str:
        return f"{self.public_base_url}/uploads/{path}"

    def _path_for(self, url: str) -> Optional[Path]:
        prefix = f"{self.public_base_url}/uploads/"
        if not url.startswith(prefix):
            return None
        candidate = (self.root / url[len(prefix):]).resolve()
        # Não sair da raiz de armazenamento
        if self.root not in candidate.parents:
            return None
        return candidate

    async def upload(self, data: bytes, path: str, content_type: str) -> UploadResult:
        """Salva o buffer e retorna a URL pública"""
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise UploadError(f"Invalid storage path: {path}")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, 'wb') as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Erro ao gravar {path}: {e}")
            raise UploadError(f"Upload failed for {path}: {e}") from e

        return UploadResult(url=self._url_for(path), size=len(data), content_type=content_type)

    async def delete(self, url: str) -> bool:
        """Remove arquivo do disco"""
        target = self._path_for(url)
        if target is None:
            logger.warning(f"URL fora do armazenamento local: {url}")
            return False
        try:
            if target.exists():
                os.remove(target)
                return True
            return False
        except OSError as e:
            logger.warning(f"Erro ao remover {target}: {e}")
            return False

    async def check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)


class BlobStorage(StorageGateway):
    """Armazenamento em uma API HTTP de blobs (PUT por caminho, POST /delete)"""

    def __init__(
            self,
            token: Optional[str],
            base_url: str = "https://blob.vercel-storage.com",
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not token:
            raise ValueError("BLOB_READ_WRITE_TOKEN não está definida")

        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {token}"},
            timeout=120.0,
            transport=transport,
        )

    async def upload(self, data: bytes, path: str, content_type: str) -> UploadResult:
        try:
            response = await self.client.put(
                f"{self.base_url}/{path}",
                content=data,
                headers={
                    "x-content-type": content_type,
                    "x-add-random-suffix": "0",
                    "access": "public",
                },
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Erro no upload de {path}: {e}")
            raise UploadError(f"Upload failed for {path}: {e}") from e

        url = body.get("url") if isinstance(body, dict) else None
        if not url:
            raise UploadError(f"Blob API returned no url for {path}")
        return UploadResult(
            url=url,
            size=len(data),
            content_type=body.get("contentType", content_type),
        )

    async def delete(self, url: str) -> bool:
        try:
            response = await self.client.post(f"{self.base_url}/delete", json={"urls": [url]})
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Erro ao remover blob {url}: {e}")
            return False

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
