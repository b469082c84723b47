import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from ..errors import EngineError

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"


async def run_command(*args: str) -> bytes:
    """Executa um processo externo e devolve o stdout; EngineError se falhar"""
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise EngineError(f"{args[0]} not found; is it installed?") from e

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        # Prazo do job estourou: não deixar o processo órfão
        process.kill()
        await process.wait()
        raise

    if process.returncode != 0:
        err = stderr.decode("utf-8", errors="ignore") if stderr else ""
        raise EngineError(f"{args[0]} exited with {process.returncode}: {err[-2000:]}")
    return stdout


async def probe(path: Path) -> Dict[str, Any]:
    """Metadados do arquivo via ffprobe (formato + streams)"""
    output = await run_command(
        FFPROBE, "-v", "error",
        "-print_format", "json",
        "-show_format", "-show_streams",
        str(path),
    )
    try:
        return json.loads(output or b"{}")
    except json.JSONDecodeError as e:
        raise EngineError(f"ffprobe returned invalid JSON: {e}") from e


def first_stream(info: Dict[str, Any], codec_type: str) -> Optional[Dict[str, Any]]:
    for stream in info.get("streams", []):
        if stream.get("codec_type") == codec_type:
            return stream
    return None


def to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any) -> Optional[int]:
    number = to_float(value)
    return int(number) if number is not None else None


async def write_bytes(path: Path, data: bytes):
    async with aiofiles.open(path, "wb") as f:
        await f.write(data)


async def read_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, "rb") as f:
        return await f.read()
