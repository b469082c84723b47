import math
import time
from typing import Optional

from fastapi import Depends, Request, Response

from ...errors import RateLimitError
from ..dependencies import client_ip, get_services
from .auth import require_api_key


async def enforce_rate_limit(
        request: Request,
        response: Response,
        api_key: Optional[str] = Depends(require_api_key)
) -> None:
    """Janela fixa por chave de API (ou IP); 429 com Retry-After ao estourar"""
    limiter = get_services(request).rate_limiter
    decision = await limiter.check(api_key or client_ip(request))

    reset_seconds = max(1, math.ceil(decision.reset_after_ms / 1000))
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(time.time()) + reset_seconds),
    }

    if not decision.allowed:
        headers["Retry-After"] = str(reset_seconds)
        raise RateLimitError("Rate limit exceeded", decision.reset_after_ms, headers)

    response.headers.update(headers)
