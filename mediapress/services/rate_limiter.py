import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class RateLimitDecision(BaseModel):
    allowed: bool
    limit: int
    remaining: int
    reset_after_ms: int


class RateLimiter:
    """Contador de janela fixa por chave; a janela zera inteira ao expirar"""

    def __init__(self, redis_client, max_requests: int = 100, window_ms: int = 60000):
        self.redis = redis_client
        self.max_requests = max_requests
        self.window_ms = window_ms

    @staticmethod
    def _key(identifier: str) -> str:
        return f"ratelimit:{identifier}"

    async def check(self, identifier: str) -> RateLimitDecision:
        """Conta a requisição e decide se está dentro do limite"""
        key = self._key(identifier)
        async with self.redis.pipeline(transaction=True) as pipe:
            # Só o primeiro acesso da janela define a expiração; INCR preserva o TTL
            pipe.set(key, 0, px=self.window_ms, nx=True)
            pipe.incr(key)
            pipe.pttl(key)
            _, count, ttl = await pipe.execute()

        count = int(count)
        ttl = int(ttl)
        reset_after = ttl if 0 < ttl <= self.window_ms else self.window_ms
        allowed = count <= self.max_requests

        if not allowed:
            logger.info(f"Limite excedido para {identifier}: {count}/{self.max_requests}")

        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after_ms=reset_after,
        )

    async def current(self, identifier: str) -> int:
        value = await self.redis.get(self._key(identifier))
        return int(value) if value is not None else 0
