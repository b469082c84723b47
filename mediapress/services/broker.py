import logging
from typing import Optional

import httpx

from ..errors import BrokerError

logger = logging.getLogger(__name__)


class BrokerClient:
    """Publica o gatilho {jobId} no broker (API de publish estilo QStash)"""

    def __init__(
            self,
            token: Optional[str],
            destination_url: str,
            base_url: str = "https://qstash.upstash.io",
            retries: int = 3,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not token:
            raise ValueError("QSTASH_TOKEN não está definida")

        self.base_url = base_url.rstrip("/")
        self.destination_url = destination_url
        self.retries = retries

        self.client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "User-Agent": "MediaPress/2.0",
            },
            timeout=30.0,
            transport=transport,
        )

    async def publish(self, job_id: str) -> str:
        """Publica o gatilho e devolve o id da mensagem no broker"""
        url = f"{self.base_url}/v2/publish/{self.destination_url}"
        headers = {"Upstash-Retries": str(self.retries)}

        logger.info(f"[{job_id}] Publicando gatilho para {self.destination_url}")

        try:
            response = await self.client.post(url, json={"jobId": job_id}, headers=headers)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"[Broker] Erro | Status: {status_code} | Detalhes: {e.response.text}")
            raise BrokerError(f"Broker publish failed: Status={status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"[Broker] Erro de conexão: {e}")
            raise BrokerError(f"Broker publish failed: {e}") from e

        message_id = result.get("messageId") if isinstance(result, dict) else None
        if not message_id:
            raise BrokerError("Broker did not return a message id")
        return message_id

    async def test_connection(self) -> bool:
        """Testa conexão com o broker"""
        try:
            response = await self.client.get(f"{self.base_url}/v2/topics")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Erro ao testar conexão com o broker: {e}")
            return False

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
