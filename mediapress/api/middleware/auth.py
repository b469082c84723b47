import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from ...errors import AuthError, MediaPressError
from ..dependencies import get_services

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer = HTTPBearer(auto_error=False)


async def require_api_key(
        request: Request,
        api_key: Optional[str] = Depends(api_key_header),
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)
) -> Optional[str]:
    """Valida X-API-Key ou Authorization: Bearer contra a lista configurada"""
    settings = get_services(request).settings

    # Sem chaves configuradas: liberado fora de produção
    if not settings.api_keys:
        if settings.is_production:
            logger.error("API_KEYS não configurada em produção")
            raise MediaPressError("API keys not configured", status_code=500)
        return None

    key = api_key or (credentials.credentials if credentials else None)
    if not key:
        raise AuthError("API key is required")

    key = key.strip()
    if key not in settings.api_keys:
        logger.warning("Chave de API inválida recebida")
        raise AuthError("Invalid API key")

    request.state.api_key = key
    return key
