import base64
import hashlib
import logging
import time
from typing import List, Optional

import jwt

from ..errors import SignatureError

logger = logging.getLogger(__name__)

ISSUER = "Upstash"


def body_hash(body: bytes) -> str:
    """SHA-256 do corpo em base64url, sem padding"""
    digest = hashlib.sha256(body).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class SignatureVerifier:
    """Verifica a assinatura JWT do broker com a chave atual e a próxima (rotação)"""

    def __init__(self, signing_keys: List[str], clock_tolerance: int = 0):
        self.signing_keys = [k for k in signing_keys if k]
        self.clock_tolerance = clock_tolerance

    @property
    def enabled(self) -> bool:
        return bool(self.signing_keys)

    def verify(self, signature: Optional[str], body: bytes, url: Optional[str] = None) -> dict:
        """Devolve as claims do token; SignatureError quando inválido ou ausente"""
        if not signature:
            raise SignatureError("Missing signature")

        last_error: Optional[Exception] = None
        for key in self.signing_keys:
            try:
                claims = jwt.decode(
                    signature,
                    key,
                    algorithms=["HS256"],
                    issuer=ISSUER,
                    leeway=self.clock_tolerance,
                    options={"require": ["iss", "exp", "nbf"], "verify_aud": False},
                )
            except jwt.InvalidTokenError as e:
                last_error = e
                continue

            if url is not None and claims.get("sub") != url:
                raise SignatureError("Invalid signature: subject does not match")

            expected = body_hash(body)
            if (claims.get("body") or "").rstrip("=") != expected:
                raise SignatureError("Invalid signature: body hash mismatch")
            return claims

        logger.warning(f"Assinatura do broker rejeitada: {last_error}")
        raise SignatureError("Invalid signature")

    def sign(self, body: bytes, url: str, expires_in: int = 300, now: Optional[int] = None) -> str:
        """Gera uma assinatura como o broker faria (usado em testes e ferramentas locais)"""
        if not self.signing_keys:
            raise SignatureError("No signing key configured")

        issued = int(now if now is not None else time.time())
        claims = {
            "iss": ISSUER,
            "sub": url,
            "iat": issued,
            "nbf": issued,
            "exp": issued + expires_in,
            "body": body_hash(body),
        }
        return jwt.encode(claims, self.signing_keys[0], algorithm="HS256")
