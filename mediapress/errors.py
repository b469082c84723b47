from typing import Dict, Optional


class MediaPressError(Exception):
    """Erro base do serviço; carrega o status HTTP correspondente"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(MediaPressError):
    status_code = 400


class AuthError(MediaPressError):
    status_code = 401


class SignatureError(MediaPressError):
    status_code = 401


class NotFoundError(MediaPressError):
    status_code = 404


class ConflictError(MediaPressError):
    status_code = 409


class RateLimitError(MediaPressError):
    status_code = 429

    def __init__(self, message: str, reset_after_ms: int, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.reset_after_ms = reset_after_ms
        self.headers = headers or {}


class BrokerError(MediaPressError):
    status_code = 502


class EngineError(MediaPressError):
    status_code = 500


class UploadError(MediaPressError):
    status_code = 500
