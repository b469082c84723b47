from .auth import require_api_key
from .rate_limit import enforce_rate_limit

__all__ = [
    "require_api_key",
    "enforce_rate_limit",
]
