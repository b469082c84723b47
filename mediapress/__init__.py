from .config import VERSION as __version__
from .main import create_app

__all__ = ["create_app", "__version__"]
