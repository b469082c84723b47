from .broker import BrokerClient
from .container import Services, assemble_services, build_services
from .dispatcher import Dispatcher, DispatchOutcome, DispatchState
from .processor import JobProcessor
from .queue import EnqueueResult, QueueService
from .rate_limiter import RateLimitDecision, RateLimiter
from .signature import SignatureVerifier
from .storage import BlobStorage, DeleteSummary, LocalStorage, StorageGateway, UploadResult

__all__ = [
    "BrokerClient",
    "Services",
    "assemble_services",
    "build_services",
    "Dispatcher",
    "DispatchOutcome",
    "DispatchState",
    "JobProcessor",
    "EnqueueResult",
    "QueueService",
    "RateLimitDecision",
    "RateLimiter",
    "SignatureVerifier",
    "BlobStorage",
    "DeleteSummary",
    "LocalStorage",
    "StorageGateway",
    "UploadResult",
]
