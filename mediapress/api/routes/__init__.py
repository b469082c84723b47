from . import compress, health, jobs, process

__all__ = [
    "compress",
    "health",
    "jobs",
    "process",
]
