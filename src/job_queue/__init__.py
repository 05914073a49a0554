"""Job admission and the single conversion worker."""

from .queue import JobQueue

__all__ = [
    "JobQueue",
]
