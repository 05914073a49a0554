"""Conversion job entity.

A job lives in memory from API acceptance until the worker finishes it.
"""

import threading
import uuid
from dataclasses import dataclass, field

from .cancellation import CancellationScope
from .models import ConversionRequest


@dataclass
class ConversionJob:
    """One accepted conversion request.

    ``completed_qualities`` is append-only and in completion order. Only
    the worker writes it; the status endpoint reads it from request
    threads, so access goes through the lock.
    """

    request: ConversionRequest
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    scope: CancellationScope = field(default_factory=CancellationScope)
    completed_qualities: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def cancel(self) -> None:
        self.scope.cancel()

    @property
    def cancelled(self) -> bool:
        return self.scope.cancelled

    def mark_completed(self, quality: str) -> list[str]:
        """Record a finished quality and return a snapshot of all finished ones."""
        with self._lock:
            self.completed_qualities.append(quality)
            return list(self.completed_qualities)

    def completed_snapshot(self) -> list[str]:
        with self._lock:
            return list(self.completed_qualities)
