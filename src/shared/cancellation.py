"""Cooperative cancellation shared by every blocking step of a job."""

import threading

from .exceptions import ConversionCancelledError


class CancellationScope:
    """Cancellable execution scope for one job.

    The scope is handed to downloads, the encoder and uploads. Loops check
    it between units of work; the encoder polls it and kills the external
    process once it is set.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ConversionCancelledError()
