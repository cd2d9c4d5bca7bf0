"""Cooperative cancellation for long generator runs."""

import threading

from .errors import GenerationCancelled


class CancellationToken:
    """A flag checked by the pipeline at document, operation and emitter boundaries.

    Example:
        token = CancellationToken()
        threading.Timer(10, token.cancel).start()
        generate(config, cancel=token)
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise GenerationCancelled("generation was cancelled")
