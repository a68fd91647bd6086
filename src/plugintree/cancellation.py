"""Cooperative cancellation for long-running plugin operations."""

import threading

from plugintree.errors import OperationCancelled

__all__ = ["CancellationToken"]


class CancellationToken:
    """A flag that plugin operations poll to stop early.

    The walker passes the same token to every operation of a phase but never
    inspects it itself. An operation that notices the request should raise
    :class:`OperationCancelled` (``raise_if_cancelled`` does exactly that), which
    the walker reports as :class:`~plugintree.errors.Cancelled`.

    The token may be cancelled from any thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise OperationCancelled()
