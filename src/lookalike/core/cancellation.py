"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/cancellation.py
Cooperative cancellation token threaded through discovery, collection and grouping.

A token is created once per top-level scan. Long-running loops call
`check_cancelled(token)` before every expensive unit of work and unwind with
`ScanCancelled`, discarding their partial state.
"""
import threading
from typing import Optional

from lookalike.core.errors import ScanCancelled


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Calling the token returns the flag, so it can be handed to code that
    expects a `stopped_flag: Callable[[], bool]`.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelled()

    def __call__(self) -> bool:
        return self._event.is_set()

    def __repr__(self):
        return f"<CancellationToken cancelled={self.is_cancelled}>"


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise ScanCancelled if the (optional) token has been cancelled."""
    if token is not None and token.is_cancelled:
        raise ScanCancelled()
