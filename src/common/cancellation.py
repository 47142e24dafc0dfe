"""Cooperative cancellation shared by resolution and apply steps."""
from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """Raised at a suspension point once cancellation was requested."""


class CancellationToken:
    """A single cancellation signal observed before every network call and file mutation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise OperationCancelled if ``token`` is set; no-op for None."""
    if token is not None:
        token.raise_if_cancelled()
