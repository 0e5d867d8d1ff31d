"""
GLC Event Store - In-Memory Unit of Work
========================================
atomic() / on_commit() for the in-memory stores, shaped like
django.db.transaction so in-memory and database wiring read alike.

Callbacks registered inside the outermost atomic() block run when
it exits cleanly, and are discarded if it exits with an exception.
Outside any block, on_commit() runs the callback immediately.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Callable, Iterator

logger = logging.getLogger("glc.events")

_state = threading.local()


def _pending() -> list:
    if not hasattr(_state, "callbacks"):
        _state.callbacks = []
        _state.depth = 0
    return _state.callbacks


def in_atomic_block() -> bool:
    _pending()
    return _state.depth > 0


@contextlib.contextmanager
def atomic() -> Iterator[None]:
    callbacks = _pending()
    _state.depth += 1
    try:
        yield
    except BaseException:
        _state.depth -= 1
        if _state.depth == 0:
            callbacks.clear()
        raise
    _state.depth -= 1
    if _state.depth == 0:
        ready = list(callbacks)
        callbacks.clear()
        for callback in ready:
            callback()


def on_commit(callback: Callable[[], None]) -> None:
    if in_atomic_block():
        _pending().append(callback)
    else:
        callback()
