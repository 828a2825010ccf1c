"""User-facing notifications.

The browser shows these as toasts. Server side, every notification is logged
and, when a collector is active for the current request, attached to the
response. Notifications raised outside a request (e.g. while loading saved
cards at startup) are queued and handed to the next collector.
"""
import contextvars
import threading
from collections import deque
from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger

from ..schemas import Notification

_collector: contextvars.ContextVar[Optional[List[Notification]]] = contextvars.ContextVar(
    "notifications", default=None
)
_pending: deque = deque(maxlen=50)
_pending_lock = threading.Lock()


def toast(title: str, description: str = "", variant: str = "default") -> Notification:
    note = Notification(title=title, description=description, variant=variant)
    if variant == "destructive":
        logger.warning(f"[notify] {title}: {description}")
    else:
        logger.info(f"[notify] {title}: {description}")

    bucket = _collector.get()
    if bucket is not None:
        bucket.append(note)
    else:
        with _pending_lock:
            _pending.append(note)
    return note


@contextmanager
def collect_notifications() -> Iterator[List[Notification]]:
    with _pending_lock:
        bucket = list(_pending)
        _pending.clear()
    token = _collector.set(bucket)
    try:
        yield bucket
    finally:
        _collector.reset(token)


def clear_pending() -> None:
    with _pending_lock:
        _pending.clear()
