from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

_HOST_LIMITERS_LOCK = threading.Lock()
_HOST_LIMITERS: dict[tuple[str, int], threading.BoundedSemaphore] = {}


def _host_limiter(host: str, *, limit: int) -> threading.BoundedSemaphore | None:
    limit = int(limit)
    if limit <= 0:
        return None
    key = (str(host or "").strip().lower(), limit)
    with _HOST_LIMITERS_LOCK:
        limiter = _HOST_LIMITERS.get(key)
        if limiter is None:
            limiter = threading.BoundedSemaphore(limit)
            _HOST_LIMITERS[key] = limiter
    return limiter


@contextmanager
def request_slot(*, host: str, limit: int) -> Iterator[None]:
    """Hold one of `limit` process-wide slots for `host`; a limit of 0 disables the cap."""
    limiter = _host_limiter(host, limit=limit)
    if limiter is None:
        yield
        return
    with limiter:
        yield
