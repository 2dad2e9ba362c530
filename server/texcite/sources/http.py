from __future__ import annotations

import time

import requests

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def backoff_sleep(attempt: int) -> None:
    # basic exponential backoff with cap
    time.sleep(min(8.0, 0.5 * (2**attempt)))


def is_retryable(exc: requests.RequestException) -> bool:
    response = getattr(exc, "response", None)
    if response is None:
        return True
    return int(getattr(response, "status_code", 0) or 0) in RETRYABLE_STATUS
