from __future__ import annotations

import httpx


def _retry_after_seconds(response: httpx.Response) -> float | None:
    raw = (response.headers.get("retry-after") or "").strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        # HTTP-date form; fall back to computed backoff.
        return None
    return seconds if seconds >= 0 else None


def is_retryable_http_exception(exc: BaseException) -> tuple[bool, float | None, str | None]:
    """
    Retry policy for idempotent GETs against the feed backend:
    - connection errors and timeouts
    - HTTP 429 (honouring a numeric Retry-After)
    - HTTP 500+
    """
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        reason = f"http_{code}"
        if code == 429:
            return True, _retry_after_seconds(exc.response), reason
        if code >= 500:
            return True, None, reason
        return False, None, reason

    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True, None, "network_error"

    return False, None, None
