from __future__ import annotations

from typing import Any, Iterable

import httpx

from .config_schema import ApiConfig
from .hashtags import HashtagSuggestion
from .http_retry import is_retryable_http_exception
from .retry import RetryConfig, RetryEvent, SleepFn, call_with_retries
from .run_log import EventLogger


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    return 0


def parse_suggestions(payload: Any) -> list[HashtagSuggestion]:
    if not isinstance(payload, dict):
        return []
    items = payload.get("hashtags")
    if not isinstance(items, list):
        return []

    out: list[HashtagSuggestion] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        out.append(
            HashtagSuggestion(
                name=name.strip(),
                follower_count=_coerce_count(item.get("followerCount")),
                post_count=_coerce_count(item.get("postCount")),
            )
        )
    return out


class HashtagSuggestionClient:
    """Looks up existing hashtags for the tag input's dropdown."""

    def __init__(
        self,
        api: ApiConfig,
        *,
        client: httpx.Client | None = None,
        retry: RetryConfig | None = None,
        logger: EventLogger | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._api = api
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=api.timeout_seconds)
        self._retry = retry or RetryConfig()
        self._log = logger
        self._sleep_fn = sleep_fn

    def search(self, query: str, *, exclude: Iterable[str] = ()) -> list[HashtagSuggestion]:
        """
        Return suggestions for `query`, minus names already in `exclude`.

        Lookup failures, after retries, are logged and yield an empty list.
        """
        q = (query or "").strip()
        if q.startswith("#"):
            q = q[1:].strip()
        if not q:
            return []

        params = {"q": q, "limit": str(self._api.suggestion_limit)}

        def _do_get() -> Any:
            response = self._client.get(self._api.hashtag_search_url, params=params)
            response.raise_for_status()
            return response.json()

        try:
            payload = call_with_retries(
                _do_get,
                cfg=self._retry,
                is_retryable=is_retryable_http_exception,
                operation="hashtags.search",
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
            )
        except (httpx.HTTPError, ValueError) as e:
            if self._log is not None:
                self._log.warning("suggestions_failed", query=q, error=str(e))
            return []

        skip = set(exclude)
        return [s for s in parse_suggestions(payload) if s.name not in skip]

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _on_retry(self, event: RetryEvent) -> None:
        if self._log is not None:
            self._log.info(
                "retry_scheduled",
                operation=event.operation,
                attempt=event.failure_attempt,
                max_attempts=event.max_attempts,
                delay_seconds=event.delay_seconds,
                reason=event.reason,
            )
