from __future__ import annotations

from typing import Any, Iterator, Mapping, Protocol

import httpx

from .config_schema import ApiConfig
from .encoder import SubmissionPayload
from .errors import TransportError

CONNECT_FAILED = "Could not reach the server"
CONNECTION_LOST = "Connection lost while reading the server response"


def _multipart_parts(payload: SubmissionPayload) -> list[tuple[str, Any]]:
    # A None filename makes httpx render a plain form field.
    fields: list[tuple[str, Any]] = [
        (name, (None, value)) for name, value in payload.data.items()
    ]
    fields.extend(payload.files)
    return fields


class ResponseStream(Protocol):
    """
    One in-flight create-post response.

    The caller owns it once send() returns and must call release() exactly once.
    """

    @property
    def status_code(self) -> int: ...

    @property
    def is_success(self) -> bool: ...

    def read_error_message(self) -> str | None: ...

    def chunks(self) -> Iterator[bytes] | None: ...

    def release(self) -> None: ...


class PostTransport(Protocol):
    def send(self, payload: SubmissionPayload) -> ResponseStream: ...


class HttpxResponseStream:
    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    def read_error_message(self) -> str | None:
        """Return the `error` field of a JSON error body, if there is one."""
        try:
            self._response.read()
            data = self._response.json()
        except (httpx.HTTPError, ValueError):
            return None

        if not isinstance(data, dict):
            return None
        message = data.get("error")
        if isinstance(message, str) and message.strip():
            return message.strip()
        return None

    def chunks(self) -> Iterator[bytes] | None:
        if self._response.status_code == 204:
            return None
        return self._iter_chunks()

    def _iter_chunks(self) -> Iterator[bytes]:
        try:
            yield from self._response.iter_bytes()
        except httpx.HTTPError as e:
            raise TransportError(CONNECTION_LOST) from e

    def release(self) -> None:
        self._response.close()


class HttpxPostTransport:
    """
    Sends the create-post request with httpx and hands back the open stream.

    Text fields go out as plain multipart parts ahead of the files, so a post
    without attachments is still multipart/form-data.
    """

    def __init__(
        self,
        api: ApiConfig,
        *,
        client: httpx.Client | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._api = api
        self._headers = dict(headers or {})
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=api.timeout_seconds)

    def send(self, payload: SubmissionPayload) -> HttpxResponseStream:
        request = self._client.build_request(
            "POST",
            self._api.posts_url,
            files=_multipart_parts(payload),
            headers=self._headers or None,
        )
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(CONNECT_FAILED) from e
        return HttpxResponseStream(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpxPostTransport":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()
