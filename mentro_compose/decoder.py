from __future__ import annotations

import codecs
import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from .post import Post
from .run_log import EventLogger

DATA_PREFIX = "data: "


class DecoderState(str, Enum):
    AWAITING_CHUNK = "awaiting_chunk"
    BUFFERING_LINE = "buffering_line"
    EMIT_EVENT = "emit_event"
    STREAM_CLOSED = "stream_closed"


@dataclass(frozen=True)
class ProgressEvent:
    file_name: str
    progress: int


@dataclass(frozen=True)
class CompletionEvent:
    post: Post
    raw: dict[str, Any]


@dataclass(frozen=True)
class StreamEndedEvent:
    """The transport finished before any completion record was seen."""


DecodedEvent = Union[ProgressEvent, CompletionEvent, StreamEndedEvent]


def _clamp_progress(value: float) -> int:
    return max(0, min(100, int(round(value))))


class ProgressEventDecoder:
    """
    Incremental decoder for the create-post response stream.

    The body is newline-delimited text; lines starting with "data: " carry one
    JSON object each, either {"fileName", "progress"} or {"type": "complete",
    "post"}. Chunks may split lines (and UTF-8 sequences) anywhere: partial
    lines are buffered until their newline arrives. A malformed line is logged
    and skipped. Once the completion record is decoded the decoder is closed
    and ignores everything after it.
    """

    def __init__(self, *, logger: EventLogger | None = None) -> None:
        self._log = logger
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._state = DecoderState.AWAITING_CHUNK
        self._completion: CompletionEvent | None = None
        self._line_no = 0

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def completion(self) -> CompletionEvent | None:
        return self._completion

    @property
    def closed(self) -> bool:
        return self._state is DecoderState.STREAM_CLOSED

    def feed(self, chunk: bytes) -> list[DecodedEvent]:
        if self.closed:
            return []
        self._buffer += self._text.decode(chunk)
        return self._drain(final=False)

    def finish(self) -> list[DecodedEvent]:
        """
        Signal end of stream: flush any unterminated last line and close.

        Ends with a StreamEndedEvent when no completion record was seen.
        """
        if self.closed:
            return []

        self._buffer += self._text.decode(b"", final=True)
        events = self._drain(final=True)

        if self._completion is None:
            events.append(StreamEndedEvent())
        self._state = DecoderState.STREAM_CLOSED
        return events

    def _drain(self, *, final: bool) -> list[DecodedEvent]:
        events: list[DecodedEvent] = []

        while True:
            newline = self._buffer.find("\n")
            if newline < 0:
                if not (final and self._buffer):
                    break
                line, self._buffer = self._buffer, ""
            else:
                line = self._buffer[:newline]
                self._buffer = self._buffer[newline + 1 :]

            self._state = DecoderState.EMIT_EVENT
            event = self._decode_line(line.rstrip("\r"))
            if event is None:
                continue

            events.append(event)
            if isinstance(event, CompletionEvent):
                self._completion = event
                self._buffer = ""
                self._state = DecoderState.STREAM_CLOSED
                return events

        self._state = DecoderState.BUFFERING_LINE if self._buffer else DecoderState.AWAITING_CHUNK
        return events

    def _decode_line(self, line: str) -> DecodedEvent | None:
        self._line_no += 1
        if not line.startswith(DATA_PREFIX):
            return None

        body = line[len(DATA_PREFIX) :]
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            self._warn("stream_line_malformed", body=body, error=str(e))
            return None

        if not isinstance(data, dict):
            self._warn("stream_line_unrecognized", body=body)
            return None

        if data.get("type") == "complete" and data.get("post"):
            try:
                post = Post.model_validate(data["post"])
            except ValidationError as e:
                self._warn("stream_line_malformed", body=body, error=str(e))
                return None
            return CompletionEvent(post=post, raw=data["post"])

        file_name = data.get("fileName")
        progress = data.get("progress")
        if (
            isinstance(file_name, str)
            and file_name
            and isinstance(progress, (int, float))
            and not isinstance(progress, bool)
            and math.isfinite(progress)
        ):
            return ProgressEvent(file_name=file_name, progress=_clamp_progress(progress))

        self._warn("stream_line_unrecognized", body=body)
        return None

    def _warn(self, event: str, **data: Any) -> None:
        if self._log is not None:
            self._log.warning(event, line=self._line_no, **data)
