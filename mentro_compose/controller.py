from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable, Iterator, Literal

from .config_schema import UploadsConfig
from .decoder import CompletionEvent, DecodedEvent, ProgressEvent, ProgressEventDecoder
from .encoder import SubmissionEncoder
from .errors import (
    RequestError,
    StreamUnavailableError,
    SubmissionError,
    SubmissionValidationError,
    TransportError,
    UnexpectedStreamEndError,
)
from .hashtags import HashtagComposer
from .post import Post
from .progress import ProgressBoard, UploadProgressEntry
from .run_log import EventLogger
from .staging import MediaStagingStore, PreviewFactory
from .transport import CONNECTION_LOST, PostTransport, ResponseStream

REQUEST_FAILED = "Failed to create post"
NO_BODY = "No response body received"
STREAM_ENDED = "Server closed the stream before the post was created"
GENERIC_FAILURE = "Something went wrong"

OutcomeStatus = Literal["rejected", "completed", "failed", "cancelled"]


@dataclass(frozen=True)
class SubmissionOutcome:
    status: OutcomeStatus
    post: Post | None = None
    error: str | None = None


class SubmissionController:
    """
    Drives one compose form: staged media, hashtags, text, and the submit flow.

    submit() encodes a snapshot of the form, sends it, applies streamed
    progress records to `progress`, and on the completion record hands the
    post to `on_post_created` and resets the form. Every failure stops at this
    class: it is recorded in `error` and the form is left as it was so the
    user can retry without picking files again.
    """

    def __init__(
        self,
        transport: PostTransport,
        *,
        on_post_created: Callable[[Post], None],
        on_progress: Callable[[UploadProgressEntry], None] | None = None,
        uploads: UploadsConfig | None = None,
        previews: PreviewFactory | None = None,
        encoder: SubmissionEncoder | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self._transport = transport
        self._on_post_created = on_post_created
        self._on_progress = on_progress
        self._encoder = encoder or SubmissionEncoder()
        self._log = logger

        self.content = ""
        self.hashtag_input = ""
        self.error = ""
        self.is_loading = False

        self.progress = ProgressBoard()
        self.hashtags = HashtagComposer()
        self.store = MediaStagingStore(
            uploads=uploads,
            previews=previews,
            progress=self.progress,
            logger=logger,
        )

        self._cancel_requested = False

    @property
    def can_submit(self) -> bool:
        return not self.is_loading and bool(self.content.strip() or self.store.has_attachments)

    def press_hashtag_key(self, key: str) -> None:
        self.hashtag_input = self.hashtags.on_key(self.hashtag_input, key)

    def check_ready(self) -> None:
        if not (self.content.strip() or self.store.has_attachments):
            raise SubmissionValidationError("A post needs text or at least one attachment")

    def cancel(self) -> None:
        """Stop the in-flight submission before its next chunk is read."""
        if self.is_loading:
            self._cancel_requested = True

    def reset(self) -> None:
        self.content = ""
        self.hashtag_input = ""
        self.error = ""
        self.hashtags.clear()
        self.store.clear()
        self.progress.clear()

    def submit(self) -> SubmissionOutcome:
        if self.is_loading:
            return SubmissionOutcome("rejected")
        try:
            self.check_ready()
        except SubmissionValidationError as e:
            self._info("submission_rejected", reason=str(e))
            return SubmissionOutcome("rejected")

        submission_id = uuid.uuid4().hex
        self.error = ""
        self.is_loading = True
        self._cancel_requested = False

        response: ResponseStream | None = None
        try:
            payload = self._encoder.encode(
                self.content,
                self.hashtags.tags,
                self.store.images,
                self.store.files,
                self.store.video,
            )
            self.progress.begin(self.store.attachments())
            self._info(
                "submission_started",
                submission_id=submission_id,
                files=payload.file_names,
                tags=list(self.hashtags.tags),
            )

            response = self._transport.send(payload)
            post = self._consume(response)
            if post is None:
                self.progress.clear()
                self._info("submission_cancelled", submission_id=submission_id)
                return SubmissionOutcome("cancelled")

            self._on_post_created(post)
            self.reset()
            self._info("submission_completed", submission_id=submission_id, post_id=post.id)
            return SubmissionOutcome("completed", post=post)
        except SubmissionError as e:
            return self._fail(str(e), e, submission_id)
        except Exception as e:
            return self._fail(GENERIC_FAILURE, e, submission_id)
        finally:
            if response is not None:
                response.release()
            self.is_loading = False
            self._cancel_requested = False

    def _consume(self, response: ResponseStream) -> Post | None:
        if not response.is_success:
            raise RequestError(
                response.read_error_message() or REQUEST_FAILED,
                status_code=response.status_code,
            )

        chunks = response.chunks()
        if chunks is None:
            raise StreamUnavailableError(NO_BODY)

        decoder = ProgressEventDecoder(logger=self._log)
        for chunk in self._read(iter(chunks)):
            if self._cancel_requested:
                return None
            for event in decoder.feed(chunk):
                post = self._apply(event)
                if post is not None:
                    return post
            if self._cancel_requested:
                return None

        for event in decoder.finish():
            post = self._apply(event)
            if post is not None:
                return post
        raise UnexpectedStreamEndError(STREAM_ENDED)

    def _read(self, chunks: Iterator[bytes]) -> Iterator[bytes]:
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                return
            except SubmissionError:
                raise
            except Exception as e:
                raise TransportError(CONNECTION_LOST) from e
            if chunk:
                yield chunk

    def _apply(self, event: DecodedEvent) -> Post | None:
        """Apply one decoded event; returns the post once it is complete."""
        if isinstance(event, CompletionEvent):
            return event.post

        if isinstance(event, ProgressEvent):
            entry = self.progress.update(event.file_name, event.progress)
            if entry is None:
                if self._log is not None:
                    self._log.warning("progress_unknown_file", file_name=event.file_name)
            elif self._on_progress is not None:
                self._on_progress(entry)

        return None

    def _fail(self, message: str, exc: BaseException, submission_id: str) -> SubmissionOutcome:
        self.error = message
        self.progress.clear()
        if self._log is not None:
            self._log.exception(
                "submission_failed",
                exc=exc,
                submission_id=submission_id,
                user_message=message,
            )
        return SubmissionOutcome("failed", error=message)

    def _info(self, event: str, **data: object) -> None:
        if self._log is not None:
            self._log.info(event, **data)
