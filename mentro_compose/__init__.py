from __future__ import annotations

from .config import load_config, open_run_logger
from .config_schema import AppConfig
from .controller import SubmissionController, SubmissionOutcome
from .decoder import CompletionEvent, ProgressEvent, ProgressEventDecoder, StreamEndedEvent
from .encoder import SubmissionEncoder, SubmissionPayload
from .errors import (
    AttachmentRejectedError,
    ConfigError,
    RequestError,
    StreamUnavailableError,
    SubmissionError,
    SubmissionValidationError,
    TransportError,
    UnexpectedStreamEndError,
)
from .hashtags import HashtagComposer, HashtagSuggestion
from .post import Comment, Post
from .progress import ProgressBoard, UploadProgressEntry
from .staging import MediaStagingStore, StagedAttachment, StagedFile
from .suggestions import HashtagSuggestionClient
from .transport import HttpxPostTransport

__all__ = [
    "AppConfig",
    "AttachmentRejectedError",
    "Comment",
    "CompletionEvent",
    "ConfigError",
    "HashtagComposer",
    "HashtagSuggestion",
    "HashtagSuggestionClient",
    "HttpxPostTransport",
    "MediaStagingStore",
    "Post",
    "ProgressBoard",
    "ProgressEvent",
    "ProgressEventDecoder",
    "RequestError",
    "StagedAttachment",
    "StagedFile",
    "StreamEndedEvent",
    "StreamUnavailableError",
    "SubmissionController",
    "SubmissionEncoder",
    "SubmissionError",
    "SubmissionOutcome",
    "SubmissionPayload",
    "SubmissionValidationError",
    "TransportError",
    "UnexpectedStreamEndError",
    "UploadProgressEntry",
    "load_config",
    "open_run_logger",
]
