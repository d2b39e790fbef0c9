from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class AttachmentRejectedError(RuntimeError):
    """Raised when a file cannot be staged (too large or unsupported type)."""


class SubmissionError(RuntimeError):
    """Base class for failures that end one submission attempt."""


class SubmissionValidationError(SubmissionError):
    """Raised pre-flight when there is neither content nor an attachment."""


class RequestError(SubmissionError):
    """Raised when the server answers the submission with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamUnavailableError(SubmissionError):
    """Raised when a successful response carries no readable body."""


class TransportError(SubmissionError):
    """Raised when the connection fails while sending or reading the stream."""


class UnexpectedStreamEndError(SubmissionError):
    """Raised when the stream closes before a completion record arrives."""
