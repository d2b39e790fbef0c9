from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_DEFAULT_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
_DEFAULT_VIDEO_TYPES = ["video/mp4", "video/webm"]
_DEFAULT_DOCUMENT_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


def _normalize_mime_list(values: list[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()

    for item in values:
        mime = (item or "").strip().lower()
        if not mime:
            continue
        if "/" not in mime:
            raise ValueError(f"not a MIME type: {item!r}")
        if mime in seen:
            continue
        seen.add(mime)
        out.append(mime)

    return out


def _normalize_path(value: str) -> str:
    path = (value or "").strip()
    if not path.startswith("/"):
        raise ValueError("must start with '/'")
    return path


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "http://localhost:3000"
    posts_path: str = "/api/posts"
    hashtag_search_path: str = "/api/hashtags/search"
    timeout_seconds: float = Field(60.0, gt=0)
    suggestion_limit: int = Field(10, ge=1, le=50)

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        url = (v or "").strip().rstrip("/")
        if not (url.startswith("http://") or url.startswith("https://")):
            raise ValueError("must be an http(s) URL")
        return url

    @field_validator("posts_path", "hashtag_search_path")
    @classmethod
    def _paths_must_be_absolute(cls, v: str) -> str:
        return _normalize_path(v)

    @property
    def posts_url(self) -> str:
        return f"{self.base_url}{self.posts_path}"

    @property
    def hashtag_search_url(self) -> str:
        return f"{self.base_url}{self.hashtag_search_path}"


class UploadsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_file_size_bytes: PositiveInt = 100 * 1024 * 1024
    supported_image_types: list[str] = Field(default_factory=lambda: list(_DEFAULT_IMAGE_TYPES))
    supported_video_types: list[str] = Field(default_factory=lambda: list(_DEFAULT_VIDEO_TYPES))
    supported_document_types: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_DOCUMENT_TYPES)
    )
    enforce_types: bool = False

    @field_validator(
        "supported_image_types",
        "supported_video_types",
        "supported_document_types",
    )
    @classmethod
    def _normalize_types(cls, v: list[str]) -> list[str]:
        return _normalize_mime_list(v)


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: PositiveInt = 3
    base_delay_seconds: NonNegativeFloat = 0.5
    max_delay_seconds: NonNegativeFloat = 5.0
    jitter_ratio: float = Field(0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _max_must_cover_base(self) -> "RetrySettings":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    run_log_path: str | None = None
    overwrite: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api: ApiConfig = Field(default_factory=ApiConfig)
    uploads: UploadsConfig = Field(default_factory=UploadsConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
