from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

MEDIA_TYPE = Literal["image", "video", "pdf", "document", "emoji"]


class Author(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: str = Field("", validation_alias=AliasChoices("id", "_id"))
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    title: str | None = None
    department: str | None = None


class MediaDescriptor(BaseModel):
    """One media item attached to a post; only `type` is always present."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    type: MEDIA_TYPE
    url: str | None = None
    thumbnail: str | None = None
    title: str | None = None
    size: str | None = None
    duration: str | float | None = None
    page_count: int | None = Field(None, alias="pageCount")
    code: str | None = None
    position: int | None = None


class Comment(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: str = Field("", validation_alias=AliasChoices("id", "_id"))
    author: Author | None = None
    content: str = ""
    timestamp: str | None = Field(None, validation_alias=AliasChoices("timestamp", "createdAt"))


class Post(BaseModel):
    """
    Server-assigned post record carried by the completion event.

    Unknown fields are kept so callers can treat the record as opaque.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    author: Author | None = None
    content: str = ""
    media: list[MediaDescriptor] = Field(default_factory=list)
    # A count from the feed API, a list of user ids from the create route.
    likes: int | list[Any] = 0
    # Embedded comments or bare comment ids, depending on the route.
    comments: list[Comment | str] = Field(default_factory=list)
    timestamp: str | None = Field(None, validation_alias=AliasChoices("timestamp", "createdAt"))
    tags: list[str] = Field(default_factory=list)
