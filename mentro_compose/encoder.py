from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence

from .staging import StagedAttachment

FilePart = tuple[str, tuple[str, bytes, str]]


def format_size_mb(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def _media_descriptor(att: StagedAttachment) -> dict[str, Any]:
    if att.kind == "image":
        media_type = "image"
    elif att.kind == "video":
        media_type = "video"
    elif att.name.lower().endswith(".pdf"):
        media_type = "pdf"
    else:
        media_type = "document"

    # url/thumbnail are filled in by the server once the upload lands.
    desc: dict[str, Any] = {
        "type": media_type,
        "url": "",
        "title": att.name,
        "size": format_size_mb(att.file.size),
    }
    if media_type == "video":
        desc["thumbnail"] = ""
    return desc


@dataclass(frozen=True)
class SubmissionPayload:
    """Multipart body for one create-post request, captured at submit time."""

    data: dict[str, str]
    files: list[FilePart] = field(default_factory=list)

    @property
    def file_names(self) -> list[str]:
        return [name for _, (name, _, _) in self.files]


class SubmissionEncoder:
    """
    Build the create-post multipart body.

    Text fields: content, hashtags (JSON array) and media (JSON array of
    descriptors). File parts: images, files, video, each in staging order and
    under its staged file name.
    """

    def encode(
        self,
        content: str,
        tags: Sequence[str],
        images: Sequence[StagedAttachment],
        files: Sequence[StagedAttachment],
        video: StagedAttachment | None = None,
    ) -> SubmissionPayload:
        ordered: list[tuple[str, StagedAttachment]] = [("images", a) for a in images]
        ordered.extend(("files", a) for a in files)
        if video is not None:
            ordered.append(("video", video))

        parts: list[FilePart] = [
            (field_name, (att.name, att.file.data, att.file.content_type))
            for field_name, att in ordered
        ]
        media = [_media_descriptor(att) for _, att in ordered]

        data = {
            "content": content,
            "hashtags": json.dumps(list(tags), ensure_ascii=False),
            "media": json.dumps(media, ensure_ascii=False),
        }
        return SubmissionPayload(data=data, files=parts)
