from __future__ import annotations

import mimetypes
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, Protocol

from .config_schema import UploadsConfig
from .errors import AttachmentRejectedError
from .progress import AttachmentKind, ProgressBoard
from .run_log import EventLogger

_FALLBACK_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StagedFile:
    """Raw bytes of a user-picked file plus the metadata sent with it."""

    name: str
    data: bytes
    content_type: str = _FALLBACK_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path, *, content_type: str | None = None) -> "StagedFile":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            name=p.name,
            data=p.read_bytes(),
            content_type=content_type or guessed or _FALLBACK_CONTENT_TYPE,
        )


@dataclass(frozen=True)
class StagedAttachment:
    file: StagedFile
    kind: AttachmentKind
    preview_url: str | None = None

    @property
    def name(self) -> str:
        return self.file.name


class PreviewFactory(Protocol):
    def create(self, file: StagedFile) -> str: ...

    def revoke(self, url: str) -> None: ...


class LocalPreviewFactory:
    """Mints opaque blob-style preview URLs and tracks which are still live."""

    def __init__(self, origin: str = "mentro") -> None:
        self._origin = origin
        self._live: set[str] = set()

    @property
    def live(self) -> frozenset[str]:
        return frozenset(self._live)

    def create(self, file: StagedFile) -> str:
        url = f"blob:{self._origin}/{uuid.uuid4().hex}"
        self._live.add(url)
        return url

    def revoke(self, url: str) -> None:
        self._live.discard(url)


def _numbered(name: str, n: int) -> str:
    p = Path(name)
    suffix = p.suffix
    stem = name[: -len(suffix)] if suffix else name
    return f"{stem} ({n}){suffix}"


class MediaStagingStore:
    """
    Attachments picked for the next post: images, generic files and one video.

    File names are unique across all three collections. A clashing name is
    renamed `stem (2).ext`, `stem (3).ext`, ... so progress records, which the
    server keys by file name, always map to exactly one attachment.
    """

    def __init__(
        self,
        *,
        uploads: UploadsConfig | None = None,
        previews: PreviewFactory | None = None,
        progress: ProgressBoard | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self._uploads = uploads or UploadsConfig()
        self._previews = previews or LocalPreviewFactory()
        self._progress = progress
        self._log = logger

        self._images: list[StagedAttachment] = []
        self._files: list[StagedAttachment] = []
        self._video: StagedAttachment | None = None

    @property
    def images(self) -> list[StagedAttachment]:
        return list(self._images)

    @property
    def files(self) -> list[StagedAttachment]:
        return list(self._files)

    @property
    def video(self) -> StagedAttachment | None:
        return self._video

    @property
    def has_attachments(self) -> bool:
        return bool(self._images or self._files or self._video is not None)

    @property
    def total_size(self) -> int:
        return sum(att.file.size for att in self.attachments())

    def attachments(self) -> list[StagedAttachment]:
        out = list(self._images) + list(self._files)
        if self._video is not None:
            out.append(self._video)
        return out

    def names(self) -> set[str]:
        return {att.name for att in self.attachments()}

    def add_images(self, files: Iterable[StagedFile]) -> list[StagedAttachment]:
        batch = list(files)
        for f in batch:
            self._check(f, "image")

        added: list[StagedAttachment] = []
        for f in batch:
            att = self._stage(f, "image")
            self._images.append(att)
            added.append(att)
        return added

    def add_file(self, file: StagedFile) -> StagedAttachment:
        self._check(file, "file")
        att = self._stage(file, "file")
        self._files.append(att)
        return att

    def set_video(self, file: StagedFile) -> StagedAttachment:
        self._check(file, "video")
        if self._video is not None:
            self._drop(self._video)
            self._video = None
        self._video = self._stage(file, "video")
        return self._video

    def remove(self, kind: AttachmentKind, index: int) -> StagedAttachment:
        """Remove by position within one collection; progress is matched by name."""
        if index < 0:
            raise IndexError(f"attachment index must be >= 0, got {index}")
        if kind == "image":
            att = self._images.pop(index)
        elif kind == "file":
            att = self._files.pop(index)
        elif kind == "video":
            if self._video is None or index != 0:
                raise IndexError("no staged video at that index")
            att = self._video
            self._video = None
        else:
            raise ValueError(f"unknown attachment kind: {kind!r}")

        self._drop(att)
        return att

    def remove_named(self, name: str) -> StagedAttachment | None:
        for kind, items in (("image", self._images), ("file", self._files)):
            for i, att in enumerate(items):
                if att.name == name:
                    return self.remove(kind, i)  # type: ignore[arg-type]
        if self._video is not None and self._video.name == name:
            return self.remove("video", 0)
        return None

    def clear(self) -> None:
        for att in self.attachments():
            if att.preview_url:
                self._previews.revoke(att.preview_url)
        self._images = []
        self._files = []
        self._video = None

    def _check(self, file: StagedFile, kind: AttachmentKind) -> None:
        limit = self._uploads.max_file_size_bytes
        if file.size > limit:
            raise AttachmentRejectedError(
                f"{file.name} is {file.size} bytes; the limit is {limit} bytes"
            )

        if not self._uploads.enforce_types:
            return

        allowed = {
            "image": self._uploads.supported_image_types,
            "video": self._uploads.supported_video_types,
            "file": self._uploads.supported_document_types,
        }[kind]
        if (file.content_type or "").lower() not in allowed:
            raise AttachmentRejectedError(
                f"{file.name} has unsupported type {file.content_type!r} for {kind}"
            )

    def _stage(self, file: StagedFile, kind: AttachmentKind) -> StagedAttachment:
        name = self._unique_name(file.name)
        if name != file.name:
            if self._log is not None:
                self._log.info("attachment_renamed", original=file.name, staged=name, kind=kind)
            file = replace(file, name=name)

        try:
            preview = self._previews.create(file)
        except Exception as e:
            preview = None
            if self._log is not None:
                self._log.warning(
                    "preview_failed", file_name=file.name, kind=kind, error=str(e)
                )

        return StagedAttachment(file=file, kind=kind, preview_url=preview)

    def _unique_name(self, name: str) -> str:
        taken = self.names()
        if name not in taken:
            return name
        n = 2
        while _numbered(name, n) in taken:
            n += 1
        return _numbered(name, n)

    def _drop(self, att: StagedAttachment) -> None:
        if att.preview_url:
            self._previews.revoke(att.preview_url)
        if self._progress is not None:
            self._progress.discard(att.name)
