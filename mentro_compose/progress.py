from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Literal

if TYPE_CHECKING:
    from .staging import StagedAttachment

AttachmentKind = Literal["image", "file", "video"]


@dataclass
class UploadProgressEntry:
    file_name: str
    kind: AttachmentKind
    progress: int = 0


class ProgressBoard:
    """
    Per-submission progress entries keyed by file name.

    Entries keep their insertion order so a UI can render bars in staging order.
    """

    def __init__(self) -> None:
        self._entries: dict[str, UploadProgressEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._entries

    def entries(self) -> list[UploadProgressEntry]:
        return list(self._entries.values())

    def get(self, file_name: str) -> UploadProgressEntry | None:
        return self._entries.get(file_name)

    def begin(self, attachments: Iterable["StagedAttachment"]) -> None:
        """Replace all entries with one zeroed entry per attachment."""
        entries: dict[str, UploadProgressEntry] = {}
        for att in attachments:
            if att.name in entries:
                raise ValueError(f"duplicate staged file name: {att.name}")
            entries[att.name] = UploadProgressEntry(file_name=att.name, kind=att.kind)
        self._entries = entries

    def update(self, file_name: str, progress: int) -> UploadProgressEntry | None:
        """Overwrite one entry's progress; unknown names are ignored."""
        entry = self._entries.get(file_name)
        if entry is None:
            return None
        entry.progress = progress
        return entry

    def discard(self, file_name: str) -> None:
        self._entries.pop(file_name, None)

    def clear(self) -> None:
        self._entries.clear()
