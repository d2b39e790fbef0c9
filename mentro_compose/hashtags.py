from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

COMMIT_KEYS = frozenset({"Enter", ","})


def format_tag(raw: str) -> str:
    """Trim, drop one leading '#', and re-prefix; returns "" for a blank tag."""
    tag = (raw or "").strip()
    if tag.startswith("#"):
        tag = tag[1:]
    return f"#{tag}" if tag else ""


@dataclass(frozen=True)
class HashtagSuggestion:
    name: str
    follower_count: int = 0
    post_count: int = 0


class HashtagComposer:
    """
    Ordered, duplicate-free hashtag list driven by key events.

    Tags compare by exact string (including the '#'); case is preserved and
    "#AI" and "#ai" are two different tags.
    """

    def __init__(self, tags: Iterable[str] = ()) -> None:
        self._tags: list[str] = []
        self._suggestions: list[HashtagSuggestion] = []
        self._selected = -1
        for t in tags:
            self.add(t)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    @property
    def suggestions(self) -> tuple[HashtagSuggestion, ...]:
        return tuple(self._suggestions)

    @property
    def selected_index(self) -> int:
        return self._selected

    def __len__(self) -> int:
        return len(self._tags)

    def add(self, tag: str) -> bool:
        formatted = format_tag(tag)
        if not formatted or formatted in self._tags:
            return False
        self._tags.append(formatted)
        self.hide_suggestions()
        return True

    def remove(self, tag: str) -> bool:
        if tag not in self._tags:
            return False
        self._tags.remove(tag)
        return True

    def clear(self) -> None:
        self._tags = []
        self.hide_suggestions()

    def set_suggestions(self, suggestions: Sequence[HashtagSuggestion]) -> None:
        self._suggestions = [s for s in suggestions if s.name not in self._tags]
        self._selected = -1

    def hide_suggestions(self) -> None:
        self._suggestions = []
        self._selected = -1

    def on_key(self, buffer: str, key: str) -> str:
        """
        Apply one key press to the tag list and return the new input buffer.

        Enter or ',' commits the buffer (or the highlighted suggestion on Enter);
        the buffer is cleared only when a tag was actually added. Backspace on an
        empty buffer drops the last tag.
        """
        if key == "ArrowDown":
            if self._selected < len(self._suggestions) - 1:
                self._selected += 1
            return buffer

        if key == "ArrowUp":
            self._selected = self._selected - 1 if self._selected > 0 else -1
            return buffer

        if key == "Escape":
            self.hide_suggestions()
            return buffer

        if key in ("Tab", "Enter") and self._selected >= 0:
            choice = self._suggestions[self._selected]
            return "" if self.add(choice.name) else buffer

        if key in COMMIT_KEYS:
            return "" if self.add(buffer) else buffer

        if key == "Backspace" and not buffer and self._tags:
            self._tags.pop()

        return buffer
