from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from typing import Any

from mentro_compose.config_schema import UploadsConfig
from mentro_compose.errors import AttachmentRejectedError
from mentro_compose.progress import ProgressBoard
from mentro_compose.staging import LocalPreviewFactory, MediaStagingStore, StagedFile


def _file(name: str, data: bytes = b"x", content_type: str = "image/png") -> StagedFile:
    return StagedFile(name=name, data=data, content_type=content_type)


class _FlakyPreviews(LocalPreviewFactory):
    def __init__(self, fail_on: set[str]) -> None:
        super().__init__()
        self._fail_on = fail_on

    def create(self, file: StagedFile) -> str:
        if file.name in self._fail_on:
            raise OSError("cannot read image")
        return super().create(file)


class _ListLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, dict[str, Any]]] = []

    def info(self, event: str, **data: Any) -> None:
        self.records.append((event, data))

    def warning(self, event: str, **data: Any) -> None:
        self.records.append((event, data))

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        self.records.append((event, data))


class TestMediaStagingStore(unittest.TestCase):
    def test_add_images_is_cumulative_with_previews(self) -> None:
        previews = LocalPreviewFactory()
        store = MediaStagingStore(previews=previews)

        store.add_images([_file("a.png"), _file("b.png")])
        store.add_images([_file("c.png")])

        self.assertEqual([a.name for a in store.images], ["a.png", "b.png", "c.png"])
        self.assertEqual(len(previews.live), 3)
        self.assertTrue(all(a.kind == "image" for a in store.images))

    def test_duplicate_names_are_disambiguated(self) -> None:
        log = _ListLogger()
        store = MediaStagingStore(logger=log)

        store.add_images([_file("photo.png"), _file("photo.png")])
        store.add_file(_file("photo.png", content_type="application/pdf"))
        store.set_video(_file("notes", content_type="video/mp4"))
        store.add_file(_file("notes"))

        self.assertEqual(
            [a.name for a in store.attachments()],
            ["photo.png", "photo (2).png", "photo (3).png", "notes (2)", "notes"],
        )
        self.assertEqual(len(store.names()), 5)
        self.assertEqual([event for event, _ in log.records], ["attachment_renamed"] * 3)

    def test_set_video_replaces_and_revokes_previous(self) -> None:
        previews = LocalPreviewFactory()
        store = MediaStagingStore(previews=previews)

        first = store.set_video(_file("clip.mp4", content_type="video/mp4"))
        second = store.set_video(_file("clip.mp4", content_type="video/mp4"))

        self.assertEqual(store.video, second)
        self.assertEqual(second.name, "clip.mp4")
        self.assertNotIn(first.preview_url, previews.live)
        self.assertIn(second.preview_url, previews.live)

    def test_remove_matches_progress_by_name(self) -> None:
        board = ProgressBoard()
        store = MediaStagingStore(progress=board)
        store.add_images([_file("a.png"), _file("b.png")])
        store.add_file(_file("doc.pdf"))
        board.begin(store.attachments())

        removed = store.remove("image", 0)
        store.add_images([_file("c.png")])

        self.assertEqual(removed.name, "a.png")
        self.assertEqual([a.name for a in store.images], ["b.png", "c.png"])
        self.assertEqual([e.file_name for e in board.entries()], ["b.png", "doc.pdf"])

    def test_remove_rejects_negative_index(self) -> None:
        store = MediaStagingStore()
        store.add_images([_file("a.png"), _file("b.png")])
        store.add_file(_file("doc.pdf"))
        store.set_video(_file("v.mp4"))

        for kind in ("image", "file", "video"):
            with self.assertRaises(IndexError):
                store.remove(kind, -1)

        self.assertEqual([a.name for a in store.attachments()], ["a.png", "b.png", "doc.pdf", "v.mp4"])

    def test_remove_named_and_video(self) -> None:
        store = MediaStagingStore()
        store.add_file(_file("doc.pdf"))
        store.set_video(_file("v.mp4"))

        self.assertIsNotNone(store.remove_named("v.mp4"))
        self.assertIsNone(store.video)
        self.assertIsNone(store.remove_named("missing.png"))
        with self.assertRaises(IndexError):
            store.remove("video", 0)

    def test_preview_failure_is_logged_and_skipped(self) -> None:
        log = _ListLogger()
        store = MediaStagingStore(previews=_FlakyPreviews({"bad.png"}), logger=log)

        store.add_images([_file("good.png"), _file("bad.png")])

        self.assertEqual(len(store.images), 2)
        self.assertIsNotNone(store.images[0].preview_url)
        self.assertIsNone(store.images[1].preview_url)
        self.assertEqual(log.records[0][0], "preview_failed")

    def test_clear_revokes_all_previews(self) -> None:
        previews = _FlakyPreviews({"bad.png"})
        store = MediaStagingStore(previews=previews)
        store.add_images([_file("good.png"), _file("bad.png")])
        store.add_file(_file("doc.pdf"))
        store.set_video(_file("v.mp4"))

        store.clear()

        self.assertFalse(store.has_attachments)
        self.assertEqual(previews.live, frozenset())

    def test_size_limit_rejects_whole_batch(self) -> None:
        store = MediaStagingStore(uploads=UploadsConfig(max_file_size_bytes=4))

        with self.assertRaises(AttachmentRejectedError):
            store.add_images([_file("ok.png", b"1234"), _file("big.png", b"12345")])
        self.assertEqual(store.images, [])

    def test_enforced_types(self) -> None:
        store = MediaStagingStore(uploads=UploadsConfig(enforce_types=True))

        store.add_images([_file("a.png", content_type="image/png")])
        with self.assertRaises(AttachmentRejectedError):
            store.set_video(_file("a.gif", content_type="image/gif"))
        with self.assertRaises(AttachmentRejectedError):
            store.add_file(_file("run.exe", content_type="application/x-msdownload"))

    def test_staged_file_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "slides.pdf"
            path.write_bytes(b"%PDF-1.4")

            staged = StagedFile.from_path(path)

        self.assertEqual(staged.name, "slides.pdf")
        self.assertEqual(staged.content_type, "application/pdf")
        self.assertEqual(staged.size, 8)


if __name__ == "__main__":
    unittest.main()
