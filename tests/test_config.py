from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from mentro_compose.config import load_config, open_run_logger, retry_config_from
from mentro_compose.errors import ConfigError


_VALID_YAML = """\
api:
  base_url: https://mentro.example/
  posts_path: /api/posts
  hashtag_search_path: /api/hashtags/search
  timeout_seconds: 30
  suggestion_limit: 8

uploads:
  max_file_size_bytes: 1048576
  supported_image_types: [image/PNG, image/png, image/jpeg]
  enforce_types: true

retry:
  max_attempts: 2
  base_delay_seconds: 0.1
  max_delay_seconds: 1.0
  jitter_ratio: 0.0
"""


class TestConfig(unittest.TestCase):
    def _write(self, td: str, text: str) -> Path:
        path = Path(td) / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_config_ok(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, _VALID_YAML))

        self.assertEqual(cfg.api.posts_url, "https://mentro.example/api/posts")
        self.assertEqual(cfg.api.hashtag_search_url, "https://mentro.example/api/hashtags/search")
        self.assertEqual(cfg.api.suggestion_limit, 8)
        self.assertEqual(cfg.uploads.supported_image_types, ["image/png", "image/jpeg"])
        self.assertTrue(cfg.uploads.enforce_types)
        self.assertEqual(cfg.uploads.supported_video_types, ["video/mp4", "video/webm"])
        self.assertEqual(retry_config_from(cfg).max_attempts, 2)

    def test_empty_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, ""))

        self.assertEqual(cfg.api.posts_url, "http://localhost:3000/api/posts")
        self.assertEqual(cfg.uploads.max_file_size_bytes, 100 * 1024 * 1024)
        self.assertIsNone(open_run_logger(cfg))

    def test_rejects_unknown_keys_and_bad_values(self) -> None:
        bad = [
            _VALID_YAML + "surprise: 1\n",
            _VALID_YAML.replace("https://mentro.example/", "ftp://mentro.example"),
            _VALID_YAML.replace("posts_path: /api/posts", "posts_path: api/posts"),
            _VALID_YAML.replace("max_delay_seconds: 1.0", "max_delay_seconds: 0.01"),
            _VALID_YAML.replace("image/jpeg", "jpeg"),
            "- just\n- a list\n",
            "api: [unclosed\n",
        ]
        for text in bad:
            with tempfile.TemporaryDirectory() as td:
                with self.assertRaises(ConfigError, msg=text):
                    load_config(self._write(td, text))

    def test_error_message_names_the_field(self) -> None:
        text = _VALID_YAML.replace("suggestion_limit: 8", "suggestion_limit: 500")
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError) as ctx:
                load_config(self._write(td, text))
        self.assertIn("api.suggestion_limit", str(ctx.exception))

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/config.yaml")

    def test_open_run_logger_from_config(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "logs" / "compose.jsonl"
            text = _VALID_YAML + f"logging:\n  run_log_path: {json.dumps(str(log_path))}\n"
            cfg = load_config(self._write(td, text))

            logger = open_run_logger(cfg)
            self.assertIsNotNone(logger)
            assert logger is not None
            with logger:
                logger.info("submission_started", files=["a.png"])

            lines = log_path.read_text(encoding="utf-8").splitlines()
            self.assertEqual(json.loads(lines[0])["event"], "submission_started")


if __name__ == "__main__":
    unittest.main()
