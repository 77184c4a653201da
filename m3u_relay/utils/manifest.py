"""JSON manifest of finished media downloads, keyed by media URL."""

from __future__ import annotations

import json
import logging
import os
from typing import Dict


class DownloadManifest:
    def __init__(self, path: str) -> None:
        self.path = path
        self._entries: Dict[str, str] = {}
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.path):
            self._entries = {}
            return
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
            self._entries = dict(payload.get("downloads", {}))
        except (json.JSONDecodeError, OSError, AttributeError) as exc:  # pragma: no cover - corrupt manifest
            logging.warning("Ignoring unreadable manifest %s: %s", self.path, exc)
            self._entries = {}

    def save(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump({"downloads": self._entries}, handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def is_downloaded(self, media_url: str, target_path: str) -> bool:
        """True when ``media_url`` finished before and its file is still on disk."""

        saved_path = self._entries.get(media_url)
        if not saved_path:
            return False
        return os.path.exists(saved_path) or os.path.exists(target_path)

    def mark_downloaded(self, media_url: str, path: str) -> None:
        self._entries[media_url] = path
        self.save()
