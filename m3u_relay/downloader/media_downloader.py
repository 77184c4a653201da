"""Asynchronous downloader that saves playlist entries to disk with resume support."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import List, Optional, Sequence, Tuple

from ..errors import ClientInputError
from ..models import PlaylistItem
from ..utils.file_utils import ensure_directory, guess_extension, sanitize_filename
from ..utils.http_client import HttpClient
from ..utils.manifest import DownloadManifest
from ..utils.url_guard import validate_target_url

PART_SUFFIX = ".part"
MANIFEST_NAME = ".download_manifest.json"

DownloadPlan = List[Tuple[int, PlaylistItem, str]]


def build_target_path(output_dir: str, item: PlaylistItem, index: int) -> str:
    """Returns ``<output_dir>/<safe name>.<ext>`` for one entry."""

    extension = guess_extension(item.media_url, item.group_name)
    raw_name = item.attribute_name or item.display_name
    safe_name = sanitize_filename(raw_name, default=f"entry_{index}", max_length=100)
    if not safe_name.lower().endswith(f".{extension}"):
        safe_name = f"{safe_name}.{extension}"
    return os.path.join(output_dir, safe_name)


def resume_offset(part_path: str) -> int:
    """Bytes already on disk for an interrupted download (0 when starting fresh)."""

    try:
        return os.path.getsize(part_path)
    except OSError:
        return 0


class MediaDownloader:
    """Downloads entries concurrently; interrupted files resume from their ``.part``."""

    def __init__(self, http_client: HttpClient, output_dir: str, workers: int = 4) -> None:
        self.workers = max(1, workers)
        self.output_dir = output_dir
        self._http_client = http_client
        self._manifest: Optional[DownloadManifest] = None

    @property
    def manifest(self) -> DownloadManifest:
        if self._manifest is None:
            ensure_directory(self.output_dir)
            self._manifest = DownloadManifest(os.path.join(self.output_dir, MANIFEST_NAME))
        return self._manifest

    def build_plan(self, items: Sequence[PlaylistItem]) -> DownloadPlan:
        plan: DownloadPlan = []
        used_paths = set()
        for index, item in enumerate(items, start=1):
            dest_path = build_target_path(self.output_dir, item, index)
            if dest_path in used_paths:
                stem, extension = os.path.splitext(dest_path)
                dest_path = f"{stem}_{index}{extension}"
            used_paths.add(dest_path)
            plan.append((index, item, dest_path))
        return plan

    def download(self, items: Sequence[PlaylistItem]) -> Tuple[int, int]:
        """Downloads ``items`` and returns ``(succeeded, failed)`` counts."""

        plan = self.build_plan(items)
        if not plan:
            return 0, 0
        ensure_directory(self.output_dir)
        results = asyncio.run(self._download_all(plan))
        succeeded = sum(1 for ok in results if ok)
        return succeeded, len(results) - succeeded

    async def _download_all(self, plan: DownloadPlan) -> List[bool]:
        sem = asyncio.Semaphore(self.workers)
        try:
            tasks = [self._download_single(sem, index, item, dest) for index, item, dest in plan]
            return await asyncio.gather(*tasks)
        finally:
            await self._http_client.aclose()

    async def _download_single(self, sem: asyncio.Semaphore, index: int, item: PlaylistItem, dest_path: str) -> bool:
        if self.manifest.is_downloaded(item.media_url, dest_path):
            logging.info("Skipping #%s %s (already downloaded)", index, item.display_name)
            return True

        try:
            validate_target_url(item.media_url)
        except ClientInputError as exc:
            logging.warning("Skipping #%s %s: %s", index, item.display_name, exc.message)
            return False

        part_path = dest_path + PART_SUFFIX
        offset = resume_offset(part_path)
        try:
            async with sem:
                if offset:
                    logging.info("Resuming #%s %s at byte %s", index, item.display_name, offset)
                else:
                    logging.info("Downloading #%s %s", index, item.display_name)
                status = await self._http_client.download_stream(item.media_url, part_path, offset=offset)
        except Exception as exc:  # pragma: no cover - network errors
            logging.error("Download #%s %s failed: %s", index, item.display_name, exc)
            return False

        if status == 416:
            logging.info("#%s %s was already complete on disk", index, item.display_name)
        os.replace(part_path, dest_path)
        self.manifest.mark_downloaded(item.media_url, dest_path)
        logging.info("Saved %s", os.path.basename(dest_path))
        return True
