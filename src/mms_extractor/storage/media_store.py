"""Staged media files for one message, keyed by MIME type."""

from __future__ import annotations

import logging
import os
import re
import shutil
import time
from collections.abc import Iterator, Sequence
from pathlib import Path

from mms_extractor.core.exceptions import StagingError
from mms_extractor.core.models import MediaItem
from mms_extractor.core.parts import main_type

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[$<>@./\\]")


def safe_message_id(message_id: str | None) -> str:
    """Directory name derived from a Message-ID, or a timestamp without one."""
    if not message_id:
        return str(int(time.time()))
    return _UNSAFE_ID_CHARS.sub("", message_id) or str(int(time.time()))


def _safe_basename(filename: str) -> str:
    """Last path component of ``filename``, or "media" if it names a directory."""
    name = os.path.basename(filename)
    if name in ("", ".", ".."):
        return "media"
    return name


class MediaStore:
    """Write extracted media under a per-message directory and index it by type.

    Every file goes into its own numbered subdirectory (``1/``, ``2/``, ...)
    so parts sharing a filename never collide. Items keep the order they
    were staged in.
    """

    def __init__(self, media_dir: Path) -> None:
        self._media_dir = media_dir
        self._dir_count = 0
        self._media: dict[str, list[MediaItem]] = {}

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    def stage(self, mime_type: str, filename: str, content: str | bytes) -> MediaItem:
        """Write ``content`` to a fresh subdirectory and record it under ``mime_type``.

        Raises:
            StagingError: If the directory or file can't be written.
        """
        path = self._next_dir() / _safe_basename(filename)
        try:
            if isinstance(content, str):
                path.write_text(content, encoding="utf-8")
            else:
                path.write_bytes(content)
        except OSError as e:
            raise StagingError(f"Failed to write {path}: {e}") from e
        logger.debug("Staged %s as %s", mime_type, path)

        item = MediaItem(path=path, mime_type=mime_type)
        self.add(item)
        return item

    def add(self, item: MediaItem) -> None:
        self._media.setdefault(item.mime_type, []).append(item)

    def items(self) -> Iterator[tuple[str, list[MediaItem]]]:
        for mime_type, items in self._media.items():
            yield mime_type, list(items)

    def as_dict(self) -> dict[str, list[MediaItem]]:
        return {mime_type: list(items) for mime_type, items in self._media.items()}

    def attachment(self, types: Sequence[str]) -> MediaItem | None:
        """Largest staged item whose coarse type is any of ``types``.

        Ties go to the item encountered first, walking ``types`` in order.
        Returns None when nothing matches.
        """
        candidates: list[MediaItem] = []
        seen: set[str] = set()
        for wanted in types:
            for mime_type, items in self._media.items():
                if mime_type in seen or main_type(mime_type) != wanted:
                    continue
                seen.add(mime_type)
                candidates.extend(items)

        if not candidates:
            return None
        return max(candidates, key=lambda item: item.size)

    def purge(self) -> None:
        """Delete the message's staging directory and forget everything staged."""
        if self._media_dir.exists():
            shutil.rmtree(self._media_dir)
        self._media.clear()
        self._dir_count = 0

    def _next_dir(self) -> Path:
        self._dir_count += 1
        path = self._media_dir / str(self._dir_count)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(f"Cannot create staging directory {path}: {e}") from e
        return path
