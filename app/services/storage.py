from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from app.services.file_validation import ALLOWED_IMAGE_TYPES, extension_for

log = logging.getLogger(__name__)

_TMP_SUFFIX = ".part"


class PhotoStore:
    """
    One photo per announcement, stored as `{announcement_id}.{ext}` under
    base_dir and published at `{url_prefix}/{announcement_id}.{ext}`.

    Replacement is write-to-temp then os.replace(), so readers see either the
    old file or the complete new one. No lock is taken: concurrent uploads for
    the same announcement resolve to whichever swap happens last.
    """

    def __init__(self, base_dir: str, *, url_prefix: str = "/images"):
        self.base = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def filename_for(self, announcement_id: str, mime: str) -> str:
        return f"{announcement_id}.{extension_for(mime)}"

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    async def replace(self, *, announcement_id: str, data: bytes, mime: str) -> str:
        filename = self.filename_for(announcement_id, mime)
        await asyncio.to_thread(self._write_atomic, filename, data)
        return self.url_for(filename)

    def _write_atomic(self, filename: str, data: bytes) -> None:
        self.base.mkdir(parents=True, exist_ok=True)
        target = self.base / filename

        fd, tmp_name = tempfile.mkstemp(dir=self.base, prefix=f".{filename}.", suffix=_TMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        self._fsync_dir()

    def _fsync_dir(self) -> None:
        if os.name != "posix":
            return
        dir_fd = os.open(self.base, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    def files_for(self, announcement_id: str) -> list[Path]:
        return [
            self.base / f"{announcement_id}.{ext}"
            for ext in ALLOWED_IMAGE_TYPES.values()
            if (self.base / f"{announcement_id}.{ext}").exists()
        ]

    async def prune(self, *, announcement_id: str, keep: str) -> None:
        """Drop files left behind by an earlier upload of a different image type."""
        await asyncio.to_thread(self._prune, announcement_id, keep)

    def _prune(self, announcement_id: str, keep: str) -> None:
        for path in self.files_for(announcement_id):
            if path.name != keep:
                path.unlink(missing_ok=True)
                log.info("removed stale photo %s", path.name)

    async def remove(self, announcement_id: str) -> None:
        await asyncio.to_thread(self._remove, announcement_id)

    def _remove(self, announcement_id: str) -> None:
        for path in self.files_for(announcement_id):
            try:
                path.unlink(missing_ok=True)
            except OSError:
                log.warning("could not delete photo %s", path.name, exc_info=True)
