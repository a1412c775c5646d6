"""
Local storage for uploaded QR images.
"""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from paylink.config import MAX_UPLOAD_BYTES
from paylink.errors import FileTooLargeError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


def _safe_extension(filename: str | None) -> str:
    ext = os.path.splitext(os.path.basename(filename or ""))[1]
    return ext if _EXTENSION_PATTERN.match(ext) else ""


def generate_filename(original_name: str | None) -> str:
    """Unique on-disk name: epoch millis, a uuid4 and the original extension."""
    return f"{int(time.time() * 1000)}-{uuid4()}{_safe_extension(original_name)}"


@dataclass
class ImageStore:
    """
    Writes uploaded images into ``directory`` and hands out relative URLs
    under ``url_prefix``, which is where the directory is served statically.
    """

    directory: str
    url_prefix: str = "/uploads"
    max_bytes: int = MAX_UPLOAD_BYTES

    def __post_init__(self):
        self.url_prefix = "/" + self.url_prefix.strip("/")

    @property
    def root(self) -> Path:
        return Path(self.directory)

    def ensure_directory(self) -> Path:
        root = self.root
        root.mkdir(parents=True, exist_ok=True)
        return root

    async def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """
        Persist ``upload`` and return its relative URL, or None when no file was sent.
        """
        if upload is None or not upload.filename:
            return None
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise UnsupportedFileTypeError()

        name = generate_filename(upload.filename)
        target = self.ensure_directory() / name
        written = 0
        try:
            with open(target, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise FileTooLargeError()
                    await run_in_threadpool(out.write, chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise
        finally:
            await upload.close()

        logger.info("Stored image %s (%d bytes)", name, written)
        return f"{self.url_prefix}/{name}"

    def resolve(self, relative_path: str | None) -> Optional[Path]:
        """Map a stored relative URL back to a file inside the content directory."""
        if not relative_path or not relative_path.startswith(self.url_prefix + "/"):
            return None
        name = relative_path[len(self.url_prefix) + 1 :]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.root / name

    def discard(self, relative_path: str | None) -> bool:
        """
        Best-effort removal of a previously stored image. Returns True if a file was deleted.
        """
        path = self.resolve(relative_path)
        if path is None or not path.is_file():
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            # Another request removed it first.
            return False
        logger.info("Discarded image %s", path.name)
        return True
