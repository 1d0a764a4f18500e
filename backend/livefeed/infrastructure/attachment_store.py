"""Filesystem Attachment Store: blobs under the uploads root, addressed by URL path.

Invariants:
    - Names come only from core.feed.generate_attachment_name (uuid4 hex + extension)
    - References are "{url_prefix}/{name}"; resolve() never returns a path outside root
    - The root directory is created on first store (idempotent)
    - remove() treats an already-missing file as done, not as an error

Design Decisions:
    - Flat directory: names are random, no sharding needed at this scale
    - Write failures raise StorageError; removal failures raise AttachmentCleanupError
      so the pipeline can tell "abort" from "log and continue"
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from livefeed.core.errors import AttachmentCleanupError, StorageError
from livefeed.core.feed import generate_attachment_name

logger = logging.getLogger(__name__)


class FilesystemAttachmentStore:
    """Stores attachment blobs as files served back under url_prefix."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    async def store(self, blob: bytes, original_extension: str) -> str:
        """Write blob under a fresh name and return its reference path."""
        name = generate_attachment_name(original_extension)
        try:
            await aiofiles.os.makedirs(self.root, exist_ok=True)
            async with aiofiles.open(self.root / name, "wb") as f:
                await f.write(blob)
        except OSError as e:
            logger.error(f"Attachment write failed: {e}")
            raise StorageError(str(e), "attachment_write")
        reference = f"{self.url_prefix}/{name}"
        logger.info(
            f"Stored attachment ({len(blob)} bytes)",
            extra={"attachment_ref": reference},
        )
        return reference

    def resolve(self, reference: str) -> Path | None:
        """Map a reference back to its file path, or None if it is not ours."""
        prefix = f"{self.url_prefix}/"
        if not reference or not reference.startswith(prefix):
            return None
        name = reference[len(prefix):]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.root / name

    async def remove(self, reference: str) -> bool:
        """Delete the referenced file. False if it was already gone."""
        path = self.resolve(reference)
        if path is None:
            raise AttachmentCleanupError("reference outside uploads root", reference)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.info(
                "Attachment already absent", extra={"attachment_ref": reference},
            )
            return False
        except OSError as e:
            raise AttachmentCleanupError(str(e), reference)
        logger.info("Removed attachment", extra={"attachment_ref": reference})
        return True
