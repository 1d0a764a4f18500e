"""JSON Record Store: whole-document persistence of the ordered feed.

Invariants:
    - The feed file is the single source of truth; every save rewrites it entirely
    - save() is atomic for readers: temp file in the same directory, fsync, os.replace
    - A failed save leaves the previous file untouched and removes its temp file
    - Every OSError or decode failure surfaces as StorageError (core/errors.py)
    - Missing file = empty feed, or persisted placeholder slots when configured

Design Decisions:
    - aiofiles for reads/writes so disk IO never blocks the event loop
    - No locking here: callers serialize read-modify-write (services/mutation_pipeline.py)
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from livefeed.core.errors import StorageError
from livefeed.core.feed import Feed, build_placeholder_feed, decode_feed, encode_feed

logger = logging.getLogger(__name__)


class JsonFileRecordStore:
    """Persists the feed as one JSON array file."""

    def __init__(self, path: str | Path, placeholder_slots: int = 0):
        self.path = Path(path)
        self.placeholder_slots = placeholder_slots

    async def load(self) -> Feed:
        """Read the full persisted feed."""
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return await self._initial_feed()
        except OSError as e:
            logger.error(f"Feed read failed: {e}")
            raise StorageError(str(e), "load")
        try:
            return decode_feed(raw)
        except ValueError as e:
            logger.error(f"Feed file {self.path} is not a valid feed: {e}")
            raise StorageError("feed file is corrupt", "load")

    async def save(self, posts: Feed) -> None:
        """Atomically replace the persisted feed with posts."""
        payload = encode_feed(posts)
        tmp = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"Feed write failed: {e}")
            await self._discard_temp(tmp)
            raise StorageError(str(e), "save")
        logger.debug(
            "Feed saved", extra={"feed_length": len(posts)},
        )

    async def health_check(self) -> bool:
        """Data directory exists (or can be created) and is writable."""
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
        except OSError as e:
            logger.error(f"Feed directory unavailable: {e}")
            return False
        return os.access(self.path.parent, os.W_OK)

    async def _initial_feed(self) -> Feed:
        if not self.placeholder_slots:
            return ()
        feed = build_placeholder_feed(self.placeholder_slots)
        await self.save(feed)
        logger.info(
            f"Seeded feed with {self.placeholder_slots} placeholder slots",
            extra={"feed_length": len(feed)},
        )
        return feed

    async def _discard_temp(self, tmp: Path) -> None:
        try:
            await aiofiles.os.remove(tmp)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {tmp}: {e}")
