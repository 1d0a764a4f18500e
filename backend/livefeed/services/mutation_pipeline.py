"""Mutation Pipeline: the only path that changes the feed.

Invariants:
    - Every load -> change -> save sequence runs under one asyncio.Lock (no lost updates)
    - Order per mutation: save -> cache refresh -> publish -> return to caller
    - A failure before save completes aborts: no refresh, no publish, error propagates
    - An attachment stored for an aborted create is removed best-effort
    - Attachment cleanup on delete runs only after the save succeeded and never
      fails the delete (logged, swallowed); a failed save leaves the file in place
    - Unknown id on delete raises ResourceNotFoundError with no side effects

Design Decisions:
    - Attachment write happens before taking the lock: it touches no shared state
    - publish runs inside the lock so subscribers see commits in commit order
    - An attachment still referenced by another post is kept on delete
    - replace_feed overwrites the whole feed; attachments of replaced posts are
      left on disk (the caller owns the new references)
"""

import asyncio
import logging

from livefeed.core.domain_types import PostId
from livefeed.core.errors import (
    AttachmentCleanupError, FeedError, ResourceNotFoundError,
)
from livefeed.core.feed import (
    AttachmentUpload, Feed, FeedSnapshot, append_post, build_post, check_upload,
    check_unique_ids, find_post, is_attachment_shared, remove_post,
)
from livefeed.core.repository_protocols import AttachmentStore, RecordStore
from livefeed.schemas.post import Post, PostDraft
from livefeed.services.broadcast_hub import BroadcastHub
from livefeed.services.feed_cache import FeedCache

logger = logging.getLogger(__name__)


class MutationPipeline:
    """Serialized create/delete orchestration over store, cache, and hub."""

    def __init__(
        self,
        store: RecordStore,
        attachments: AttachmentStore,
        cache: FeedCache,
        hub: BroadcastHub,
        max_attachment_bytes: int = 10 * 1024 * 1024,
    ):
        self._store = store
        self._attachments = attachments
        self._cache = cache
        self._hub = hub
        self._max_attachment_bytes = max_attachment_bytes
        self._lock = asyncio.Lock()

    @property
    def max_attachment_bytes(self) -> int:
        return self._max_attachment_bytes

    async def bootstrap(self) -> FeedSnapshot:
        """Load the persisted feed into the cache (startup)."""
        async with self._lock:
            posts = await self._store.load()
            snapshot = self._cache.refresh(posts)
        logger.info(
            f"Feed bootstrapped with {len(posts)} posts",
            extra={"feed_length": len(posts), "feed_version": snapshot.version},
        )
        return snapshot

    async def create_post(
        self, draft: PostDraft, upload: AttachmentUpload | None = None,
    ) -> Post:
        """Persist a new post, then refresh and broadcast the feed."""
        upload = check_upload(upload, self._max_attachment_bytes)
        attachment_ref = ""
        if upload is not None:
            attachment_ref = await self._attachments.store(
                upload.content, upload.extension,
            )
        try:
            async with self._lock:
                posts = await self._store.load()
                post = build_post(draft, attachment_ref)
                updated = append_post(posts, post)
                await self._store.save(updated)
                await self._commit(updated)
        except FeedError:
            if attachment_ref:
                await self._discard_attachment(attachment_ref)
            raise
        logger.info("Post created", extra={"post_id": post.id})
        return post

    async def delete_post(self, post_id: PostId) -> Post:
        """Remove a post and its attachment, then refresh and broadcast."""
        async with self._lock:
            posts = await self._store.load()
            post = find_post(posts, post_id)
            if post is None:
                raise ResourceNotFoundError("Post", post_id)
            remaining = remove_post(posts, post_id)
            await self._store.save(remaining)
            if post.attachment_ref and not is_attachment_shared(
                remaining, post.attachment_ref,
            ):
                await self._discard_attachment(post.attachment_ref)
            await self._commit(remaining)
        logger.info("Post deleted", extra={"post_id": post_id})
        return post

    async def replace_feed(self, posts: Feed) -> FeedSnapshot:
        """Overwrite the whole feed, then refresh and broadcast it."""
        feed = check_unique_ids(tuple(posts))
        async with self._lock:
            await self._store.save(feed)
            snapshot = await self._commit(feed)
        logger.info(
            f"Feed replaced with {len(feed)} posts",
            extra={"feed_length": len(feed), "feed_version": snapshot.version},
        )
        return snapshot

    async def _commit(self, posts: Feed) -> FeedSnapshot:
        snapshot = self._cache.refresh(posts)
        await self._hub.publish(snapshot)
        return snapshot

    async def _discard_attachment(self, attachment_ref: str) -> None:
        try:
            await self._attachments.remove(attachment_ref)
        except AttachmentCleanupError as e:
            logger.warning(
                e.message,
                extra={"error_code": e.code, "attachment_ref": attachment_ref},
            )
