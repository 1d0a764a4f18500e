"""Feed Cache: in-memory mirror of the record store.

Invariants:
    - get() never blocks and never touches disk
    - refresh() is only called by MutationPipeline, right after a successful save
    - version strictly increases with every refresh; 0 means "not bootstrapped yet"
"""

import logging

from livefeed.core.feed import Feed, FeedSnapshot

logger = logging.getLogger(__name__)


class FeedCache:
    """Single-writer holder of the latest FeedSnapshot."""

    def __init__(self):
        self._snapshot = FeedSnapshot(version=0)

    def get(self) -> FeedSnapshot:
        return self._snapshot

    def refresh(self, posts: Feed) -> FeedSnapshot:
        """Replace the cached feed and return the new snapshot."""
        self._snapshot = FeedSnapshot(
            version=self._snapshot.version + 1, posts=tuple(posts),
        )
        logger.debug(
            "Feed cache refreshed",
            extra={
                "feed_version": self._snapshot.version,
                "feed_length": len(self._snapshot.posts),
            },
        )
        return self._snapshot

    @property
    def is_bootstrapped(self) -> bool:
        return self._snapshot.version > 0
