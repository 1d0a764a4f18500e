"""Feed Runtime: composition root and FastAPI dependencies for feed services.

Invariants:
    - Exactly one store, cache, hub, and pipeline per process
    - Routes obtain services through the get_* dependencies, never by constructing them

Design Decisions:
    - Module-level singleton initialized in the lifespan hook (mirrors init_db style)
    - Tests swap the singleton by calling init_runtime with their own Settings
"""

import logging
from dataclasses import dataclass

from livefeed.config import Settings
from livefeed.infrastructure.attachment_store import FilesystemAttachmentStore
from livefeed.infrastructure.record_store import JsonFileRecordStore
from livefeed.services.broadcast_hub import BroadcastHub
from livefeed.services.feed_cache import FeedCache
from livefeed.services.mutation_pipeline import MutationPipeline

logger = logging.getLogger(__name__)


@dataclass
class FeedRuntime:
    store: JsonFileRecordStore
    attachments: FilesystemAttachmentStore
    cache: FeedCache
    hub: BroadcastHub
    pipeline: MutationPipeline


def build_runtime(settings: Settings) -> FeedRuntime:
    """Wire every feed component from settings."""
    store = JsonFileRecordStore(
        settings.data_file, placeholder_slots=settings.placeholder_slots,
    )
    attachments = FilesystemAttachmentStore(
        settings.uploads_dir, url_prefix=settings.uploads_url_path,
    )
    cache = FeedCache()
    hub = BroadcastHub(
        cache, send_timeout_seconds=settings.broadcast_send_timeout_seconds,
    )
    pipeline = MutationPipeline(
        store, attachments, cache, hub,
        max_attachment_bytes=settings.max_attachment_bytes,
    )
    return FeedRuntime(store, attachments, cache, hub, pipeline)


# Singleton (initialized on startup)
runtime: FeedRuntime | None = None


def init_runtime(settings: Settings) -> FeedRuntime:
    global runtime
    runtime = build_runtime(settings)
    logger.info(f"Feed runtime initialized (data_file={settings.data_file})")
    return runtime


def get_runtime() -> FeedRuntime:
    if runtime is None:
        raise RuntimeError("Feed runtime not initialized")
    return runtime


def get_pipeline() -> MutationPipeline:
    """FastAPI dependency for the mutation pipeline."""
    return get_runtime().pipeline


def get_cache() -> FeedCache:
    """FastAPI dependency for the feed cache."""
    return get_runtime().cache


def get_hub() -> BroadcastHub:
    """FastAPI dependency for the broadcast hub."""
    return get_runtime().hub
