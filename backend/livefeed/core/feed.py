"""Feed Logic: pure operations over the ordered post sequence.

Invariants:
    - Feeds are tuples; every operation returns a new tuple, never mutates in place
    - Insertion order is the only order (append at the end, splice on delete)
    - No IO: callers load/save around these functions
    - generate_attachment_name is the only place attachment names are chosen

Design Decisions:
    - FeedSnapshot carries a version so push delivery can be ordered per subscriber
    - decode_feed raises ValueError (pydantic ValidationError included); the
      record store maps it to StorageError
"""

import base64
import json
import mimetypes
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath

from pydantic import TypeAdapter

from livefeed.core.domain_types import FeedEventType, PostId
from livefeed.core.errors import FeedValidationError
from livefeed.schemas.post import EPOCH, Post, PostDraft

Feed = tuple[Post, ...]

_FEED_ADAPTER = TypeAdapter(list[Post])
_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


@dataclass(frozen=True)
class FeedSnapshot:
    """Immutable view of the feed at a given cache version."""
    version: int
    posts: Feed = ()

    def to_payload(self) -> list[dict]:
        return [p.to_payload() for p in self.posts]

    def to_event(self) -> dict:
        """Push-channel envelope carrying the full feed."""
        return {"type": FeedEventType.FEED.value, "data": self.to_payload()}


@dataclass(frozen=True)
class AttachmentUpload:
    """A blob waiting to be stored, with its normalized extension."""
    content: bytes
    extension: str = ""


# ─── Attachment naming ───────────────────────────────────────────

def normalize_extension(extension: str | None) -> str:
    """Lowercase, dot-prefixed, alphanumeric extension, or "" if unusable."""
    if not extension:
        return ""
    ext = extension.strip().lower()
    if not ext.startswith("."):
        ext = "." + ext
    return ext if _EXTENSION_RE.match(ext) else ""


def extension_of(filename: str | None) -> str:
    """Normalized extension of an original upload filename."""
    if not filename:
        return ""
    return normalize_extension(PurePosixPath(filename.replace("\\", "/")).suffix)


def generate_attachment_name(extension: str) -> str:
    """128-bit random name keeping the original extension."""
    return f"{uuid.uuid4().hex}{normalize_extension(extension)}"


# ─── Input checks ────────────────────────────────────────────────

def check_attachment_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        raise FeedValidationError(
            f"Attachment is {size} bytes; limit is {max_bytes}", field="image",
        )


def check_upload(
    upload: AttachmentUpload | None, max_bytes: int,
) -> AttachmentUpload | None:
    """Return the upload to store, None for an empty one, or raise when too large."""
    if upload is None or not upload.content:
        return None
    check_attachment_size(len(upload.content), max_bytes)
    return upload


def decode_base64_attachment(
    image: str | None, filename: str | None = None,
) -> AttachmentUpload | None:
    """Decode a bare base64 string or data: URL into an upload."""
    if not image:
        return None
    extension = extension_of(filename)
    body = image
    if image.startswith("data:"):
        header, _, body = image.partition(",")
        mime = header[len("data:"):].split(";")[0]
        if not extension and mime:
            extension = normalize_extension(mimetypes.guess_extension(mime))
    try:
        content = base64.b64decode(body, validate=True)
    except ValueError:
        raise FeedValidationError("Attachment is not valid base64", field="image")
    return AttachmentUpload(content=content, extension=extension)


# ─── Feed operations ─────────────────────────────────────────────

def build_post(
    draft: PostDraft, attachment_ref: str = "", now: datetime | None = None,
) -> Post:
    """New post with a fresh id and creation timestamp."""
    return Post(
        id=uuid.uuid4().hex,
        author=draft.author,
        message=draft.message,
        attachment_ref=attachment_ref,
        created_at=now or datetime.now(timezone.utc),
    )


def append_post(feed: Feed, post: Post) -> Feed:
    return (*feed, post)


def find_post(feed: Feed, post_id: PostId) -> Post | None:
    return next((p for p in feed if p.id == post_id), None)


def remove_post(feed: Feed, post_id: PostId) -> Feed:
    return tuple(p for p in feed if p.id != post_id)


def is_attachment_shared(feed: Feed, attachment_ref: str) -> bool:
    """True if any post in feed still references attachment_ref."""
    return bool(attachment_ref) and any(
        p.attachment_ref == attachment_ref for p in feed
    )


def check_unique_ids(feed: Feed) -> Feed:
    """Reject a feed in which two posts share an id."""
    seen: set[str] = set()
    for post in feed:
        if post.id in seen:
            raise FeedValidationError(f"Duplicate post id '{post.id}'", field="id")
        seen.add(post.id)
    return feed


def build_placeholder_feed(slots: int) -> Feed:
    """Deterministic empty slots for the fixed-size bootstrap mode."""
    return tuple(
        Post(id=f"slot-{i}", created_at=EPOCH) for i in range(1, slots + 1)
    )


# ─── Serialization ───────────────────────────────────────────────

def encode_feed(feed: Feed) -> str:
    return json.dumps(
        [p.to_payload() for p in feed], indent=2, ensure_ascii=False,
    )


def decode_feed(raw: str) -> Feed:
    """Parse the persisted JSON array. Whitespace-only input is an empty feed."""
    if not raw.strip():
        return ()
    return tuple(_FEED_ADAPTER.validate_json(raw))
