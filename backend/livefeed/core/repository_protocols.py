"""Boundary Protocols: contracts between the feed services and their IO.

Invariants:
    - Services depend on these Protocols, never on concrete infrastructure classes
    - Implementations provided by services/feed_runtime.py via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - PushConnection matches Starlette's WebSocket.send_json and close, so a
      WebSocket is a valid connection as-is
"""

from pathlib import Path
from typing import Protocol

from livefeed.schemas.post import Post


class RecordStore(Protocol):
    """Contract for whole-feed persistence."""
    async def load(self) -> tuple[Post, ...]: ...
    async def save(self, posts: tuple[Post, ...]) -> None: ...
    async def health_check(self) -> bool: ...


class AttachmentStore(Protocol):
    """Contract for attachment blob persistence."""
    async def store(self, blob: bytes, original_extension: str) -> str: ...
    async def remove(self, reference: str) -> bool: ...
    def resolve(self, reference: str) -> Path | None: ...


class PushConnection(Protocol):
    """Anything a feed event can be pushed to, and closed when dropped."""
    async def send_json(self, data: dict) -> None: ...
    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...
