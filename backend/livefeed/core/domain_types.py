"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - PostId and SubscriberId wrap str; never pass raw ids through domain logic untyped
    - All valid connection and event states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

PostId = NewType("PostId", str)
SubscriberId = NewType("SubscriberId", str)


# ─── Enums ───────────────────────────────────────────────────────

class ConnectionState(str, Enum):
    """Push subscriber lifecycle. DISCONNECTED is terminal."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class FeedEventType(str, Enum):
    """Event types on the push channel, both directions."""
    FEED = "feed"
    NEW_POST = "new_post"
    ERROR = "error"
