"""Broadcast Hub: live push subscribers and full-feed fan-out.

Invariants:
    - subscribe() registers first, then pushes the current cache snapshot,
      so a new subscriber never waits for the next mutation
    - Per subscriber, snapshots are delivered in version order; an older or
      equal version than the last one sent is skipped
    - publish() never raises; a failed or timed-out send drops only that subscriber
    - Membership is iterated through a copy; subscribe/unsubscribe take no lock
    - unsubscribe() is idempotent and DISCONNECTED is terminal
    - A subscriber the hub drops (failed send, timeout, shutdown) has its
      connection closed, so the client sees the close instead of going stale

Design Decisions:
    - One asyncio.Lock per subscriber serializes its sends without blocking others
    - Sends bounded by a timeout: publish runs inside the mutation lock, a stalled
      client must not hold it
    - unsubscribe() only forgets the subscriber; it is what the socket route
      calls once the client is already gone, so it never closes anything
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from livefeed.core.domain_types import ConnectionState, SubscriberId
from livefeed.core.feed import FeedSnapshot
from livefeed.core.repository_protocols import PushConnection
from livefeed.services.feed_cache import FeedCache

logger = logging.getLogger(__name__)

# WebSocket close codes
CLOSE_GOING_AWAY = 1001
CLOSE_DELIVERY_FAILED = 1011


@dataclass(eq=False)
class Subscriber:
    """One live push connection and its delivery state."""
    connection: PushConnection
    id: SubscriberId = field(default_factory=lambda: SubscriberId(uuid.uuid4().hex))
    state: ConnectionState = ConnectionState.CONNECTED
    last_version: int = -1
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


class BroadcastHub:
    """Keeps the subscriber set and pushes feed snapshots to it."""

    def __init__(self, cache: FeedCache, send_timeout_seconds: float = 5.0):
        self._cache = cache
        self._send_timeout = send_timeout_seconds
        self._subscribers: dict[SubscriberId, Subscriber] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, connection: PushConnection) -> Subscriber:
        """Register connection and push it the current feed."""
        subscriber = Subscriber(connection=connection)
        self._subscribers[subscriber.id] = subscriber
        logger.info(
            "Subscriber connected",
            extra={
                "subscriber_id": subscriber.id,
                "subscriber_count": self.subscriber_count,
            },
        )
        if not await self._deliver(subscriber, self._cache.get()):
            await self.drop(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Drop subscriber. Safe to call more than once."""
        subscriber.state = ConnectionState.DISCONNECTED
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.info(
                "Subscriber disconnected",
                extra={
                    "subscriber_id": subscriber.id,
                    "subscriber_count": self.subscriber_count,
                },
            )

    async def publish(self, snapshot: FeedSnapshot) -> None:
        """Push snapshot to every registered subscriber, best-effort."""
        subscribers = list(self._subscribers.values())
        if not subscribers:
            return
        results = await asyncio.gather(
            *(self._deliver(s, snapshot) for s in subscribers),
        )
        dropped = [s for s, delivered in zip(subscribers, results) if not delivered]
        if dropped:
            await asyncio.gather(*(self.drop(s) for s in dropped))

    async def drop(
        self,
        subscriber: Subscriber,
        code: int = CLOSE_DELIVERY_FAILED,
        reason: str = "Feed delivery failed",
    ) -> None:
        """Unsubscribe and close the connection, best-effort.

        A subscriber that is already disconnected was closed by its peer or by
        an earlier drop and is left alone.
        """
        if not subscriber.connected:
            return
        self.unsubscribe(subscriber)
        try:
            await asyncio.wait_for(
                subscriber.connection.close(code=code, reason=reason),
                timeout=self._send_timeout,
            )
        except Exception as e:
            # Already closed by the peer, or too stalled to take the close frame
            logger.debug(
                f"Close of dropped subscriber failed: {e!r}",
                extra={"subscriber_id": subscriber.id},
            )

    async def close(self) -> None:
        """Disconnect and close everyone (shutdown)."""
        subscribers = list(self._subscribers.values())
        await asyncio.gather(*(
            self.drop(s, code=CLOSE_GOING_AWAY, reason="Server shutting down")
            for s in subscribers
        ))

    async def _deliver(self, subscriber: Subscriber, snapshot: FeedSnapshot) -> bool:
        """Send snapshot unless stale. False means the subscriber is dead."""
        async with subscriber.send_lock:
            if not subscriber.connected:
                return False
            if snapshot.version <= subscriber.last_version:
                return True
            try:
                await asyncio.wait_for(
                    subscriber.connection.send_json(snapshot.to_event()),
                    timeout=self._send_timeout,
                )
            except Exception as e:
                # Any transport failure (closed socket, timeout) ends the subscription
                logger.warning(
                    f"Push to subscriber failed: {e!r}",
                    extra={"subscriber_id": subscriber.id},
                )
                return False
            subscriber.last_version = snapshot.version
            return True
