"""
Real-time fan-out of new messages to session observers.

Each session has one logical channel. Observers subscribe to it and consume
MessageEvents from a bounded queue; delivery is best-effort and at most once.
"""

from __future__ import annotations

import asyncio
import itertools
import logging

from mock_interviewer.config import get_settings
from mock_interviewer.errors import BroadcastError
from mock_interviewer.orchestrator.schemas import MessageEvent, MessageRecord

logger = logging.getLogger(__name__)

_subscription_ids = itertools.count(1)


def channel_name(session_id: int) -> str:
    """Name of the broadcast channel for a session."""
    return f"interview.{session_id}"


class Subscription:
    """
    An observer's handle on a session channel.

    Iterate it with `async for` to receive events; iteration stops once the
    subscription is closed by unsubscribe() or by the channel closing.
    """

    def __init__(self, session_id: int, max_pending: int) -> None:
        self.id: int = next(_subscription_ids)
        self.session_id = session_id
        self._queue: asyncio.Queue[MessageEvent | None] = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    @property
    def channel(self) -> str:
        """Name of the channel this subscription listens on."""
        return channel_name(self.session_id)

    @property
    def closed(self) -> bool:
        """Check whether the subscription has been closed."""
        return self._closed

    @property
    def pending(self) -> int:
        """Number of events waiting to be consumed."""
        return self._queue.qsize()

    def deliver(self, event: MessageEvent) -> None:
        """
        Queue an event for this observer without blocking.

        Raises:
            BroadcastError: If the subscription is closed or its queue is full.
        """
        if self._closed:
            raise BroadcastError(f"Subscription {self.id} is closed")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as e:
            raise BroadcastError(
                f"Subscription {self.id} has {self._queue.qsize()} undelivered events",
                {"subscription_id": self.id, "session_id": self.session_id},
            ) from e

    def close(self) -> None:
        """Close the subscription and wake any pending consumer."""
        if self._closed:
            return
        self._closed = True
        # Make room for the sentinel; undelivered events are dropped.
        while self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def get(self) -> MessageEvent | None:
        """Wait for the next event. Returns None once the subscription is closed."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> MessageEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class BroadcastPublisher:
    """
    Fans out newly created messages to the observers of a session.

    Publishing never raises: a delivery failure to one observer is logged and
    skipped, and never affects the message that was already persisted.
    """

    def __init__(self, max_pending: int | None = None) -> None:
        """
        Initialize the publisher.

        Args:
            max_pending: Events buffered per observer. Defaults to settings.
        """
        self._max_pending = max_pending or get_settings().broadcast_queue_size
        self._channels: dict[int, dict[int, Subscription]] = {}

    def subscribe(self, session_id: int) -> Subscription:
        """
        Subscribe to a session's channel.

        Args:
            session_id: Session to observe.

        Returns:
            A new subscription.
        """
        subscription = Subscription(session_id, self._max_pending)
        self._channels.setdefault(session_id, {})[subscription.id] = subscription
        logger.debug(f"Subscription {subscription.id} joined {subscription.channel}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """
        Remove a subscription from its channel and close it.

        Args:
            subscription: Subscription to remove.
        """
        channel = self._channels.get(subscription.session_id)
        if channel is not None:
            channel.pop(subscription.id, None)
            if not channel:
                del self._channels[subscription.session_id]
        subscription.close()
        logger.debug(f"Subscription {subscription.id} left {subscription.channel}")

    def subscriber_count(self, session_id: int) -> int:
        """Number of observers currently subscribed to a session."""
        return len(self._channels.get(session_id, {}))

    def publish(self, message: MessageRecord, origin: Subscription | None = None) -> int:
        """
        Notify every other observer of the message's session.

        Args:
            message: The newly persisted message.
            origin: Subscription of the initiator, excluded from delivery.

        Returns:
            Number of observers the event was delivered to.
        """
        channel = self._channels.get(message.session_id)
        if not channel:
            return 0

        event = MessageEvent.from_message(message)
        delivered = 0
        for subscription in list(channel.values()):
            if origin is not None and subscription.id == origin.id:
                continue
            try:
                subscription.deliver(event)
            except BroadcastError as e:
                logger.warning(f"Dropped message {message.id} on {channel_name(message.session_id)}: {e}")
                continue
            delivered += 1

        logger.debug(f"Published message {message.id} to {delivered} observer(s)")
        return delivered

    def close_channel(self, session_id: int) -> None:
        """
        Tear down a session's channel, closing all of its subscriptions.

        Args:
            session_id: Session whose channel is closed.
        """
        channel = self._channels.pop(session_id, {})
        for subscription in channel.values():
            subscription.close()
        if channel:
            logger.info(f"Closed {channel_name(session_id)} with {len(channel)} observer(s)")
