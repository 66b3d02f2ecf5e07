"""
Live update fan-out for connected wall viewers
"""
import asyncio
import json
import threading
import uuid
from collections import deque
from typing import Deque, Dict, Any, Optional
from ..constants import EventConstants
from ..logger import events_logger as logger


def hello_event() -> Dict[str, Any]:
    return {'type': EventConstants.HELLO}


def photo_uploaded_event(photo: Dict[str, Any]) -> Dict[str, Any]:
    return {'type': EventConstants.PHOTO_UPLOADED, 'photo': photo}


def photo_deleted_event(photo_id: str) -> Dict[str, Any]:
    return {'type': EventConstants.PHOTO_DELETED, 'id': photo_id}


def format_sse(event: Dict[str, Any]) -> str:
    """Render one Server-Sent Events frame"""
    return f"data: {json.dumps(event, default=str)}\n\n"


class Subscription:
    """
    Handle for one connected viewer

    Events sit in a bounded buffer that any thread may append to. The async
    reader parks on an ``asyncio.Event`` that publishers wake through
    ``call_soon_threadsafe``, so a waiting viewer holds no worker thread.
    When the buffer is full new events are dropped for this subscriber only.
    """

    def __init__(self, buffer_size: int = 100):
        self.subscription_id = uuid.uuid4().hex
        self.buffer_size = max(1, buffer_size)
        self._events: Deque[Dict[str, Any]] = deque()
        self._lock = threading.Lock()
        self._dropped = 0
        self._closed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ready = asyncio.Event()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def offer(self, event: Dict[str, Any]) -> bool:
        """Enqueue without blocking; False if closed or the buffer is full"""
        with self._lock:
            if self._closed:
                return False
            if len(self._events) >= self.buffer_size:
                self._dropped += 1
                return False

            self._events.append(event)
            loop = self._loop

        self._wake(loop)
        return True

    def poll(self) -> Optional[Dict[str, Any]]:
        """Next buffered event without waiting, or None"""
        with self._lock:
            return self._events.popleft() if self._events else None

    async def next_event(self, timeout: float) -> Optional[Dict[str, Any]]:
        """Next event, or None after ``timeout`` seconds or once closed and empty"""
        loop = asyncio.get_running_loop()
        with self._lock:
            self._loop = loop
        deadline = loop.time() + timeout

        while True:
            self._ready.clear()
            event = self.poll()
            if event is not None or self.closed:
                return event

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None

            try:
                await asyncio.wait_for(self._ready.wait(), remaining)
            except asyncio.TimeoutError:
                return self.poll()

    def close(self):
        with self._lock:
            self._closed = True
            loop = self._loop

        self._wake(loop)

    def _wake(self, loop: Optional[asyncio.AbstractEventLoop]):
        if loop is None:
            return

        try:
            loop.call_soon_threadsafe(self._ready.set)
        except RuntimeError:
            # Reader's event loop is gone; nothing will consume this buffer
            with self._lock:
                self._closed = True


class LiveUpdateBus:
    """
    Registry of live subscriptions with snapshot-based publish

    The lock guards only the subscriber map; delivery happens outside it.
    """

    def __init__(self, buffer_size: int = 100):
        self.buffer_size = buffer_size
        self._subscribers: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a viewer; its first event is the hello marker"""
        subscription = Subscription(self.buffer_size)
        subscription.offer(hello_event())

        with self._lock:
            self._subscribers[subscription.subscription_id] = subscription
            count = len(self._subscribers)

        logger.info("Subscriber connected",
                    subscription_id=subscription.subscription_id,
                    subscriber_count=count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Release a subscription; safe to call more than once

        Returns:
            True if the subscription was still registered
        """
        with self._lock:
            removed = self._subscribers.pop(subscription.subscription_id, None)
            count = len(self._subscribers)

        subscription.close()

        if removed is not None:
            logger.info("Subscriber disconnected",
                        subscription_id=subscription.subscription_id,
                        dropped_events=subscription.dropped,
                        subscriber_count=count)
        return removed is not None

    def publish(self, event: Dict[str, Any]) -> int:
        """
        Deliver an event to every subscriber registered right now

        Returns:
            Number of subscribers that accepted the event
        """
        with self._lock:
            snapshot = list(self._subscribers.values())

        delivered = 0
        for subscription in snapshot:
            if subscription.offer(event):
                delivered += 1
            elif subscription.closed:
                # Unsubscribed after the snapshot was taken
                logger.debug("Event skipped for closed subscriber",
                             subscription_id=subscription.subscription_id,
                             event_type=event.get('type'))
            else:
                logger.warning("Event dropped for slow subscriber",
                               subscription_id=subscription.subscription_id,
                               event_type=event.get('type'),
                               dropped_events=subscription.dropped)

        logger.debug("Event published",
                     event_type=event.get('type'),
                     subscribers=len(snapshot),
                     delivered=delivered)
        return delivered

    def publish_photo_uploaded(self, photo: Dict[str, Any]) -> int:
        return self.publish(photo_uploaded_event(photo))

    def publish_photo_deleted(self, photo_id: str) -> int:
        return self.publish(photo_deleted_event(photo_id))

    def close_all(self):
        """Close every subscription (application shutdown)"""
        with self._lock:
            snapshot = list(self._subscribers.values())
            self._subscribers.clear()

        for subscription in snapshot:
            subscription.close()
